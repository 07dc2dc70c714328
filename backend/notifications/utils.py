import json
import logging
from typing import Optional

import requests
from pywebpush import WebPushException

from push import (
    MissingProviderToken,
    PushRequest,
    Subscription,
    VapidIdentity,
    VapidTokenCache,
    bucket_padding,
    build,
    build_auth_header,
    classify_endpoint,
    encrypt,
    load_vapid_identity,
)
from push.request import EndpointKind
from push.vapid import export_public_key
from server import config

logger = logging.getLogger(__name__)

# Push service answers that mean the subscription will never work again
STALE_STATUS_CODES = (400, 403, 404, 410)

_token_cache = VapidTokenCache(ttl=config.VAPID_TOKEN_TTL)


def init_vapid_identity(private_key=None, contact: Optional[str] = None) -> Optional[VapidIdentity]:
    """
    Load the VAPID signing identity from configuration. Returns None when no
    private key is configured (push disabled).
    """
    source = private_key if private_key is not None else config.vapid_key_source()
    if not source:
        logger.warning("VAPID_PRIVATE_KEY not set, push disabled.")
        return None

    identity = load_vapid_identity(source, contact or config.VAPID_SUB_EMAIL)

    configured = config.VAPID_PUBLIC_KEY.strip().rstrip("=")
    if configured and configured != export_public_key(identity):
        logger.warning(
            "VAPID_PUBLIC_KEY does not match the private key; clients must subscribe "
            "with %s", export_public_key(identity)
        )
    return identity


def encode_message(message) -> bytes:
    if isinstance(message, bytes):
        return message
    if isinstance(message, str):
        return message.encode("utf-8")
    return json.dumps(message).encode("utf-8")


def prepare_push(
    message,
    subscription_info,
    identity: VapidIdentity,
    ttl: Optional[int] = None,
    provider_auth_token: Optional[str] = None,
    padding_bucket: Optional[int] = None,
    token_cache: Optional[VapidTokenCache] = _token_cache,
) -> PushRequest:
    """
    Encrypt *message* for one subscription and sign the request.
    Nothing is sent; the returned PushRequest goes to send_push().
    """
    subscription = subscription_info
    if not isinstance(subscription, Subscription):
        subscription = Subscription.from_info(subscription_info)

    token = provider_auth_token or config.FCM_SERVER_KEY or None
    if classify_endpoint(subscription.endpoint) is EndpointKind.LEGACY_GATEWAY and not token:
        raise MissingProviderToken(subscription.endpoint)

    data = encode_message(message)
    bucket = config.PUSH_PADDING_BUCKET if padding_bucket is None else padding_bucket
    padding = bucket_padding(len(data), bucket, config.PUSH_MAX_PAYLOAD)
    envelope = encrypt(data, subscription, padding=padding, max_size=config.PUSH_MAX_PAYLOAD)

    if token_cache is not None:
        auth = token_cache.get(identity, subscription.endpoint)
    else:
        auth = build_auth_header(identity, subscription.endpoint, ttl=config.VAPID_TOKEN_TTL)

    return build(
        envelope,
        auth,
        subscription.endpoint,
        provider_auth_token=token,
        ttl=config.PUSH_TTL if ttl is None else ttl,
    )


def send_push(push_request: PushRequest, timeout: Optional[float] = None) -> requests.Response:
    """POST a prepared request. Raises WebPushException on any failure."""
    try:
        response = requests.post(
            push_request.url,
            data=push_request.body,
            headers=push_request.headers,
            timeout=config.PUSH_REQUEST_TIMEOUT if timeout is None else timeout,
        )
    except requests.RequestException as e:
        raise WebPushException(f"Push request failed: {e}") from e

    if response.status_code >= 400:
        raise WebPushException(
            f"Push failed: {response.status_code} {response.reason}", response=response
        )
    return response


def is_stale_subscription(exc: WebPushException) -> bool:
    status_code = getattr(exc.response, "status_code", None)
    return status_code in STALE_STATUS_CODES


def send_to_subscription(message, subscription_info, identity: VapidIdentity, **kwargs) -> requests.Response:
    """
    Encrypt, sign and deliver one notification.
    PushError (bad input) and WebPushException (push service said no) propagate.
    """
    push_request = prepare_push(message, subscription_info, identity, **kwargs)
    try:
        response = send_push(push_request)
    except WebPushException as ex:
        status_code = getattr(ex.response, "status_code", "Unknown")
        resp_body = getattr(ex.response, "text", "No body")
        logger.error(f"Failed to send push Status: {status_code}, Body: {resp_body}")
        if is_stale_subscription(ex):
            logger.info(f"Subscription {push_request.url} is no longer valid (HTTP {status_code})")
        raise

    logger.info(f"Successfully sent push to {push_request.url}")
    return response
