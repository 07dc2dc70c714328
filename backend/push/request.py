"""Assembles the outbound push request from an envelope and VAPID headers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional
from urllib.parse import urlsplit

from push.encryption import EncryptionEnvelope
from push.errors import MissingProviderToken, UnsupportedSubscription
from push.utils import b64url_encode
from push.vapid import VapidHeaders

CONTENT_ENCODING = "aesgcm"

# FCM's legacy send path; the direct path drops the trailing "/send"
FCM_SEND_URL = "https://fcm.googleapis.com/fcm/send"
FCM_DIRECT_URL = "https://fcm.googleapis.com/fcm"


class EndpointKind(str, Enum):
    STANDARD = "standard"
    LEGACY_GATEWAY = "legacy_gateway"


@dataclass(frozen=True)
class PushRequest:
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def classify_endpoint(endpoint: str) -> EndpointKind:
    if not isinstance(endpoint, str):
        raise UnsupportedSubscription(repr(endpoint))
    try:
        parsed = urlsplit(endpoint)
    except ValueError as e:
        raise UnsupportedSubscription(endpoint) from e
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise UnsupportedSubscription(endpoint)

    if FCM_SEND_URL in endpoint:
        return EndpointKind.LEGACY_GATEWAY
    return EndpointKind.STANDARD


def build(
    envelope: EncryptionEnvelope,
    auth: VapidHeaders,
    endpoint: str,
    provider_auth_token: Optional[str] = None,
    ttl: int = 0,
) -> PushRequest:
    """Header set and body for one push message.

    Legacy FCM endpoints are rewritten to the direct path and authenticated
    with the provider's server key instead of the VAPID token.
    """
    if ttl < 0:
        raise ValueError(f"ttl must be non-negative, got {ttl}")
    kind = classify_endpoint(endpoint)
    if kind is EndpointKind.LEGACY_GATEWAY and not provider_auth_token:
        raise MissingProviderToken(endpoint)

    headers = {
        "Content-Encoding": CONTENT_ENCODING,
        "Encryption": f"salt={b64url_encode(envelope.salt)}",
        "Crypto-Key": f"dh={b64url_encode(envelope.server_public_key)};{auth.crypto_key}",
        "Authorization": auth.authorization,
        "TTL": str(int(ttl)),
    }
    url = endpoint

    if kind is EndpointKind.LEGACY_GATEWAY:
        url = endpoint.replace(FCM_SEND_URL, FCM_DIRECT_URL)
        headers["Authorization"] = f"key={provider_auth_token}"

    return PushRequest(url=url, headers=headers, body=envelope.ciphertext)
