"""Push notification endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pywebpush import WebPushException

from notifications.schemas import SendRequest, SendResponse, VapidKeyResponse
from notifications.utils import is_stale_subscription, send_to_subscription
from push import PushError, VapidIdentity
from push.vapid import export_public_key

logger = logging.getLogger(__name__)

router = APIRouter()


def get_vapid_identity(request: Request) -> VapidIdentity:
    """FastAPI dependency: the identity loaded at startup."""
    identity = getattr(request.app.state, "vapid_identity", None)
    if identity is None:
        raise HTTPException(status_code=503, detail="Push not configured")
    return identity


@router.get("/push/vapid-public-key", response_model=VapidKeyResponse)
def get_vapid_key(identity: VapidIdentity = Depends(get_vapid_identity)):
    """Return VAPID public key for client-side subscription."""
    return {"key": export_public_key(identity)}


@router.post("/push/send", response_model=SendResponse)
def send(body: SendRequest, identity: VapidIdentity = Depends(get_vapid_identity)):
    """Encrypt and deliver one message to the given subscription."""
    try:
        response = send_to_subscription(
            body.message,
            body.subscription.model_dump(),
            identity,
            ttl=body.ttl,
            provider_auth_token=body.provider_auth_token,
        )
    except PushError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except WebPushException as ex:
        raise HTTPException(
            status_code=502,
            detail={
                "error": str(ex),
                "status_code": getattr(ex.response, "status_code", None),
                "stale": is_stale_subscription(ex),
            },
        )
    return {"status": "sent", "status_code": response.status_code}
