"""Push API request/response schemas."""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class SubscriptionInfo(BaseModel):
    endpoint: str
    keys: SubscriptionKeys


class SendRequest(BaseModel):
    subscription: SubscriptionInfo
    message: Union[Dict[str, Any], str]
    ttl: Optional[int] = Field(default=None, ge=0)
    provider_auth_token: Optional[str] = None


class SendResponse(BaseModel):
    status: str
    status_code: int


class VapidKeyResponse(BaseModel):
    key: str
