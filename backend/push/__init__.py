"""Web Push payload encryption (aesgcm) and VAPID request signing."""

from push.encryption import EncryptionEnvelope, Subscription, bucket_padding, encrypt
from push.errors import (
    InvalidAudience,
    InvalidClaims,
    InvalidKeyMaterial,
    InvalidPeerKey,
    InvalidSubscription,
    MissingProviderToken,
    PayloadTooLarge,
    PushError,
    SigningFailure,
    UnsupportedSubscription,
)
from push.request import EndpointKind, PushRequest, build, classify_endpoint
from push.vapid import (
    VapidHeaders,
    VapidIdentity,
    VapidTokenCache,
    build_auth_header,
    generate_vapid_identity,
    load_vapid_identity,
)

__all__ = [
    "EncryptionEnvelope",
    "EndpointKind",
    "InvalidAudience",
    "InvalidClaims",
    "InvalidKeyMaterial",
    "InvalidPeerKey",
    "InvalidSubscription",
    "MissingProviderToken",
    "PayloadTooLarge",
    "PushError",
    "PushRequest",
    "SigningFailure",
    "Subscription",
    "UnsupportedSubscription",
    "VapidHeaders",
    "VapidIdentity",
    "VapidTokenCache",
    "bucket_padding",
    "build",
    "build_auth_header",
    "classify_endpoint",
    "encrypt",
    "generate_vapid_identity",
    "load_vapid_identity",
]
