"""Push error taxonomy.

Every failure here is a local validation or cryptographic failure raised
before any network action. None of them is retryable.
"""

from typing import Optional


class PushError(Exception):
    """Base class for all push encryption / signing failures."""


class InvalidSubscription(PushError):
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid subscription field '{field}': {reason}")


class InvalidPeerKey(PushError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid peer public key: {reason}")


class InvalidKeyMaterial(PushError):
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid key material '{field}': {reason}")


class PayloadTooLarge(PushError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Padded payload is {size} bytes, limit is {limit}")


class InvalidAudience(PushError):
    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"Cannot derive VAPID audience from endpoint {endpoint!r}")


class InvalidClaims(PushError):
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid VAPID claim '{field}': {reason}")


class SigningFailure(PushError):
    def __init__(self, reason: str, cause: Optional[BaseException] = None):
        self.reason = reason
        self.cause = cause
        super().__init__(f"VAPID signing failed: {reason}")


class MissingProviderToken(PushError):
    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"Endpoint {endpoint!r} requires a provider auth token")


class UnsupportedSubscription(PushError):
    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"Endpoint {endpoint!r} is not a well-formed push URL")
