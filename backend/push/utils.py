"""Base64url helpers shared by the encryption and VAPID code."""

import base64
import binascii


def b64url_encode(data: bytes) -> str:
    """URL-safe base64 without padding, the encoding every push header uses."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data) -> bytes:
    """Decode base64url or standard base64, padded or not.

    Browsers hand out unpadded base64url, but stored subscriptions are often
    re-encoded with the standard alphabet. Characters outside either alphabet
    raise ValueError instead of being skipped.
    """
    if isinstance(data, bytes):
        data = data.decode("ascii")
    s = data.strip().replace("+", "-").replace("/", "_").rstrip("=")
    if len(s) % 4 == 1:
        raise ValueError("invalid base64 length")
    s += "=" * (-len(s) % 4)
    try:
        return base64.b64decode(s.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(str(e)) from e
