"""VAPID (RFC 8292 draft) sender identity and JWT signing.

The identity is loaded once at startup and passed explicitly into every
signing call; nothing here reads global configuration.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional, Tuple
from urllib.parse import urlsplit

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from push.errors import InvalidAudience, InvalidClaims, InvalidKeyMaterial, SigningFailure
from push.keys import CURVE, public_key_bytes
from push.utils import b64url_decode, b64url_encode

logger = logging.getLogger(__name__)

DEFAULT_TTL = 12 * 60 * 60
MAX_TTL = 24 * 60 * 60
JWT_HEADER = {"typ": "JWT", "alg": "ES256"}
PRIVATE_KEY_LENGTH = 32
SIGNATURE_COMPONENT_LENGTH = 32


@dataclass(frozen=True)
class VapidIdentity:
    private_key: ec.EllipticCurvePrivateKey
    public_key: bytes
    contact: str


@dataclass(frozen=True)
class VapidClaims:
    audience: str
    expiry: int
    subject: str

    def to_dict(self) -> dict:
        return {"aud": self.audience, "exp": self.expiry, "sub": self.subject}


class VapidHeaders(NamedTuple):
    authorization: str
    crypto_key: str


# ─── Identity ────────────────────────────────────────────────

def _normalize_contact(contact: str) -> str:
    if not contact or not isinstance(contact, str):
        raise InvalidClaims("sub", "a contact URI is required")
    contact = contact.strip()
    if contact.startswith(("mailto:", "https:")):
        return contact
    # Bare e-mail addresses are common in .env files
    if "@" in contact and ":" not in contact:
        return f"mailto:{contact}"
    raise InvalidClaims("sub", f"contact must be a mailto: or https: URI, got {contact!r}")


def _load_private_key(key) -> ec.EllipticCurvePrivateKey:
    """Accept a key object, PEM text, a PEM file path, a raw base64url scalar,
    or base64url DER (PKCS8 or SEC1)."""
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return key
    if isinstance(key, bytes):
        key = key.decode("ascii", errors="replace")
    if not key or not isinstance(key, str):
        raise InvalidKeyMaterial("private_key", "no key supplied")

    key = key.strip()
    try:
        if key.startswith("-----BEGIN"):
            loaded = serialization.load_pem_private_key(key.encode("ascii"), password=None)
        elif os.path.isfile(key):
            with open(key, "rb") as f:
                loaded = serialization.load_pem_private_key(f.read(), password=None)
        else:
            raw = b64url_decode(key)
            if len(raw) == PRIVATE_KEY_LENGTH:
                loaded = ec.derive_private_key(int.from_bytes(raw, "big"), CURVE)
            else:
                loaded = serialization.load_der_private_key(raw, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyMaterial("private_key", str(e)) from e

    if not isinstance(loaded, ec.EllipticCurvePrivateKey) or loaded.curve.name != CURVE.name:
        raise InvalidKeyMaterial("private_key", "VAPID keys must be on the P-256 curve")
    return loaded


def load_vapid_identity(private_key, contact: str) -> VapidIdentity:
    """Build the process-wide signing identity. Call once at startup."""
    key = _load_private_key(private_key)
    identity = VapidIdentity(
        private_key=key,
        public_key=public_key_bytes(key.public_key()),
        contact=_normalize_contact(contact),
    )
    logger.info("VAPID identity loaded (public=%s…)", export_public_key(identity)[:20])
    return identity


def generate_vapid_identity(contact: str) -> VapidIdentity:
    return load_vapid_identity(ec.generate_private_key(CURVE), contact)


def export_public_key(identity: VapidIdentity) -> str:
    """The ``applicationServerKey`` handed to ``PushManager.subscribe``."""
    return b64url_encode(identity.public_key)


def export_private_key(identity: VapidIdentity, fmt: str = "raw") -> str:
    if fmt == "raw":
        value = identity.private_key.private_numbers().private_value
        return b64url_encode(value.to_bytes(PRIVATE_KEY_LENGTH, "big"))
    if fmt == "pem":
        return identity.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")
    raise ValueError(f"unknown key format {fmt!r}")


# ─── Claims & token ──────────────────────────────────────────

def get_audience(endpoint: str) -> str:
    """``scheme://host`` of the push endpoint: no port, path or trailing slash."""
    try:
        parsed = urlsplit(endpoint)
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidAudience(str(endpoint)) from e
    if not parsed.scheme or not parsed.hostname:
        raise InvalidAudience(endpoint)
    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    return f"{parsed.scheme}://{host}"


def build_claims(
    identity: VapidIdentity, endpoint: str, ttl: int = DEFAULT_TTL, now: Optional[float] = None
) -> VapidClaims:
    if isinstance(ttl, bool) or not isinstance(ttl, int) or not 0 < ttl <= MAX_TTL:
        raise InvalidClaims("exp", f"ttl must be between 1 and {MAX_TTL} seconds, got {ttl!r}")
    now = time.time() if now is None else now
    return VapidClaims(
        audience=get_audience(endpoint),
        expiry=int(now) + ttl,
        subject=identity.contact,
    )


def _segment(obj: dict) -> str:
    return b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def sign_token(identity: VapidIdentity, claims: VapidClaims) -> str:
    """Compact JWS: header.claims.signature, signature as raw ``r || s``."""
    signing_input = f"{_segment(JWT_HEADER)}.{_segment(claims.to_dict())}"
    try:
        der = identity.private_key.sign(signing_input.encode("ascii"), ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        signature = r.to_bytes(SIGNATURE_COMPONENT_LENGTH, "big") + s.to_bytes(
            SIGNATURE_COMPONENT_LENGTH, "big"
        )
    except Exception as e:
        raise SigningFailure(f"{type(e).__name__}: {e}", cause=e) from e
    return f"{signing_input}.{b64url_encode(signature)}"


def build_auth_header(
    identity: VapidIdentity, endpoint: str, ttl: int = DEFAULT_TTL, now: Optional[float] = None
) -> VapidHeaders:
    claims = build_claims(identity, endpoint, ttl=ttl, now=now)
    return VapidHeaders(
        authorization=f"WebPush {sign_token(identity, claims)}",
        crypto_key=f"p256ecdsa={export_public_key(identity)}",
    )


# ─── Token cache ─────────────────────────────────────────────

class VapidTokenCache:
    """Reuses signed headers per (identity, audience) until shortly before exp.

    Signing happens under the lock, so concurrent senders to the same push
    service produce a single token.
    """

    def __init__(self, ttl: int = DEFAULT_TTL, refresh_margin: Optional[int] = None):
        # Default margin: 5 minutes, or a tenth of short ttls
        if refresh_margin is None:
            refresh_margin = min(300, ttl // 10)
        if not 0 <= refresh_margin < ttl:
            raise ValueError("refresh_margin must be smaller than ttl")
        self.ttl = ttl
        self.refresh_margin = refresh_margin
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[bytes, str], Tuple[VapidHeaders, int]] = {}

    def get(self, identity: VapidIdentity, endpoint: str, now: Optional[float] = None) -> VapidHeaders:
        now = time.time() if now is None else now
        cache_key = (identity.public_key, get_audience(endpoint))

        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is not None and now < entry[1] - self.refresh_margin:
                return entry[0]

            claims = build_claims(identity, endpoint, ttl=self.ttl, now=now)
            headers = VapidHeaders(
                authorization=f"WebPush {sign_token(identity, claims)}",
                crypto_key=f"p256ecdsa={export_public_key(identity)}",
            )
            self._entries[cache_key] = (headers, claims.expiry)
            return headers

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
