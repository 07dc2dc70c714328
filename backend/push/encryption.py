"""Payload encryption for the ``aesgcm`` Web Push content encoding."""

import os
import struct
from dataclasses import dataclass
from typing import Mapping, Union

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from push.derivation import AUTH_SECRET_LENGTH, SALT_LENGTH, derive_keys
from push.errors import InvalidSubscription, PayloadTooLarge
from push.keys import PUBLIC_KEY_LENGTH, generate_ephemeral_keypair, load_peer_public_key
from push.utils import b64url_decode

MAX_PAYLOAD_SIZE = 4096
PAD_LENGTH_SIZE = 2
MAX_PADDING = 0xFFFF


@dataclass(frozen=True)
class Subscription:
    endpoint: str
    client_public_key: bytes
    auth_secret: bytes

    def __post_init__(self):
        if not self.endpoint or not isinstance(self.endpoint, str):
            raise InvalidSubscription("endpoint", "missing")

        key = self.client_public_key
        if not isinstance(key, (bytes, bytearray)) or len(key) != PUBLIC_KEY_LENGTH or key[0] != 0x04:
            size = len(key) if isinstance(key, (bytes, bytearray)) else type(key).__name__
            raise InvalidSubscription(
                "keys.p256dh",
                f"expected a {PUBLIC_KEY_LENGTH}-byte uncompressed point, got {size}",
            )

        auth = self.auth_secret
        if not isinstance(auth, (bytes, bytearray)) or len(auth) != AUTH_SECRET_LENGTH:
            size = len(auth) if isinstance(auth, (bytes, bytearray)) else type(auth).__name__
            raise InvalidSubscription(
                "keys.auth", f"expected {AUTH_SECRET_LENGTH} bytes, got {size}"
            )

    @classmethod
    def from_info(cls, info: Mapping) -> "Subscription":
        """Build from the browser's ``PushSubscription.toJSON()`` shape."""
        if not isinstance(info, Mapping):
            raise InvalidSubscription("subscription", "expected a mapping")

        endpoint = info.get("endpoint")
        if not endpoint or not isinstance(endpoint, str):
            raise InvalidSubscription("endpoint", "missing")

        keys = info.get("keys")
        if not isinstance(keys, Mapping):
            raise InvalidSubscription("keys", "missing")

        return cls(
            endpoint=endpoint,
            client_public_key=_decode_key(keys, "p256dh"),
            auth_secret=_decode_key(keys, "auth"),
        )


def _decode_key(keys: Mapping, name: str) -> bytes:
    value = keys.get(name)
    if not value:
        raise InvalidSubscription(f"keys.{name}", "missing")
    try:
        return b64url_decode(value)
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidSubscription(f"keys.{name}", f"not valid base64url ({e})") from e


@dataclass(frozen=True)
class EncryptionSession:
    """Per-message key material. Never leaves ``encrypt``."""

    server_private_key: ec.EllipticCurvePrivateKey
    server_public_key: bytes
    salt: bytes
    shared_secret: bytes


@dataclass(frozen=True)
class EncryptionEnvelope:
    salt: bytes
    server_public_key: bytes
    ciphertext: bytes


def _new_session(peer: ec.EllipticCurvePublicKey) -> EncryptionSession:
    private_key, public_key = generate_ephemeral_keypair()
    return EncryptionSession(
        server_private_key=private_key,
        server_public_key=public_key,
        salt=os.urandom(SALT_LENGTH),
        shared_secret=private_key.exchange(ec.ECDH(), peer),
    )


def bucket_padding(length: int, bucket: int, max_size: int = MAX_PAYLOAD_SIZE) -> int:
    """Padding that rounds the padded record up to a multiple of *bucket*.

    Never pads past *max_size*; a payload already over the limit gets none and
    is rejected by ``encrypt``.
    """
    if bucket <= 0:
        return 0
    padded = PAD_LENGTH_SIZE + length
    target = min(-(-padded // bucket) * bucket, max_size)
    return min(max(0, target - padded), MAX_PADDING)


def encrypt(
    plaintext: Union[bytes, str],
    subscription: Union[Subscription, Mapping],
    padding: int = 0,
    max_size: int = MAX_PAYLOAD_SIZE,
) -> EncryptionEnvelope:
    """Encrypt *plaintext* for *subscription*.

    A new salt and ephemeral key pair are generated on every call. The record
    is ``u16be(padding) || zeros(padding) || plaintext``, sealed with
    AES-128-GCM and no associated data.
    """
    if not isinstance(subscription, Subscription):
        subscription = Subscription.from_info(subscription)
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    if not 0 <= padding <= MAX_PADDING:
        raise ValueError(f"padding must be between 0 and {MAX_PADDING}, got {padding}")

    size = PAD_LENGTH_SIZE + padding + len(plaintext)
    if size > max_size:
        raise PayloadTooLarge(size, max_size)

    peer = load_peer_public_key(subscription.client_public_key)
    session = _new_session(peer)

    keys = derive_keys(
        session.shared_secret,
        subscription.auth_secret,
        session.salt,
        subscription.client_public_key,
        session.server_public_key,
    )
    record = struct.pack("!H", padding) + b"\x00" * padding + bytes(plaintext)
    ciphertext = AESGCM(keys.key).encrypt(keys.nonce, record, None)

    return EncryptionEnvelope(
        salt=session.salt,
        server_public_key=session.server_public_key,
        ciphertext=ciphertext,
    )
