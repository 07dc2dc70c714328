"""HKDF key schedule for the ``aesgcm`` content encoding.

The receiving browser runs the same steps from the salt and the server's
public key, so every byte of the info strings matters.
"""

import struct
from typing import NamedTuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from push.errors import InvalidKeyMaterial
from push.keys import KEY_LABEL, PUBLIC_KEY_LENGTH, SHARED_SECRET_LENGTH

AUTH_SECRET_LENGTH = 16
SALT_LENGTH = 16
KEY_LENGTH = 16
NONCE_LENGTH = 12

AUTH_INFO = b"Content-Encoding: auth\x00"
CEK_INFO = b"Content-Encoding: aesgcm\x00"
NONCE_INFO = b"Content-Encoding: nonce\x00"


class DerivedKeys(NamedTuple):
    key: bytes
    nonce: bytes


def _hkdf(salt: bytes, ikm: bytes, info: bytes, length: int) -> bytes:
    return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


def _check(field: str, value: bytes, length: int) -> None:
    if not isinstance(value, (bytes, bytearray)):
        raise InvalidKeyMaterial(field, "expected bytes")
    if len(value) != length:
        raise InvalidKeyMaterial(field, f"expected {length} bytes, got {len(value)}")


def build_context(client_public_key: bytes, server_public_key: bytes) -> bytes:
    """``label || 0x00 || len(client) || client || len(server) || server``."""
    return (
        KEY_LABEL + b"\x00"
        + struct.pack("!H", len(client_public_key)) + client_public_key
        + struct.pack("!H", len(server_public_key)) + server_public_key
    )


def derive_keys(
    shared_secret: bytes,
    auth_secret: bytes,
    salt: bytes,
    client_public_key: bytes,
    server_public_key: bytes,
) -> DerivedKeys:
    """Derive the 16-byte content-encryption key and 12-byte nonce.

    The first HKDF (salted with the auth secret) binds the ECDH output to the
    secret only the client and sender know. Its output is then expanded with
    the message salt, once per label, with the key-pair context appended.
    """
    _check("shared_secret", shared_secret, SHARED_SECRET_LENGTH)
    _check("auth_secret", auth_secret, AUTH_SECRET_LENGTH)
    _check("salt", salt, SALT_LENGTH)
    _check("client_public_key", client_public_key, PUBLIC_KEY_LENGTH)
    _check("server_public_key", server_public_key, PUBLIC_KEY_LENGTH)

    ikm = _hkdf(bytes(auth_secret), bytes(shared_secret), AUTH_INFO, 32)
    context = build_context(bytes(client_public_key), bytes(server_public_key))

    return DerivedKeys(
        key=_hkdf(bytes(salt), ikm, CEK_INFO + context, KEY_LENGTH),
        nonce=_hkdf(bytes(salt), ikm, NONCE_INFO + context, NONCE_LENGTH),
    )
