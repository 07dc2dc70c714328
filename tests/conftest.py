"""Shared fixtures: a browser-side key pair, a subscription and a VAPID identity."""

import os
import struct

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from push import Subscription, generate_vapid_identity
from push.keys import public_key_bytes
from push.utils import b64url_encode

ENDPOINT = "https://push.example/abc"


@pytest.fixture
def client_private_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def client_public_key(client_private_key):
    return public_key_bytes(client_private_key.public_key())


@pytest.fixture
def auth_secret():
    return os.urandom(16)


@pytest.fixture
def subscription_info(client_public_key, auth_secret):
    return {
        "endpoint": ENDPOINT,
        "keys": {
            "p256dh": b64url_encode(client_public_key),
            "auth": b64url_encode(auth_secret),
        },
    }


@pytest.fixture
def subscription(subscription_info):
    return Subscription.from_info(subscription_info)


@pytest.fixture(scope="session")
def identity():
    return generate_vapid_identity("mailto:ops@example.com")


def _hkdf(salt, ikm, info, length):
    return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


@pytest.fixture
def decrypt(client_private_key, client_public_key, auth_secret):
    """What the receiving browser does with an aesgcm message."""

    def _decrypt(envelope):
        server_key = ec.EllipticCurvePublicKey.from_encoded_point(
            ec.SECP256R1(), envelope.server_public_key
        )
        secret = client_private_key.exchange(ec.ECDH(), server_key)
        ikm = _hkdf(auth_secret, secret, b"Content-Encoding: auth\x00", 32)
        context = (
            b"P-256\x00"
            + struct.pack("!H", len(client_public_key)) + client_public_key
            + struct.pack("!H", len(envelope.server_public_key)) + envelope.server_public_key
        )
        key = _hkdf(envelope.salt, ikm, b"Content-Encoding: aesgcm\x00" + context, 16)
        nonce = _hkdf(envelope.salt, ikm, b"Content-Encoding: nonce\x00" + context, 12)

        record = AESGCM(key).decrypt(nonce, envelope.ciphertext, None)
        pad = struct.unpack("!H", record[:2])[0]
        assert record[2:2 + pad] == b"\x00" * pad
        return record[2 + pad:]

    return _decrypt
