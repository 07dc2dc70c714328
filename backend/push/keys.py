"""Ephemeral P-256 key agreement (ECDH).

Peer keys are validated against the curve equation before they are handed
to the library, so an invalid-curve point never reaches the exchange.
"""

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from push.errors import InvalidPeerKey

CURVE = ec.SECP256R1()
KEY_LABEL = b"P-256"
PUBLIC_KEY_LENGTH = 65
SHARED_SECRET_LENGTH = 32

# NIST P-256 domain parameters (a = -3)
_P = 0xFFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFF
_B = 0x5AC635D8AA3A93E7B3EBBD55769886BC651D06B0CC53B0F63BCE3C3E27D2604B


def public_key_bytes(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Uncompressed X9.62 point (0x04 || x || y), the browser PushManager format."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )


def generate_ephemeral_keypair():
    """Return a fresh (private_key, public_key_bytes) pair on P-256."""
    private_key = ec.generate_private_key(CURVE)
    return private_key, public_key_bytes(private_key.public_key())


def validate_point(data: bytes) -> None:
    if not isinstance(data, (bytes, bytearray)):
        raise InvalidPeerKey("expected bytes")
    if len(data) == 1 and data[0] == 0x00:
        raise InvalidPeerKey("point at infinity")
    if len(data) != PUBLIC_KEY_LENGTH:
        raise InvalidPeerKey(f"expected {PUBLIC_KEY_LENGTH} bytes, got {len(data)}")
    if data[0] != 0x04:
        raise InvalidPeerKey("not an uncompressed point")

    x = int.from_bytes(data[1:33], "big")
    y = int.from_bytes(data[33:], "big")
    if x == 0 and y == 0:
        raise InvalidPeerKey("point at infinity")
    if x >= _P or y >= _P:
        raise InvalidPeerKey("coordinate out of field range")
    if (y * y - (x * x * x - 3 * x + _B)) % _P != 0:
        raise InvalidPeerKey("point is not on the P-256 curve")


def load_peer_public_key(data: bytes) -> ec.EllipticCurvePublicKey:
    validate_point(data)
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, bytes(data))
    except ValueError as e:
        raise InvalidPeerKey(str(e)) from e


def compute_shared_secret(private_key: ec.EllipticCurvePrivateKey, peer_public_key: bytes) -> bytes:
    """ECDH; returns the 32-byte x-coordinate of the shared point."""
    peer = load_peer_public_key(peer_public_key)
    return private_key.exchange(ec.ECDH(), peer)
