"""Tests for aesgcm payload encryption."""

from unittest.mock import patch

import http_ece
import pytest

from push import EncryptionEnvelope, Subscription, bucket_padding, encrypt
from push.errors import InvalidPeerKey, InvalidSubscription, PayloadTooLarge
from push.utils import b64url_encode


class TestSubscriptionFromInfo:
    def test_decodes_keys(self, subscription_info, client_public_key, auth_secret):
        sub = Subscription.from_info(subscription_info)
        assert sub.endpoint == "https://push.example/abc"
        assert sub.client_public_key == client_public_key
        assert sub.auth_secret == auth_secret

    def test_accepts_padded_standard_base64(self, subscription_info, client_public_key):
        import base64

        subscription_info["keys"]["p256dh"] = base64.b64encode(client_public_key).decode()
        assert Subscription.from_info(subscription_info).client_public_key == client_public_key

    def test_missing_endpoint(self, subscription_info):
        del subscription_info["endpoint"]
        with pytest.raises(InvalidSubscription) as exc_info:
            Subscription.from_info(subscription_info)
        assert exc_info.value.field == "endpoint"

    @pytest.mark.parametrize("name", ["p256dh", "auth"])
    def test_missing_key(self, subscription_info, name):
        del subscription_info["keys"][name]
        with pytest.raises(InvalidSubscription) as exc_info:
            Subscription.from_info(subscription_info)
        assert exc_info.value.field == f"keys.{name}"

    def test_missing_keys_object(self, subscription_info):
        del subscription_info["keys"]
        with pytest.raises(InvalidSubscription):
            Subscription.from_info(subscription_info)

    def test_short_auth_secret(self, subscription_info):
        subscription_info["keys"]["auth"] = b64url_encode(b"\x01" * 12)
        with pytest.raises(InvalidSubscription, match="16 bytes"):
            Subscription.from_info(subscription_info)

    def test_wrong_public_key_length(self, subscription_info, client_public_key):
        subscription_info["keys"]["p256dh"] = b64url_encode(client_public_key[:33])
        with pytest.raises(InvalidSubscription) as exc_info:
            Subscription.from_info(subscription_info)
        assert exc_info.value.field == "keys.p256dh"

    def test_undecodable_key(self, subscription_info):
        subscription_info["keys"]["auth"] = "abcde"
        with pytest.raises(InvalidSubscription, match="base64"):
            Subscription.from_info(subscription_info)

    def test_non_alphabet_characters_rejected(self, subscription_info):
        encoded = subscription_info["keys"]["auth"]
        subscription_info["keys"]["auth"] = encoded[:4] + "!*" + encoded[4:]
        with pytest.raises(InvalidSubscription, match="base64"):
            Subscription.from_info(subscription_info)

    def test_not_a_mapping(self):
        with pytest.raises(InvalidSubscription):
            Subscription.from_info(["https://push.example"])


class TestEncrypt:
    def test_round_trip(self, subscription, decrypt):
        envelope = encrypt(b"hello", subscription)
        assert isinstance(envelope, EncryptionEnvelope)
        assert decrypt(envelope) == b"hello"

    def test_hello_envelope_shape(self, subscription):
        envelope = encrypt("hello", subscription)
        assert len(envelope.ciphertext) == len("hello") + 2 + 16
        assert len(envelope.salt) == 16
        assert len(envelope.server_public_key) == 65
        assert envelope.server_public_key[0] == 0x04

    def test_accepts_subscription_mapping(self, subscription_info, decrypt):
        envelope = encrypt(b'{"title": "hi"}', subscription_info)
        assert decrypt(envelope) == b'{"title": "hi"}'

    def test_unicode_text_is_utf8(self, subscription, decrypt):
        assert decrypt(encrypt("Grüße 🚀", subscription)) == "Grüße 🚀".encode("utf-8")

    def test_empty_payload(self, subscription, decrypt):
        envelope = encrypt(b"", subscription)
        assert len(envelope.ciphertext) == 2 + 16
        assert decrypt(envelope) == b""

    def test_padding_is_stripped_by_receiver(self, subscription, decrypt):
        envelope = encrypt(b"hello", subscription, padding=27)
        assert len(envelope.ciphertext) == 5 + 2 + 27 + 16
        assert decrypt(envelope) == b"hello"

    def test_fresh_salt_and_key_per_message(self, subscription):
        first = encrypt(b"same message", subscription)
        second = encrypt(b"same message", subscription)
        assert first.salt != second.salt
        assert first.server_public_key != second.server_public_key
        assert first.ciphertext != second.ciphertext

    def test_interoperates_with_http_ece(self, subscription, client_private_key, auth_secret):
        envelope = encrypt(b"interop payload", subscription, padding=3)
        plaintext = http_ece.decrypt(
            envelope.ciphertext,
            salt=envelope.salt,
            private_key=client_private_key,
            dh=envelope.server_public_key,
            auth_secret=auth_secret,
            version="aesgcm",
        )
        assert plaintext == b"interop payload"

    def test_max_size_boundary(self, subscription, decrypt):
        largest = b"x" * (4096 - 2)
        assert decrypt(encrypt(largest, subscription)) == largest

        with pytest.raises(PayloadTooLarge) as exc_info:
            encrypt(largest + b"x", subscription)
        assert exc_info.value.size == 4097
        assert exc_info.value.limit == 4096

    def test_padding_counts_towards_limit(self, subscription):
        with pytest.raises(PayloadTooLarge):
            encrypt(b"x" * 100, subscription, padding=4000)

    def test_custom_limit(self, subscription):
        with pytest.raises(PayloadTooLarge):
            encrypt(b"x" * 10, subscription, max_size=11)

    @pytest.mark.parametrize("padding", [-1, 0x10000])
    def test_padding_out_of_range(self, subscription, padding):
        with pytest.raises(ValueError):
            encrypt(b"hello", subscription, padding=padding)

    @pytest.mark.parametrize(
        "point",
        [
            b"\x04" + b"\x00" * 64,
            b"\x04" + (1).to_bytes(32, "big") + (1).to_bytes(32, "big"),
        ],
        ids=["identity", "off-curve"],
    )
    def test_invalid_peer_key_fails_before_any_crypto(self, auth_secret, point):
        sub = Subscription(endpoint="https://push.example/abc", client_public_key=point, auth_secret=auth_secret)
        with patch("push.encryption.derive_keys") as derive, patch("push.encryption.AESGCM") as aead:
            with pytest.raises(InvalidPeerKey):
                encrypt(b"hello", sub)
        derive.assert_not_called()
        aead.assert_not_called()

    def test_invalid_subscription_mapping(self):
        with pytest.raises(InvalidSubscription):
            encrypt(b"hello", {"endpoint": "https://push.example/abc"})


class TestBucketPadding:
    def test_rounds_up_to_bucket(self):
        assert bucket_padding(5, 32) == 25
        assert bucket_padding(30, 32) == 0
        assert bucket_padding(31, 32) == 31

    def test_disabled(self):
        assert bucket_padding(5, 0) == 0

    def test_never_exceeds_limit(self):
        assert bucket_padding(4090, 1024) == 4
        assert bucket_padding(4095, 1024) == 0

    def test_padded_payload_encrypts(self, subscription, decrypt):
        padding = bucket_padding(5, 64)
        envelope = encrypt(b"hello", subscription, padding=padding)
        assert len(envelope.ciphertext) == 64 + 16
        assert decrypt(envelope) == b"hello"


class TestSubscriptionConstruction:
    """Direct construction validates the same fields as from_info."""

    def test_short_public_key(self, auth_secret):
        with pytest.raises(InvalidSubscription) as exc_info:
            Subscription(endpoint="https://push.example/abc", client_public_key=b"\x04" * 33, auth_secret=auth_secret)
        assert exc_info.value.field == "keys.p256dh"

    def test_compressed_prefix(self, client_public_key, auth_secret):
        with pytest.raises(InvalidSubscription) as exc_info:
            Subscription(
                endpoint="https://push.example/abc",
                client_public_key=b"\x02" + client_public_key[1:],
                auth_secret=auth_secret,
            )
        assert exc_info.value.field == "keys.p256dh"

    def test_short_auth_secret(self, client_public_key):
        with pytest.raises(InvalidSubscription) as exc_info:
            Subscription(endpoint="https://push.example/abc", client_public_key=client_public_key, auth_secret=b"\x01" * 12)
        assert exc_info.value.field == "keys.auth"

    def test_missing_endpoint(self, client_public_key, auth_secret):
        with pytest.raises(InvalidSubscription) as exc_info:
            Subscription(endpoint="", client_public_key=client_public_key, auth_secret=auth_secret)
        assert exc_info.value.field == "endpoint"

    def test_encrypt_never_sees_invalid_subscription(self, client_public_key):
        with patch("push.encryption.generate_ephemeral_keypair") as keygen:
            with pytest.raises(InvalidSubscription):
                encrypt(
                    b"hello",
                    Subscription(endpoint="https://push.example/abc", client_public_key=client_public_key, auth_secret=b"\x01" * 12),
                )
        keygen.assert_not_called()
