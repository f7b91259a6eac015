"""Tests for utils.signature: Razorpay payment signature verification."""

import hashlib
import hmac

import pytest

from utils.signature import PaymentVerifier, generate_signature, verify_payment_signature

SECRET = "s3cr3t"
ORDER_ID = "order_abc"
PAYMENT_ID = "pay_xyz"


def expected_signature():
    return hmac.new(SECRET.encode(), b"order_abc|pay_xyz", hashlib.sha256).hexdigest()


def flip_bit(value: str, index: int) -> str:
    return value[:index] + chr(ord(value[index]) ^ 1) + value[index + 1:]


class TestVerifyPaymentSignature:
    def test_gateway_signature_accepted(self):
        assert generate_signature(ORDER_ID, PAYMENT_ID, SECRET) == expected_signature()
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, expected_signature(), SECRET) is True

    @pytest.mark.parametrize("signature", ["", "deadbeef", "order_abc|pay_xyz", " " + "0" * 63])
    def test_other_strings_rejected(self, signature):
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, SECRET) is False

    def test_uppercase_hex_rejected(self):
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, expected_signature().upper(), SECRET) is False

    def test_idempotent(self):
        sig = expected_signature()
        first = verify_payment_signature(ORDER_ID, PAYMENT_ID, sig, SECRET)
        second = verify_payment_signature(ORDER_ID, PAYMENT_ID, sig, SECRET)
        assert first is second is True
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, "bad", SECRET) is \
            verify_payment_signature(ORDER_ID, PAYMENT_ID, "bad", SECRET) is False

    def test_any_bit_flip_in_signature_rejected(self):
        sig = expected_signature()
        for i in range(len(sig)):
            assert verify_payment_signature(ORDER_ID, PAYMENT_ID, flip_bit(sig, i), SECRET) is False

    def test_any_bit_flip_in_order_id_rejected(self):
        sig = expected_signature()
        for i in range(len(ORDER_ID)):
            assert verify_payment_signature(flip_bit(ORDER_ID, i), PAYMENT_ID, sig, SECRET) is False

    def test_any_bit_flip_in_payment_id_rejected(self):
        sig = expected_signature()
        for i in range(len(PAYMENT_ID)):
            assert verify_payment_signature(ORDER_ID, flip_bit(PAYMENT_ID, i), sig, SECRET) is False

    def test_fields_are_not_interchangeable(self):
        sig = expected_signature()
        assert verify_payment_signature(PAYMENT_ID, ORDER_ID, sig, SECRET) is False

    def test_wrong_secret_rejected(self):
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, expected_signature(), "other") is False

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_is_false_not_an_error(self, secret):
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, expected_signature(), secret) is False

    @pytest.mark.parametrize("order_id,payment_id,signature", [
        (None, PAYMENT_ID, "x"),
        (ORDER_ID, None, "x"),
        (ORDER_ID, PAYMENT_ID, None),
        (123, PAYMENT_ID, "x"),
        (ORDER_ID, PAYMENT_ID, b"bytes"),
        ("", PAYMENT_ID, "x"),
    ])
    def test_malformed_input_is_false(self, order_id, payment_id, signature):
        assert verify_payment_signature(order_id, payment_id, signature, SECRET) is False

    def test_non_ascii_signature_is_false(self):
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, "é" * 64, SECRET) is False

    def test_mismatch_is_logged(self, caplog):
        with caplog.at_level("WARNING", logger="utils.signature"):
            verify_payment_signature(ORDER_ID, PAYMENT_ID, "bad", SECRET)
        assert "mismatch" in caplog.text

    def test_missing_secret_logged_as_error(self, caplog):
        with caplog.at_level("ERROR", logger="utils.signature"):
            verify_payment_signature(ORDER_ID, PAYMENT_ID, "bad", None)
        assert "not configured" in caplog.text


class TestPaymentVerifier:
    def test_uses_secret_provider(self):
        verifier = PaymentVerifier(lambda: SECRET)
        assert verifier.verify(ORDER_ID, PAYMENT_ID, expected_signature()) is True
        assert verifier.verify(ORDER_ID, PAYMENT_ID, "nope") is False

    def test_failing_secret_provider_is_false(self):
        def broken():
            raise RuntimeError("vault down")

        assert PaymentVerifier(broken).verify(ORDER_ID, PAYMENT_ID, expected_signature()) is False

    def test_defaults_to_configured_secret(self):
        # conftest configures RAZORPAY_KEY_SECRET=s3cr3t
        assert PaymentVerifier().verify(ORDER_ID, PAYMENT_ID, expected_signature()) is True
