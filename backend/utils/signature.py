# backend/utils/signature.py
"""Razorpay payment signature checks.

The gateway signs `"{order_id}|{payment_id}"` with the key secret using
HMAC-SHA256 and hands the lowercase hex digest to the browser. A payment is
trusted only if we can reproduce that digest.
"""
import hashlib
import hmac
import logging
from typing import Callable, Optional

from config import settings

logger = logging.getLogger(__name__)


def signature_message(order_id: str, payment_id: str) -> bytes:
    return f"{order_id}|{payment_id}".encode("utf-8")


def generate_signature(order_id: str, payment_id: str, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        signature_message(order_id, payment_id),
        hashlib.sha256,
    ).hexdigest()


def verify_payment_signature(order_id, payment_id, signature, secret) -> bool:
    """Return True only if `signature` is the gateway's signature for this payment.

    Never raises: a missing secret or malformed input is a failed verification.
    Those cases are logged separately from a plain mismatch.
    """
    if not secret:
        logger.error("Payment signature check skipped: gateway secret is not configured")
        return False

    for name, value in (("order_id", order_id), ("payment_id", payment_id), ("signature", signature)):
        if not isinstance(value, str) or not value:
            logger.warning("Malformed payment callback: %s is missing or not a string", name)
            return False

    try:
        expected = generate_signature(order_id, payment_id, secret)
        valid = hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
    except Exception:
        logger.exception("Payment signature check failed for order %s", order_id)
        return False

    if not valid:
        logger.warning("Payment signature mismatch for order=%s payment=%s", order_id, payment_id)
    return valid


class PaymentVerifier:
    """Signature verification bound to a source of the gateway secret."""

    def __init__(self, secret_provider: Optional[Callable[[], Optional[str]]] = None):
        self.secret_provider = secret_provider or (lambda: settings.RAZORPAY_KEY_SECRET)

    def verify(self, order_id, payment_id, signature) -> bool:
        try:
            secret = self.secret_provider()
        except Exception:
            logger.exception("Could not load the gateway secret")
            return False
        return verify_payment_signature(order_id, payment_id, signature, secret)


payment_verifier = PaymentVerifier()
