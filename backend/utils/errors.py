# backend/utils/errors.py
"""Domain exceptions for checkout, pricing and payment handling.

Routes translate these into HTTP responses; nothing below knows about HTTP.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class ConfigError(StorefrontError):
    """Raised when server-side credentials or settings are missing."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(f"Missing configuration: {setting}")


class ValidationError(StorefrontError):
    """A request was understood but rejected by a business rule.

    `reason` is a stable machine-readable code shown to the client next to the message.
    """

    reason = "invalid"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DiscountNotFound(ValidationError):
    reason = "not_found"

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Discount code {code} does not exist")


class DiscountInactive(ValidationError):
    reason = "inactive"

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Discount code {code} is not active")


class DiscountOutOfWindow(ValidationError):
    reason = "out_of_window"

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Discount code {code} is not currently valid")


class DiscountUsageExceeded(ValidationError):
    reason = "usage_exceeded"

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Discount code {code} has reached its usage limit")


class BelowMinimumPurchase(ValidationError):
    reason = "below_minimum"

    def __init__(self, code: str, minimum):
        self.code = code
        self.minimum = minimum
        super().__init__(f"Minimum purchase of {minimum} required for {code}")


class InvalidAmount(ValidationError):
    reason = "invalid_amount"


class EmptyCart(ValidationError):
    reason = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty")


class AmountMismatch(ValidationError):
    """The recomputed total differs from what the gateway order was created for."""

    reason = "amount_mismatch"

    def __init__(self, expected_minor: int, charged_minor: int):
        self.expected_minor = expected_minor
        self.charged_minor = charged_minor
        super().__init__(
            f"Order total {expected_minor} does not match the paid amount {charged_minor}"
        )


class UnknownPaymentOrder(ValidationError):
    reason = "unknown_payment_order"

    def __init__(self, gateway_order_id: str):
        self.gateway_order_id = gateway_order_id
        super().__init__(f"Payment order {gateway_order_id} was not created by this store")


class InvalidStatusTransition(ValidationError):
    reason = "invalid_transition"

    def __init__(self, old: str, new: str):
        self.old = old
        self.new = new
        super().__init__(f"Cannot change status from {old} to {new}")


class GatewayUnavailable(StorefrontError):
    """Network or HTTP failure talking to the payment gateway. Callers may retry."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class VerificationFailed(StorefrontError):
    """The payment signature did not match. Never retried."""

    def __init__(self, gateway_order_id: str, payment_id: str):
        self.gateway_order_id = gateway_order_id
        self.payment_id = payment_id
        super().__init__(f"Payment {payment_id} for {gateway_order_id} could not be verified")


class AlreadyProcessed(StorefrontError):
    """An order already exists for this payment id."""

    def __init__(self, order):
        self.order = order
        super().__init__(f"Payment {order.payment_id} already produced order {order.order_number}")
