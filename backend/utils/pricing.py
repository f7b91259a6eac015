# backend/utils/pricing.py
"""Cart totals and discount-code evaluation.

Evaluation is side-effect free: the UI may re-price a cart as often as it likes
without consuming a use of the code. Usage is only counted when an order is
finalized (see utils.checkout).
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Optional

from models.discount import DiscountCode
from utils.clock import as_utc, utcnow
from utils.errors import (
    BelowMinimumPurchase,
    DiscountInactive,
    DiscountNotFound,
    DiscountOutOfWindow,
    DiscountUsageExceeded,
    InvalidAmount,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")

PERCENTAGE = "percentage"
FIXED = "fixed"
DISCOUNT_TYPES = (PERCENTAGE, FIXED)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # Going through str keeps 0.1 as 0.1 instead of its binary float expansion
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Round to the smallest currency unit, half-up."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def normalize_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    code = code.strip().upper()
    return code or None


def cart_total(lines: Iterable) -> Decimal:
    """Sum unit_price * quantity over cart lines (objects or dicts)."""
    total = Decimal("0")
    for line in lines:
        if isinstance(line, dict):
            unit_price, quantity = line["unit_price"], line["quantity"]
        else:
            unit_price, quantity = line.unit_price, line.quantity
        total += to_decimal(unit_price) * int(quantity)
    return round_money(total)


@dataclass(frozen=True)
class AppliedDiscount:
    code: str
    discount_type: str
    discount_value: Decimal
    amount: Decimal


@dataclass(frozen=True)
class PricingResult:
    cart_total: Decimal
    final_total: Decimal
    applied_discount: Optional[AppliedDiscount] = None

    @property
    def discount_amount(self) -> Decimal:
        return self.applied_discount.amount if self.applied_discount else Decimal("0.00")


def check_applicable(discount, total: Decimal, now: datetime) -> None:
    """Raise the first rule the discount fails for this cart total at `now`."""
    code = discount.code
    if not discount.active:
        raise DiscountInactive(code)

    now = as_utc(now)
    if discount.valid_from is not None and now < as_utc(discount.valid_from):
        raise DiscountOutOfWindow(code)
    if discount.valid_until is not None and now > as_utc(discount.valid_until):
        raise DiscountOutOfWindow(code)

    if discount.max_uses is not None and (discount.current_uses or 0) >= discount.max_uses:
        raise DiscountUsageExceeded(code)

    minimum = to_decimal(discount.min_purchase_amount or 0)
    if total < minimum:
        raise BelowMinimumPurchase(code, minimum)


def compute_discount_amount(discount_type: str, value, total: Decimal) -> Decimal:
    value = to_decimal(value)
    if discount_type == PERCENTAGE:
        raw = total * value / HUNDRED
    elif discount_type == FIXED:
        raw = value
    else:
        raise ValueError(f"Unknown discount type: {discount_type}")
    # A discount never pushes the total below zero, nor raises it
    clamped = min(max(raw, Decimal("0")), total)
    return round_money(clamped)


def evaluate_discount(
    cart_total: Decimal,
    code: Optional[str],
    now: datetime,
    lookup_discount: Callable[[str], object],
) -> PricingResult:
    """Compute the chargeable total for a cart and an optional discount code.

    `lookup_discount` receives the normalized (upper-case) code and returns a
    discount record or None.
    """
    total = round_money(cart_total)
    if total < 0:
        raise InvalidAmount(f"Cart total cannot be negative: {total}")

    normalized = normalize_code(code)
    if normalized is None:
        return PricingResult(cart_total=total, final_total=total)

    discount = lookup_discount(normalized)
    if discount is None:
        raise DiscountNotFound(normalized)

    check_applicable(discount, total, now)

    amount = compute_discount_amount(discount.discount_type, discount.discount_value, total)
    applied = AppliedDiscount(
        code=normalized,
        discount_type=discount.discount_type,
        discount_value=to_decimal(discount.discount_value),
        amount=amount,
    )
    logger.debug("Discount %s applied to %s: -%s", normalized, total, amount)
    return PricingResult(cart_total=total, final_total=total - amount, applied_discount=applied)


class DiscountEvaluator:
    """evaluate_discount bound to a discount source and a clock."""

    def __init__(self, lookup_discount: Callable[[str], object], clock: Callable[[], datetime] = utcnow):
        self.lookup_discount = lookup_discount
        self.clock = clock

    def evaluate(self, cart_total, code: Optional[str] = None, now: Optional[datetime] = None) -> PricingResult:
        return evaluate_discount(
            to_decimal(cart_total),
            code,
            now or self.clock(),
            self.lookup_discount,
        )


def db_discount_lookup(db):
    """Discount lookup backed by the discount_codes table."""
    def _lookup(code: str):
        return db.query(DiscountCode).filter(DiscountCode.code == code).first()

    return _lookup
