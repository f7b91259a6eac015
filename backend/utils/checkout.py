# backend/utils/checkout.py
"""Turns a verified payment into exactly one persisted order."""
import logging
import random
import time
from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.discount import DiscountCode
from models.order import Order, PaymentOrder
from utils.clock import utcnow
from utils.errors import (
    AlreadyProcessed,
    AmountMismatch,
    DiscountUsageExceeded,
    EmptyCart,
    InvalidStatusTransition,
    UnknownPaymentOrder,
    VerificationFailed,
)
from utils.pricing import cart_total, db_discount_lookup, evaluate_discount, round_money
from utils.razorpay_client import to_minor_units
from utils.signature import PaymentVerifier

logger = logging.getLogger(__name__)

# Forward order of the fulfillment workflow; cancelled sits outside it
STATUS_FLOW = ("pending", "processing", "shipped", "delivered")
TERMINAL_STATUSES = {"delivered", "cancelled"}

ORDER_NUMBER_ATTEMPTS = 3


def generate_order_number(now: Optional[datetime] = None) -> str:
    """Epoch millis plus a random suffix.

    Not cryptographic: uniqueness is best-effort and backed by the unique index
    on orders.order_number.
    """
    millis = int((now.timestamp() if now else time.time()) * 1000)
    return f"ORD{millis}{random.randint(0, 999):03d}"


def can_transition(old: str, new: str) -> bool:
    if old == new or old in TERMINAL_STATUSES:
        return False
    if new == "cancelled":
        return True
    if old not in STATUS_FLOW or new not in STATUS_FLOW:
        return False
    return STATUS_FLOW.index(new) > STATUS_FLOW.index(old)


def change_order_status(order: Order, new_status: str) -> str:
    """Apply a workflow transition and return the previous status."""
    old_status = order.status
    if not can_transition(old_status, new_status):
        raise InvalidStatusTransition(old_status, new_status)
    order.status = new_status
    return old_status


def consume_discount_use(db: Session, code: str) -> bool:
    """Atomically take one use of `code`. False when the code is capped or inactive.

    The cap check happens inside the UPDATE so two concurrent checkouts cannot
    both slip under max_uses.
    """
    stmt = (
        update(DiscountCode)
        .where(
            DiscountCode.code == code,
            DiscountCode.active.is_(True),
            or_(DiscountCode.max_uses.is_(None), DiscountCode.current_uses < DiscountCode.max_uses),
        )
        .values(current_uses=DiscountCode.current_uses + 1, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount == 1


def snapshot_items(items: Iterable) -> list:
    snapshot = []
    for line in items:
        data = line if isinstance(line, dict) else line.model_dump()
        snapshot.append({
            **data,
            "product_id": data["product_id"],
            "unit_price": str(round_money(data["unit_price"])),
            "quantity": int(data["quantity"]),
        })
    return snapshot


class OrderFinalizer:
    def __init__(self, db: Session, verifier: PaymentVerifier, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.verifier = verifier
        self.clock = clock

    def _existing_order(self, payment_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.payment_id == payment_id).first()

    def _already_processed(self, existing: Order, user_id: str, gateway_order_id: str) -> Exception:
        # A replayed callback only ever reveals an order to the customer who placed it
        if existing.user_id != user_id:
            logger.warning(
                "User %s replayed payment %s owned by %s", user_id, existing.payment_id, existing.user_id
            )
            return UnknownPaymentOrder(gateway_order_id)
        logger.warning("Payment %s already finalized as %s", existing.payment_id, existing.order_number)
        return AlreadyProcessed(existing)

    def finalize(
        self,
        *,
        user_id: str,
        items: list,
        shipping_address: dict,
        gateway_order_id: str,
        payment_id: str,
        signature: str,
        discount_code: Optional[str] = None,
    ) -> Order:
        # Nothing is read or written for a payment we cannot prove happened
        if not self.verifier.verify(gateway_order_id, payment_id, signature):
            raise VerificationFailed(gateway_order_id, payment_id)

        existing = self._existing_order(payment_id)
        if existing is not None:
            raise self._already_processed(existing, user_id, gateway_order_id)

        payment_order = self.db.query(PaymentOrder).filter(
            PaymentOrder.gateway_order_id == gateway_order_id
        ).first()
        if payment_order is None or payment_order.user_id != user_id:
            raise UnknownPaymentOrder(gateway_order_id)

        if not items:
            raise EmptyCart()

        # Re-price on the server; the discount window is judged at the moment the amount was locked in
        pricing = evaluate_discount(
            cart_total(items),
            discount_code,
            payment_order.created_at or self.clock(),
            db_discount_lookup(self.db),
        )
        expected_minor = to_minor_units(pricing.final_total)
        if expected_minor != payment_order.amount_minor:
            logger.warning(
                "Amount mismatch for %s: cart=%s paid=%s", gateway_order_id, expected_minor, payment_order.amount_minor
            )
            raise AmountMismatch(expected_minor, payment_order.amount_minor)

        applied = pricing.applied_discount
        snapshot = snapshot_items(items)

        # Order insert and usage increment commit together or not at all.
        # An order_number collision gets a fresh number; a payment_id collision means
        # a concurrent request finalized this payment first.
        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order = Order(
                order_number=generate_order_number(self.clock()),
                user_id=user_id,
                status="processing",
                total_amount=pricing.final_total,
                items=snapshot,
                shipping_address=shipping_address,
                payment_id=payment_id,
                gateway_order_id=gateway_order_id,
                discount_code=applied.code if applied else None,
                discount_amount=pricing.discount_amount,
            )
            try:
                self.db.add(order)
                self.db.flush()
                if applied and not consume_discount_use(self.db, applied.code):
                    self.db.rollback()
                    logger.warning("Discount %s ran out while finalizing payment %s", applied.code, payment_id)
                    raise DiscountUsageExceeded(applied.code)
                self.db.commit()
                break
            except IntegrityError:
                self.db.rollback()
                existing = self._existing_order(payment_id)
                if existing is not None:
                    raise self._already_processed(existing, user_id, gateway_order_id)
                if attempt == ORDER_NUMBER_ATTEMPTS:
                    logger.error("Could not allocate an order number for payment %s", payment_id)
                    raise
                logger.warning("Order number %s already taken, retrying", order.order_number)

        self.db.refresh(order)
        logger.info(
            "Order %s finalized for payment %s (total=%s, discount=%s)",
            order.order_number, payment_id, order.total_amount, order.discount_code,
        )
        return order
