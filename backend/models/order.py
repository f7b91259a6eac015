from sqlalchemy import Column, Integer, String, Numeric, DateTime, JSON, CheckConstraint
from database import Base
from utils.clock import utcnow

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    # Human-facing reference shown on confirmation and tracking pages
    order_number = Column(String(40), unique=True, nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="processing", index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)

    # Snapshots taken at checkout, never rewritten afterwards
    items = Column(JSON, nullable=False)
    shipping_address = Column(JSON, nullable=False)

    # Payment integration details; payment_id doubles as the idempotency key
    payment_id = Column(String(64), unique=True, nullable=True)
    gateway_order_id = Column(String(64), nullable=True, index=True)

    discount_code = Column(String(64), nullable=True)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled')",
            name="ck_order_status",
        ),
    )


# Local record of an order created on the payment gateway, used to reconcile amounts
class PaymentOrder(Base):
    __tablename__ = "payment_orders"

    id = Column(Integer, primary_key=True, index=True)
    gateway_order_id = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    amount_minor = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
    receipt = Column(String(40), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
