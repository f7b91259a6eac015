from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, CheckConstraint
from database import Base
from utils.clock import utcnow

# Represents a discount code redeemable at checkout
class DiscountCode(Base):
    __tablename__ = "discount_codes"

    id = Column(Integer, primary_key=True, index=True)
    # Stored upper-case so lookups are case-insensitive
    code = Column(String(64), unique=True, nullable=False, index=True)
    discount_type = Column(String(16), nullable=False)  # "percentage" or "fixed"
    discount_value = Column(Numeric(12, 2), nullable=False)

    # Validity window, open-ended when valid_until is NULL
    valid_from = Column(DateTime(timezone=True), nullable=True, default=utcnow)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    # Usage accounting, max_uses NULL means unlimited
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)
    min_purchase_amount = Column(Numeric(12, 2), nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("discount_type IN ('percentage', 'fixed')", name="ck_discount_type"),
        CheckConstraint("discount_value >= 0", name="ck_discount_value_positive"),
        CheckConstraint("current_uses >= 0", name="ck_discount_uses_positive"),
        CheckConstraint("max_uses IS NULL OR current_uses <= max_uses", name="ck_discount_uses_cap"),
    )
