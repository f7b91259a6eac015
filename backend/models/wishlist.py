# backend/models/wishlist.py
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from database import Base
from utils.clock import utcnow

# A product saved by a user for later
class WishlistItem(Base):
    __tablename__ = "wishlists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), index=True, nullable=False)
    product_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        # Prevent saving the same product twice
        UniqueConstraint("user_id", "product_id", name="uq_wishlist_user_product"),
    )
