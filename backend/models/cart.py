# backend/models/cart.py
from sqlalchemy import Column, Integer, String, DateTime, JSON
from database import Base
from utils.clock import utcnow

# Server-side copy of a user's cart, synced across devices
class SavedCart(Base):
    __tablename__ = "saved_carts" # Table name

    id = Column(Integer, primary_key=True, index=True) # Primary key
    user_id = Column(String(64), unique=True, index=True, nullable=False) # One saved cart per user
    cart_items = Column(JSON, nullable=False, default=list) # List of {product_id, unit_price, quantity}
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow) # Last sync timestamp
