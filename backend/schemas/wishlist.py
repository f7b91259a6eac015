from pydantic import BaseModel
from datetime import datetime
from typing import List

# Request schema for saving a product to the wishlist
class WishlistAdd(BaseModel):
    product_id: int

class WishlistItemOut(BaseModel):
    product_id: int
    created_at: datetime

    class Config:
        from_attributes = True

class WishlistOut(BaseModel):
    items: List[WishlistItemOut]
