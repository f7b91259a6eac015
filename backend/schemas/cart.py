from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional

# A single cart line as sent by the storefront
class CartLine(BaseModel):
    product_id: int
    name: Optional[str] = None
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)

# Request schema for replacing or merging the saved cart
class CartPayload(BaseModel):
    items: List[CartLine] = []

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartLine]
    total_items: int
    total: float
