from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

# Request schema for pricing a cart with a discount code
class DiscountApplyRequest(BaseModel):
    code: str = Field(min_length=1)
    cart_total: Decimal = Field(ge=0)

# Result of a successful discount evaluation
class DiscountApplyResponse(BaseModel):
    code: str
    discount_type: str
    cart_total: float
    discount_amount: float
    final_total: float

# Admin input for creating or editing a discount code
class DiscountCodeIn(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    discount_type: Literal["percentage", "fixed"]
    discount_value: Decimal = Field(ge=0)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    max_uses: Optional[int] = Field(None, ge=1)
    min_purchase_amount: Decimal = Field(Decimal("0"), ge=0)
    active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

class DiscountCodeOut(BaseModel):
    id: int
    code: str
    discount_type: str
    discount_value: float
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    max_uses: Optional[int] = None
    current_uses: int
    min_purchase_amount: float
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DiscountCodeList(BaseModel):
    items: List[DiscountCodeOut]
