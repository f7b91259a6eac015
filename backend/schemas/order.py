from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

from schemas.cart import CartLine

# Shipping details captured on the checkout form
class ShippingAddress(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    address: str = Field(min_length=1)
    phone: str = Field(min_length=1)

# Input schema for finalizing an order after the gateway reports a payment
class CheckoutRequest(BaseModel):
    items: List[CartLine]
    shipping_address: ShippingAddress
    order_id: str = Field(alias="orderId")
    payment_id: str = Field(alias="paymentId")
    signature: str
    discount_code: Optional[str] = None

    class Config:
        populate_by_name = True

# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: str
    status: str
    total_amount: float
    discount_code: Optional[str] = None
    discount_amount: float
    payment_id: Optional[str] = None
    items: List[Dict[str, Any]]
    shipping_address: Dict[str, Any]
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int

# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: Literal["pending", "processing", "shipped", "delivered", "cancelled"]
