from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional

# Public key handed to the hosted checkout widget
class PaymentKeyResponse(BaseModel):
    key: str

# Request schema for creating a gateway order; amount is in major units (rupees)
class PaymentOrderCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)

# Gateway order as returned to the client; amount is in minor units (paise)
class PaymentOrderResponse(BaseModel):
    order_id: str = Field(alias="orderId")
    amount: int
    currency: str

    class Config:
        populate_by_name = True

# Signed payload the gateway hands to the browser after a payment
class PaymentVerifyRequest(BaseModel):
    order_id: str = Field(alias="orderId")
    payment_id: str = Field(alias="paymentId")
    signature: str

    class Config:
        populate_by_name = True

class PaymentVerifyResponse(BaseModel):
    success: bool
