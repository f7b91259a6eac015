# backend/routes/payments.py
import logging
from fastapi import APIRouter, Request, Depends, HTTPException
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.order import PaymentOrder
from schemas.payment import (
    PaymentKeyResponse, PaymentOrderCreate, PaymentOrderResponse,
    PaymentVerifyRequest, PaymentVerifyResponse,
)
from utils.audit import write_log
from utils.errors import ConfigError, GatewayUnavailable, InvalidAmount
from utils.pricing import round_money
from utils.razorpay_client import RazorpayClient, razorpay_client
from utils.signature import PaymentVerifier, payment_verifier
from utils.tokenJWT import CurrentUser, get_current_user

router = APIRouter(prefix="/payments", tags=["Payments"])
logger = logging.getLogger(__name__)

# Collaborators are resolved through dependencies so they can be swapped out
def get_razorpay_client() -> RazorpayClient:
    return razorpay_client

def get_payment_verifier() -> PaymentVerifier:
    return payment_verifier


@router.get("/key", response_model=PaymentKeyResponse)
def get_payment_key(client: RazorpayClient = Depends(get_razorpay_client)):
    try:
        return PaymentKeyResponse(key=client.public_key())
    except ConfigError as e:
        logger.error("Payment key requested but gateway is not configured: %s", e)
        raise HTTPException(status_code=500, detail="Payment gateway is not configured")


@router.post("/orders", response_model=PaymentOrderResponse)
async def create_payment_order(
    payload: PaymentOrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    client: RazorpayClient = Depends(get_razorpay_client),
):
    currency = (payload.currency or settings.DEFAULT_CURRENCY).upper()
    try:
        gateway_order = await client.create_order(payload.amount, currency)
    except ConfigError as e:
        logger.error("Cannot create payment order: %s", e)
        raise HTTPException(status_code=500, detail="Payment gateway is not configured")
    except InvalidAmount as e:
        raise HTTPException(status_code=400, detail={"reason": e.reason, "message": e.message})
    except GatewayUnavailable as e:
        logger.exception("Razorpay create order failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to create order. Please try again.")

    # Remember what the gateway was asked to charge so checkout can reconcile against it
    db.add(PaymentOrder(
        gateway_order_id=gateway_order.gateway_order_id,
        user_id=current_user.id,
        amount=round_money(payload.amount),
        amount_minor=gateway_order.amount,
        currency=gateway_order.currency,
        receipt=gateway_order.receipt,
    ))
    db.commit()

    write_log(
        db, user_id=current_user.id, action="PAYMENT_ORDER_CREATE", resource="payments", status="SUCCESS",
        request=request,
        meta={"gateway_order_id": gateway_order.gateway_order_id, "amount": gateway_order.amount, "currency": gateway_order.currency},
    )
    return PaymentOrderResponse(
        order_id=gateway_order.gateway_order_id,
        amount=gateway_order.amount,
        currency=gateway_order.currency,
    )


@router.post("/verify", response_model=PaymentVerifyResponse)
def verify_payment(
    payload: PaymentVerifyRequest,
    request: Request,
    db: Session = Depends(get_db),
    verifier: PaymentVerifier = Depends(get_payment_verifier),
):
    verified = verifier.verify(payload.order_id, payload.payment_id, payload.signature)

    logger.info("Payment verification: valid=%s payment_id=%s order_id=%s", verified, payload.payment_id, payload.order_id)
    if not verified:
        # Possible tampering; keep a trail for review
        write_log(
            db, user_id=None, action="PAYMENT_VERIFY", resource="payments", status="FAIL",
            request=request,
            meta={"gateway_order_id": payload.order_id, "payment_id": payload.payment_id},
        )
    return PaymentVerifyResponse(success=verified)
