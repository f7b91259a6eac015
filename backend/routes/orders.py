# backend/routes/orders.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Query, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.order import Order
from routes.payments import get_payment_verifier
from schemas.order import CheckoutRequest, OrderResponse, OrdersPage, OrderStatusPatch
from utils.audit import write_log
from utils.checkout import OrderFinalizer, change_order_status
from utils.errors import AlreadyProcessed, ValidationError, VerificationFailed
from utils.signature import PaymentVerifier
from utils.tokenJWT import CurrentUser, get_current_user, role_required

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


# Persist the order for a payment the gateway has confirmed
@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    verifier: PaymentVerifier = Depends(get_payment_verifier),
):
    finalizer = OrderFinalizer(db, verifier)
    try:
        order = finalizer.finalize(
            user_id=current_user.id,
            items=payload.items,
            shipping_address=payload.shipping_address.model_dump(),
            gateway_order_id=payload.order_id,
            payment_id=payload.payment_id,
            signature=payload.signature,
            discount_code=payload.discount_code,
        )
    except VerificationFailed as e:
        logger.warning("Checkout rejected, unverified payment: %s", e)
        write_log(
            db, user_id=current_user.id, action="ORDER_CHECKOUT", resource="orders", status="FAIL",
            request=request,
            meta={"reason": "verification_failed", "gateway_order_id": payload.order_id, "payment_id": payload.payment_id},
        )
        raise HTTPException(status_code=400, detail="Payment could not be verified")
    except AlreadyProcessed as e:
        # A retried callback gets the order it already produced
        response.status_code = status.HTTP_200_OK
        return e.order
    except ValidationError as e:
        write_log(
            db, user_id=current_user.id, action="ORDER_CHECKOUT", resource="orders", status="FAIL",
            request=request,
            meta={"reason": e.reason, "gateway_order_id": payload.order_id, "payment_id": payload.payment_id},
        )
        raise HTTPException(status_code=400, detail={"reason": e.reason, "message": e.message})

    write_log(
        db, user_id=current_user.id, action="ORDER_CHECKOUT", resource="orders", status="SUCCESS",
        request=request,
        meta={
            "order_number": order.order_number, "gateway_order_id": order.gateway_order_id,
            "payment_id": order.payment_id, "discount_code": order.discount_code,
        },
    )
    return order


# List the current user's orders, newest first
@router.get("", response_model=OrdersPage)
def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    q = db.query(Order).filter(Order.user_id == current_user.id).order_by(Order.created_at.desc(), Order.id.desc())
    total = q.count()
    rows = q.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


# Track a single order by its human-facing number
@router.get("/{order_number}", response_model=OrderResponse)
def get_order_detail(
    order_number: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    o = db.query(Order).filter(Order.order_number == order_number).first()
    if not o or (o.user_id != current_user.id and not current_user.is_admin):
        raise HTTPException(status_code=404, detail="Order not found or forbidden")
    return o


# Advance an order through the fulfillment workflow (Admin only)
@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required("admin"))
):
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    try:
        old_status = change_order_status(order, payload.status)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"reason": e.reason, "message": e.message})

    db.commit()
    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
        request=request, meta={"order_id": order.id, "order_number": order.order_number, "old": old_status, "new": payload.status})

    db.refresh(order)
    return order
