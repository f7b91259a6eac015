# backend/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import Optional, Literal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.discount import DiscountCode
from models.order import Order
from schemas.discount import DiscountCodeIn, DiscountCodeOut, DiscountCodeList
from schemas.order import OrdersPage
from utils.audit import write_log
from utils.clock import as_utc
from utils.tokenJWT import CurrentUser, role_required

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = role_required("admin")


def _get_discount_or_404(db: Session, discount_id: int) -> DiscountCode:
    discount = db.query(DiscountCode).filter(DiscountCode.id == discount_id).first()
    if not discount:
        raise HTTPException(status_code=404, detail="Discount code not found")
    return discount


def _check_window(payload: DiscountCodeIn):
    if payload.valid_from and payload.valid_until and as_utc(payload.valid_until) < as_utc(payload.valid_from):
        raise HTTPException(status_code=400, detail="valid_until must be after valid_from")


# List all discount codes, newest first (Admin only)
@router.get("/discounts", response_model=DiscountCodeList)
def list_discounts(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(admin_only)
):
    rows = db.query(DiscountCode).order_by(DiscountCode.created_at.desc(), DiscountCode.id.desc()).all()
    return {"items": rows}


@router.post("/discounts", response_model=DiscountCodeOut, status_code=status.HTTP_201_CREATED)
def create_discount(
    payload: DiscountCodeIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(admin_only)
):
    _check_window(payload)
    data = payload.model_dump(exclude_none=True)
    discount = DiscountCode(**data)
    db.add(discount)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Discount code {payload.code} already exists")
    db.refresh(discount)

    write_log(db, user_id=current_user.id, action="DISCOUNT_CREATE", resource="discounts", status="SUCCESS",
              request=request, meta={"discount_id": discount.id, "code": discount.code})
    return discount


@router.put("/discounts/{discount_id}", response_model=DiscountCodeOut)
def update_discount(
    discount_id: int,
    payload: DiscountCodeIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(admin_only)
):
    _check_window(payload)
    discount = _get_discount_or_404(db, discount_id)

    # Usage already consumed is not editable from the form
    if payload.max_uses is not None and payload.max_uses < discount.current_uses:
        raise HTTPException(status_code=400, detail="max_uses cannot be lower than current usage")

    for field, value in payload.model_dump().items():
        if field == "valid_from" and value is None:
            continue
        setattr(discount, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Discount code {payload.code} already exists")
    db.refresh(discount)

    write_log(db, user_id=current_user.id, action="DISCOUNT_UPDATE", resource="discounts", status="SUCCESS",
              request=request, meta={"discount_id": discount.id, "code": discount.code})
    return discount


@router.delete("/discounts/{discount_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_discount(
    discount_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(admin_only)
):
    discount = _get_discount_or_404(db, discount_id)
    code = discount.code
    db.delete(discount)
    db.commit()

    write_log(db, user_id=current_user.id, action="DISCOUNT_DELETE", resource="discounts", status="SUCCESS",
              request=request, meta={"discount_id": discount_id, "code": code})


# Retrieve all orders with optional status filter and pagination (Admin only)
@router.get("/orders", response_model=OrdersPage)
def list_all_orders(
    status_filter: Optional[Literal["pending", "processing", "shipped", "delivered", "cancelled"]] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(admin_only)
):
    query = db.query(Order)
    if status_filter:
        query = query.filter(Order.status == status_filter)

    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": rows, "total": total, "page": page, "page_size": page_size}
