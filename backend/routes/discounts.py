# backend/routes/discounts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from schemas.discount import DiscountApplyRequest, DiscountApplyResponse
from utils.errors import ValidationError
from utils.pricing import DiscountEvaluator, db_discount_lookup

router = APIRouter(prefix="/discounts", tags=["Discounts"])


def get_discount_evaluator(db: Session = Depends(get_db)) -> DiscountEvaluator:
    return DiscountEvaluator(db_discount_lookup(db))


# Price a cart with a discount code; nothing is consumed until checkout
@router.post("/apply", response_model=DiscountApplyResponse)
def apply_discount(
    payload: DiscountApplyRequest,
    evaluator: DiscountEvaluator = Depends(get_discount_evaluator),
):
    try:
        result = evaluator.evaluate(payload.cart_total, payload.code)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"reason": e.reason, "message": e.message})

    if result.applied_discount is None:
        raise HTTPException(status_code=400, detail={"reason": "not_found", "message": "Please enter a discount code"})

    return DiscountApplyResponse(
        code=result.applied_discount.code,
        discount_type=result.applied_discount.discount_type,
        cart_total=result.cart_total,
        discount_amount=result.discount_amount,
        final_total=result.final_total,
    )
