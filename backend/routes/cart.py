# backend/routes/cart.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from database import get_db
from utils.tokenJWT import CurrentUser, get_current_user
from utils.audit import write_log
from utils.cart_state import CartState, SavedCartStore
from schemas.cart import CartPayload, CartOut

router = APIRouter(prefix="/cart", tags=["Cart"])

def _state_from_payload(payload: CartPayload) -> CartState:
    return CartState([line.model_dump() for line in payload.items])

def _cart_to_out(cart: CartState) -> CartOut:
    return CartOut(items=cart.lines, total_items=cart.total_items, total=cart.total)

@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return _cart_to_out(SavedCartStore(db).load(current_user.id))

# Replace the saved cart with the client's current cart
@router.put("", response_model=CartOut)
def save_cart(
    payload: CartPayload,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    cart = SavedCartStore(db).save(current_user.id, _state_from_payload(payload))
    return _cart_to_out(cart)

# Merge a device-local cart into the saved one, e.g. right after sign-in
@router.post("/merge", response_model=CartOut)
def merge_cart(
    payload: CartPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    cart = SavedCartStore(db).merge(current_user.id, _state_from_payload(payload))
    out = _cart_to_out(cart)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_MERGE",
        resource="cart",
        status="SUCCESS",
        request=request,
        meta={"local_items": len(payload.items), "cart_items": len(out.items), "total": out.total},
    )
    return out

@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    SavedCartStore(db).clear(current_user.id)
