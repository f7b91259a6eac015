# backend/routes/wishlist.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.wishlist import WishlistItem
from schemas.wishlist import WishlistAdd, WishlistOut
from utils.tokenJWT import CurrentUser, get_current_user

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])

def _wishlist_out(db: Session, user_id: str) -> WishlistOut:
    rows = db.query(WishlistItem).filter(WishlistItem.user_id == user_id).order_by(WishlistItem.created_at.desc()).all()
    return WishlistOut(items=rows)

@router.get("", response_model=WishlistOut)
def get_wishlist(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return _wishlist_out(db, current_user.id)

# Saving a product twice is a no-op
@router.post("", response_model=WishlistOut)
def add_to_wishlist(
    payload: WishlistAdd,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    exists = db.query(WishlistItem).filter(
        WishlistItem.user_id == current_user.id, WishlistItem.product_id == payload.product_id
    ).first()
    if not exists:
        db.add(WishlistItem(user_id=current_user.id, product_id=payload.product_id))
        try:
            db.commit()
        except IntegrityError:
            # Added concurrently from another tab
            db.rollback()
    return _wishlist_out(db, current_user.id)

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_wishlist(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    db.query(WishlistItem).filter(
        WishlistItem.user_id == current_user.id, WishlistItem.product_id == product_id
    ).delete(synchronize_session=False)
    db.commit()
