# backend/utils/cart_state.py
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from models.cart import SavedCart
from utils.pricing import cart_total, round_money


class CartState:
    """In-memory cart keyed by product id.

    Quantities are always >= 1; setting a quantity to zero or below drops the line.
    """

    def __init__(self, lines: Optional[List[dict]] = None):
        self._lines: Dict[int, dict] = {}
        for line in lines or []:
            self.add(line["product_id"], line["unit_price"], int(line.get("quantity", 1)), line.get("name"))

    def add(self, product_id: int, unit_price, quantity: int = 1, name: Optional[str] = None) -> None:
        if quantity <= 0:
            return
        line = self._lines.get(product_id)
        if line:
            line["quantity"] += quantity
            line["unit_price"] = round_money(unit_price)
        else:
            self._lines[product_id] = {
                "product_id": product_id,
                "name": name,
                "unit_price": round_money(unit_price),
                "quantity": quantity,
            }

    def remove(self, product_id: int) -> None:
        self._lines.pop(product_id, None)

    def update_quantity(self, product_id: int, quantity: int) -> None:
        if product_id not in self._lines:
            return
        if quantity <= 0:
            self.remove(product_id)
        else:
            self._lines[product_id]["quantity"] = quantity

    def clear(self) -> None:
        self._lines.clear()

    def merge(self, other: "CartState") -> None:
        # Same product on both devices: keep the larger quantity rather than summing
        for product_id, line in other._lines.items():
            mine = self._lines.get(product_id)
            if mine is None:
                self._lines[product_id] = dict(line)
            else:
                mine["quantity"] = max(mine["quantity"], line["quantity"])

    @property
    def lines(self) -> List[dict]:
        return [dict(line) for line in self._lines.values()]

    @property
    def total_items(self) -> int:
        return sum(line["quantity"] for line in self._lines.values())

    @property
    def total(self) -> Decimal:
        return cart_total(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def to_json(self) -> List[dict]:
        return [{**line, "unit_price": str(line["unit_price"])} for line in self._lines.values()]


class SavedCartStore:
    """Persists a user's CartState in saved_carts."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, user_id: str) -> Optional[SavedCart]:
        return self.db.query(SavedCart).filter(SavedCart.user_id == user_id).first()

    def load(self, user_id: str) -> CartState:
        row = self._row(user_id)
        return CartState(row.cart_items if row else [])

    def save(self, user_id: str, cart: CartState) -> CartState:
        row = self._row(user_id)
        if row:
            row.cart_items = cart.to_json()
        elif len(cart):
            # Nothing to remember for a user who never had items
            self.db.add(SavedCart(user_id=user_id, cart_items=cart.to_json()))
        self.db.commit()
        return cart

    def merge(self, user_id: str, local: CartState) -> CartState:
        saved = self.load(user_id)
        saved.merge(local)
        return self.save(user_id, saved)

    def clear(self, user_id: str) -> None:
        row = self._row(user_id)
        if row:
            row.cart_items = []
            self.db.commit()
