# backend/routes/stats.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime, timezone
from pydantic import BaseModel
from typing import Dict

from database import get_db
from utils.clock import utcnow
from utils.tokenJWT import CurrentUser, role_required
from models.order import Order
from models.discount import DiscountCode

router = APIRouter(
    prefix="/stats",
    tags=["Stats"]
)

# === Pydantic Response Schemas ===

class StatsSummary(BaseModel):
    total_revenue: float
    total_orders: int
    orders_this_month: int
    active_discounts: int
    orders_by_status: Dict[str, int]


# === Endpoint: Dashboard Summary ===

@router.get("/summary", response_model=StatsSummary)
def get_stats_summary(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required("admin"))
):
    # Cancelled orders do not count towards revenue
    total_revenue = db.query(func.sum(Order.total_amount)).filter(Order.status != "cancelled").scalar() or 0

    total_orders = db.query(Order).count()

    # Orders created since the first day of the current month (UTC)
    now = utcnow()
    month_start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
    orders_this_month = db.query(Order).filter(Order.created_at >= month_start).count()

    active_discounts = db.query(DiscountCode).filter(DiscountCode.active.is_(True)).count()

    status_rows = db.query(Order.status, func.count(Order.id)).group_by(Order.status).all()

    return StatsSummary(
        total_revenue=round(float(total_revenue), 2),
        total_orders=total_orders,
        orders_this_month=orders_this_month,
        active_discounts=active_discounts,
        orders_by_status={s: c for s, c in status_rows},
    )
