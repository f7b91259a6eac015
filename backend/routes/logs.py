# backend/routes/logs.py
from datetime import date, datetime, time, timedelta, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from schemas.log import LogPage
from utils.audit import filter_by_trace
from utils.tokenJWT import CurrentUser, role_required

router = APIRouter(prefix="/logs", tags=["Logs"])


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


# Browse the audit trail (Admin only).
# gateway_order_id / payment_id / order_number follow a single payment across
# order creation, verification and checkout, failed attempts included.
@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Exact action, e.g. PAYMENT_VERIFY"),
    resource: Optional[Literal["payments", "orders", "discounts", "cart"]] = Query(None),
    status: Optional[Literal["SUCCESS", "FAIL"]] = Query(None),
    user_id: Optional[str] = Query(None),
    gateway_order_id: Optional[str] = Query(None),
    payment_id: Optional[str] = Query(None),
    order_number: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, description="First day included (UTC)"),
    date_to: Optional[date] = Query(None, description="Last day included (UTC)"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required("admin")),
):
    query = db.query(Log)

    if action:
        query = query.filter(Log.action == action.upper())
    if resource:
        query = query.filter(Log.resource == resource)
    if status:
        query = query.filter(Log.status == status)
    if user_id:
        query = query.filter(Log.user_id == user_id)

    for key, value in (("gateway_order_id", gateway_order_id), ("payment_id", payment_id), ("order_number", order_number)):
        if value:
            query = filter_by_trace(query, key, value)

    if date_from:
        query = query.filter(Log.ts >= _day_start(date_from))
    if date_to:
        query = query.filter(Log.ts < _day_start(date_to + timedelta(days=1)))

    query = query.order_by(Log.ts.desc(), Log.id.desc())
    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": rows, "total": total, "page": page, "page_size": page_size}
