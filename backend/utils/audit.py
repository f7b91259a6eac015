# backend/utils/audit.py
"""Audit trail of storefront events, browsable by admins under GET /logs.

Payment-related entries share the meta keys `gateway_order_id`, `payment_id`
and `order_number` so one payment can be followed from gateway order creation
through verification to the finalized order.
"""
from decimal import Decimal
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Query, Session

from models.log import Log

TRACE_KEYS = ("gateway_order_id", "payment_id", "order_number")


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


def _jsonable(meta: Optional[dict]) -> dict:
    # JSON columns cannot hold Decimal; money goes in as its exact string form
    clean = {}
    for key, value in (meta or {}).items():
        if value is None:
            continue
        clean[key] = str(value) if isinstance(value, Decimal) else value
    return clean


def write_log(
    db: Session,
    *,
    action: str,
    resource: str,
    user_id: Optional[str] = None,
    status: str = "SUCCESS",
    request: Optional[Request] = None,
    meta: Optional[dict] = None,
) -> Log:
    entry = Log(
        user_id=user_id,
        action=action,
        resource=resource,
        status=status,
        ip=client_ip(request),
        meta=_jsonable(meta),
    )
    db.add(entry)
    db.commit()
    return entry


def filter_by_trace(query: Query, key: str, value: str) -> Query:
    """Restrict `query` to entries whose meta[key] equals `value`."""
    if key not in TRACE_KEYS:
        raise ValueError(f"Unknown trace key: {key}")
    return query.filter(Log.meta[key].as_string() == value)
