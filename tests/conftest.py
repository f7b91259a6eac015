"""Pytest fixtures for the storefront API tests."""

import json
import os
from datetime import timedelta
from decimal import Decimal

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ALGORITHM"] = "HS256"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "s3cr3t"
os.environ["RAZORPAY_API_URL"] = "https://api.razorpay.test"

import httpx
import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine, init_db
from main import app
from models.discount import DiscountCode
from models.order import PaymentOrder
from models.users import UserRole
from routes.payments import get_razorpay_client
from utils.clock import utcnow
from utils.razorpay_client import RazorpayClient
from utils.signature import generate_signature
from utils.tokenJWT import create_access_token

GATEWAY_SECRET = "s3cr3t"


class FakeGateway:
    """Stands in for the Razorpay orders API."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.fail_with = None
        self._counter = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"description": "boom"}})
        body = json.loads(request.content)
        self._counter += 1
        return httpx.Response(200, json={
            "id": f"order_test{self._counter}",
            "entity": "order",
            "amount": body["amount"],
            "currency": body["currency"],
            "receipt": body["receipt"],
            "status": "created",
        })

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def db():
    """Fresh schema per test on the shared in-memory database."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def gateway_client(gateway):
    return RazorpayClient(transport=httpx.MockTransport(gateway.handler))


@pytest.fixture
def client(db, gateway_client):
    app.dependency_overrides[get_razorpay_client] = lambda: gateway_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(user_id="user-1", email="buyer@example.com"):
    token = create_access_token({"sub": user_id, "email": email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    return auth_headers("user-1")


@pytest.fixture
def admin_headers(db):
    db.add(UserRole(user_id="admin-1", role="admin"))
    db.commit()
    return auth_headers("admin-1", "admin@example.com")


@pytest.fixture
def make_discount(db):
    def _make(code="SAVE10", **kwargs):
        values = {
            "discount_type": "percentage",
            "discount_value": Decimal("10"),
            "valid_from": utcnow() - timedelta(days=1),
            "min_purchase_amount": Decimal("0"),
            "active": True,
            "current_uses": 0,
        }
        values.update(kwargs)
        discount = DiscountCode(code=code, **values)
        db.add(discount)
        db.commit()
        db.refresh(discount)
        return discount

    return _make


@pytest.fixture
def make_payment_order(db):
    """Record a gateway order as if POST /payments/orders had been called."""
    counter = {"n": 0}

    def _make(amount, user_id="user-1", gateway_order_id=None):
        counter["n"] += 1
        amount = Decimal(str(amount))
        payment_order = PaymentOrder(
            gateway_order_id=gateway_order_id or f"order_fixture{counter['n']}",
            user_id=user_id,
            amount=amount,
            amount_minor=int(amount * 100),
            currency="INR",
            receipt=f"receipt_fixture{counter['n']}",
        )
        db.add(payment_order)
        db.commit()
        db.refresh(payment_order)
        return payment_order

    return _make


def sign(order_id, payment_id):
    return generate_signature(order_id, payment_id, GATEWAY_SECRET)
