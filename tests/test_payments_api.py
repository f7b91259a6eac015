"""API tests for /payments and /discounts."""

from decimal import Decimal

import httpx

from conftest import sign
from models.log import Log
from models.order import PaymentOrder
from config import settings


class TestPaymentKey:
    def test_returns_public_key_only(self, client):
        response = client.get("/payments/key")
        assert response.status_code == 200
        assert response.json() == {"key": "rzp_test_key"}

    def test_missing_key_is_server_error(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RAZORPAY_KEY_ID", None)
        response = client.get("/payments/key")
        assert response.status_code == 500


class TestCreatePaymentOrder:
    def test_creates_and_records_gateway_order(self, client, db, gateway, user_headers):
        response = client.post("/payments/orders", json={"amount": 1800, "currency": "INR"}, headers=user_headers)

        assert response.status_code == 200
        data = response.json()
        assert data == {"orderId": "order_test1", "amount": 180000, "currency": "INR"}
        assert gateway.last_body["amount"] == 180000

        recorded = db.query(PaymentOrder).filter(PaymentOrder.gateway_order_id == "order_test1").one()
        assert recorded.user_id == "user-1"
        assert recorded.amount == Decimal("1800.00")
        assert recorded.amount_minor == 180000
        assert recorded.receipt == gateway.last_body["receipt"]

    def test_currency_defaults_from_settings(self, client, gateway, user_headers):
        response = client.post("/payments/orders", json={"amount": "10.50"}, headers=user_headers)
        assert response.status_code == 200
        assert gateway.last_body["amount"] == 1050
        assert gateway.last_body["currency"] == "INR"

    def test_requires_authentication(self, client, gateway):
        response = client.post("/payments/orders", json={"amount": 10})
        assert response.status_code in (401, 403)
        assert gateway.requests == []

    def test_non_positive_amount_rejected(self, client, gateway, user_headers):
        response = client.post("/payments/orders", json={"amount": 0}, headers=user_headers)
        assert response.status_code == 422
        assert gateway.requests == []

    def test_gateway_failure_is_bad_gateway(self, client, db, gateway, user_headers):
        gateway.status_code = 500
        response = client.post("/payments/orders", json={"amount": 10}, headers=user_headers)
        assert response.status_code == 502
        assert db.query(PaymentOrder).count() == 0

    def test_gateway_unreachable_is_bad_gateway(self, client, gateway, user_headers):
        gateway.fail_with = httpx.ConnectTimeout("timed out")
        response = client.post("/payments/orders", json={"amount": 10}, headers=user_headers)
        assert response.status_code == 502

    def test_missing_secret_is_server_error(self, client, gateway, user_headers, monkeypatch):
        monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", None)
        response = client.post("/payments/orders", json={"amount": 10}, headers=user_headers)
        assert response.status_code == 500
        assert gateway.requests == []


class TestVerifyPayment:
    def test_valid_signature(self, client):
        response = client.post("/payments/verify", json={
            "orderId": "order_abc", "paymentId": "pay_xyz", "signature": sign("order_abc", "pay_xyz"),
        })
        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_invalid_signature_is_audited(self, client, db):
        response = client.post("/payments/verify", json={
            "orderId": "order_abc", "paymentId": "pay_xyz", "signature": "forged",
        })
        assert response.status_code == 200
        assert response.json() == {"success": False}

        entry = db.query(Log).filter(Log.action == "PAYMENT_VERIFY").one()
        assert entry.status == "FAIL"
        assert entry.meta["payment_id"] == "pay_xyz"

    def test_missing_secret_never_verifies(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", None)
        response = client.post("/payments/verify", json={
            "orderId": "order_abc", "paymentId": "pay_xyz", "signature": sign("order_abc", "pay_xyz"),
        })
        assert response.json() == {"success": False}

    def test_missing_field_is_422(self, client):
        response = client.post("/payments/verify", json={"orderId": "order_abc", "signature": "x"})
        assert response.status_code == 422


class TestApplyDiscount:
    def test_applies_percentage_code(self, client, make_discount):
        make_discount("SAVE10", min_purchase_amount=Decimal("1000"))
        response = client.post("/discounts/apply", json={"code": "save10", "cart_total": 2000})
        assert response.status_code == 200
        assert response.json() == {
            "code": "SAVE10",
            "discount_type": "percentage",
            "cart_total": 2000.0,
            "discount_amount": 200.0,
            "final_total": 1800.0,
        }

    def test_below_minimum(self, client, make_discount):
        make_discount("SAVE10", min_purchase_amount=Decimal("1000"))
        response = client.post("/discounts/apply", json={"code": "SAVE10", "cart_total": 500})
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "below_minimum"

    def test_unknown_code(self, client):
        response = client.post("/discounts/apply", json={"code": "NOPE", "cart_total": 500})
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "not_found"

    def test_exhausted_code(self, client, make_discount):
        make_discount("GONE", max_uses=5, current_uses=5)
        response = client.post("/discounts/apply", json={"code": "GONE", "cart_total": 500})
        assert response.json()["detail"]["reason"] == "usage_exceeded"

    def test_repeated_pricing_does_not_consume_uses(self, client, db, make_discount):
        discount = make_discount("ONCE", max_uses=1)
        for _ in range(3):
            assert client.post("/discounts/apply", json={"code": "ONCE", "cart_total": 100}).status_code == 200
        db.refresh(discount)
        assert discount.current_uses == 0
