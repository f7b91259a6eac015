"""Tests for utils.razorpay_client against a stubbed orders API."""

import asyncio
import base64
from decimal import Decimal

import httpx
import pytest

from utils.errors import ConfigError, GatewayUnavailable, InvalidAmount
from utils.razorpay_client import RazorpayClient, new_receipt, to_minor_units


def run(coro):
    return asyncio.run(coro)


class TestMinorUnits:
    @pytest.mark.parametrize("amount,expected", [
        (Decimal("1800"), 180000),
        (Decimal("1800.5"), 180050),
        (Decimal("0.01"), 1),
        ("10.005", 1001),
        (1999.99, 199999),
    ])
    def test_conversion(self, amount, expected):
        assert to_minor_units(amount) == expected


class TestCreateOrder:
    def test_posts_minor_units_with_basic_auth(self, gateway, gateway_client):
        order = run(gateway_client.create_order(Decimal("1800"), "INR"))

        request = gateway.requests[-1]
        assert request.method == "POST"
        assert str(request.url) == "https://api.razorpay.test/v1/orders"
        expected_auth = base64.b64encode(b"rzp_test_key:s3cr3t").decode()
        assert request.headers["Authorization"] == f"Basic {expected_auth}"

        body = gateway.last_body
        assert body["amount"] == 180000
        assert body["currency"] == "INR"
        assert body["receipt"].startswith("receipt_")

        assert order.gateway_order_id == "order_test1"
        assert order.amount == 180000
        assert order.currency == "INR"
        assert order.receipt == body["receipt"]

    def test_receipt_is_fresh_per_call(self, gateway, gateway_client):
        run(gateway_client.create_order(Decimal("10")))
        run(gateway_client.create_order(Decimal("10")))
        receipts = [r.content for r in gateway.requests]
        assert receipts[0] != receipts[1]

    def test_receipt_fits_gateway_limit(self):
        assert len(new_receipt()) <= 40

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("0.004")])
    def test_non_positive_amount_rejected_before_calling_gateway(self, gateway, gateway_client, amount):
        with pytest.raises(InvalidAmount):
            run(gateway_client.create_order(amount))
        assert gateway.requests == []

    @pytest.mark.parametrize("key_id,key_secret,missing", [
        ("", "s3cr3t", "RAZORPAY_KEY_ID"),
        ("rzp_test_key", "", "RAZORPAY_KEY_SECRET"),
    ])
    def test_missing_credentials(self, gateway, key_id, key_secret, missing):
        client = RazorpayClient(key_id=key_id, key_secret=key_secret, transport=httpx.MockTransport(gateway.handler))
        with pytest.raises(ConfigError) as exc:
            run(client.create_order(Decimal("10")))
        assert exc.value.setting == missing
        assert gateway.requests == []

    @pytest.mark.parametrize("status_code", [400, 401, 500, 503])
    def test_non_2xx_is_gateway_unavailable(self, gateway, gateway_client, status_code):
        gateway.status_code = status_code
        with pytest.raises(GatewayUnavailable) as exc:
            run(gateway_client.create_order(Decimal("10")))
        assert exc.value.status_code == status_code
        # No retries inside the client
        assert len(gateway.requests) == 1

    def test_gateway_error_is_logged_with_status(self, gateway, gateway_client, caplog):
        gateway.status_code = 503
        with caplog.at_level("ERROR", logger="utils.razorpay_client"):
            with pytest.raises(GatewayUnavailable):
                run(gateway_client.create_order(Decimal("10")))
        record = [r for r in caplog.records if r.name == "utils.razorpay_client"][-1]
        assert record.args[0] == 503
        assert "503" in record.getMessage()

    def test_network_error_is_gateway_unavailable(self, gateway, gateway_client):
        gateway.fail_with = httpx.ConnectError("connection refused")
        with pytest.raises(GatewayUnavailable):
            run(gateway_client.create_order(Decimal("10")))

    def test_malformed_response_is_gateway_unavailable(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))
        client = RazorpayClient(transport=transport)
        with pytest.raises(GatewayUnavailable):
            run(client.create_order(Decimal("10")))

    def test_response_without_id_is_gateway_unavailable(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"amount": 1000}))
        client = RazorpayClient(transport=transport)
        with pytest.raises(GatewayUnavailable):
            run(client.create_order(Decimal("10")))


class TestPublicKey:
    def test_returns_key_id_only(self):
        assert RazorpayClient(key_id="rzp_live_abc", key_secret="secret").public_key() == "rzp_live_abc"

    def test_missing_key_id(self):
        with pytest.raises(ConfigError):
            RazorpayClient(key_id="", key_secret="secret").public_key()
