# backend/utils/razorpay_client.py
import httpx
import logging
import secrets
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from urllib.parse import urljoin

from config import settings
from utils.errors import ConfigError, GatewayUnavailable, InvalidAmount
from utils.pricing import to_decimal

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_MAJOR = Decimal("100")


def to_minor_units(amount) -> int:
    # Rupees -> paise. Callers always pass major units; this is the only conversion point.
    return int((to_decimal(amount) * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def new_receipt() -> str:
    # Fresh per call; Razorpay caps receipts at 40 characters
    return f"receipt_{time.time_ns()}_{secrets.token_hex(4)}"


@dataclass(frozen=True)
class GatewayOrder:
    gateway_order_id: str
    amount: int  # minor units, as echoed by the gateway
    currency: str
    receipt: str


class RazorpayClient:
    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        api_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        # Explicit arguments win; anything left out is read from settings at call time
        self._key_id = key_id
        self._key_secret = key_secret
        self._api_url = api_url
        self.transport = transport
        self.timeout = timeout

    @property
    def key_id(self) -> Optional[str]:
        return self._key_id if self._key_id is not None else settings.RAZORPAY_KEY_ID

    @property
    def key_secret(self) -> Optional[str]:
        return self._key_secret if self._key_secret is not None else settings.RAZORPAY_KEY_SECRET

    @property
    def api_url(self) -> str:
        return self._api_url or settings.RAZORPAY_API_URL

    def public_key(self) -> str:
        # The key id is safe to hand to the browser checkout widget; the secret never is
        if not self.key_id:
            raise ConfigError("RAZORPAY_KEY_ID")
        return self.key_id

    def _credentials(self) -> tuple:
        if not self.key_id:
            raise ConfigError("RAZORPAY_KEY_ID")
        if not self.key_secret:
            raise ConfigError("RAZORPAY_KEY_SECRET")
        return self.key_id, self.key_secret

    def _client(self) -> httpx.AsyncClient:
        timeout = self.timeout if self.timeout is not None else settings.GATEWAY_TIMEOUT_SECONDS
        return httpx.AsyncClient(transport=self.transport, timeout=timeout)

    async def create_order(self, amount, currency: str = "INR") -> GatewayOrder:
        """Create a gateway-side order for `amount` major units of `currency`."""
        auth = self._credentials()
        amount_minor = to_minor_units(amount)
        if amount_minor <= 0:
            raise InvalidAmount(f"Payment amount must be positive: {amount}")

        order_url = urljoin(self.api_url, "/v1/orders")
        receipt = new_receipt()
        payload = {"amount": amount_minor, "currency": currency, "receipt": receipt}

        async with self._client() as client:
            try:
                response = await client.post(order_url, json=payload, auth=auth)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error("Razorpay create order error: %s %s", e.response.status_code, e.response.text)
                raise GatewayUnavailable("Failed to create Razorpay order", status_code=e.response.status_code) from e
            except httpx.RequestError as e:
                logger.error("Razorpay create order request failed: %s", e)
                raise GatewayUnavailable("Payment gateway unreachable") from e
            except ValueError as e:
                logger.error("Razorpay create order returned invalid JSON: %s", e)
                raise GatewayUnavailable("Invalid response from payment gateway") from e

        if not isinstance(data, dict) or not data.get("id"):
            logger.error("Razorpay create order response without id: %s", data)
            raise GatewayUnavailable("Invalid response from payment gateway")

        logger.info("Razorpay order created: %s (%s %s)", data["id"], data.get("amount"), data.get("currency"))
        return GatewayOrder(
            gateway_order_id=data["id"],
            amount=int(data.get("amount", amount_minor)),
            currency=data.get("currency", currency),
            receipt=receipt,
        )


razorpay_client = RazorpayClient()
