"""
PayPal REST client

Order create/capture against the PayPal Orders v2 API:
- OAuth 2.0 client-credentials token, cached until shortly before expiry
- POST /v2/checkout/orders (intent CAPTURE)
- POST /v2/checkout/orders/{id}/capture

Nothing here retries. A failed call raises PaymentGatewayError with the
gateway's message so the route can hand it back to the buyer.
"""
import base64
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import PaymentCaptureError, PaymentGatewayError
from app.services.pricing import format_money

logger = logging.getLogger(__name__)

OAUTH_TOKEN_PATH = "/v1/oauth2/token"
ORDERS_PATH = "/v2/checkout/orders"

# Refresh this long before the token actually expires
TOKEN_REFRESH_MARGIN = timedelta(seconds=60)

DEFAULT_CREATE_ERROR = "Failed to create PayPal order."
DEFAULT_CAPTURE_ERROR = "Failed to capture PayPal order."


def build_order_payload(total_amount: Any, currency: str = "USD") -> Dict[str, Any]:
    """Order body for a single purchase unit; value is always a two-decimal string."""
    return {
        "intent": "CAPTURE",
        "purchase_units": [
            {
                "amount": {
                    "currency_code": currency,
                    "value": format_money(total_amount),
                },
            },
        ],
    }


class PayPalClient:
    """
    PayPal Orders API client.

    One instance is shared by the app so the access token is reused across
    requests.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        secret: Optional[str] = None,
        base_url: Optional[str] = None,
        currency: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id if client_id is not None else settings.PAYPAL_CLIENT_ID
        self.secret = secret if secret is not None else settings.PAYPAL_SECRET_KEY
        self.base_url = (base_url or settings.PAYPAL_API_BASE_URL).rstrip("/")
        self.currency = currency or settings.PAYPAL_CURRENCY
        self.timeout = timeout or settings.PAYPAL_TIMEOUT_SECONDS
        self._transport = transport
        self._access_token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self):
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _token_valid(self) -> bool:
        if not self._access_token or not self._token_expires_at:
            return False
        return datetime.now(timezone.utc) < self._token_expires_at - TOKEN_REFRESH_MARGIN

    async def _ensure_token(self) -> str:
        """Return a valid access token, fetching a new one when needed."""
        if self._token_valid():
            return self._access_token

        client = await self._get_http_client()
        auth_string = f"{self.client_id}:{self.secret}"
        auth_header = base64.b64encode(auth_string.encode()).decode()

        try:
            response = await client.post(
                f"{self.base_url}{OAUTH_TOKEN_PATH}",
                headers={
                    "Authorization": f"Basic {auth_header}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={"grant_type": "client_credentials"},
            )
        except httpx.RequestError as e:
            logger.error(f"PayPal OAuth request failed: {e}")
            raise PaymentGatewayError(f"Network error during PayPal authentication: {e}", code="NETWORK_ERROR")

        data = self._json(response)
        if response.status_code != 200 or "access_token" not in data:
            logger.error(f"PayPal OAuth failed: {response.status_code} - {response.text[:500]}")
            raise PaymentGatewayError(
                data.get("error_description") or "Failed to authenticate with PayPal",
                code="AUTH_FAILED",
                status=response.status_code,
            )

        self._access_token = data["access_token"]
        expires_in = int(data.get("expires_in", 3600))
        self._token_expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        logger.info(f"PayPal OAuth token obtained, expires in {expires_in}s")
        return self._access_token

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    async def _post(
        self,
        path: str,
        body: Optional[Dict[str, Any]],
        default_error: str,
        error_class=PaymentGatewayError,
        gateway_order_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Authenticated POST; non-2xx responses become error_class."""
        token = await self._ensure_token()
        client = await self._get_http_client()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            response = await client.post(f"{self.base_url}{path}", headers=headers, json=body)
        except httpx.RequestError as e:
            logger.error(f"PayPal request to {path} failed: {e}")
            raise error_class(
                f"Network error: {e}",
                code="NETWORK_ERROR",
                gateway_order_id=gateway_order_id,
            )

        logger.debug(f"PayPal POST {path} -> {response.status_code}")
        data = self._json(response)
        if not response.is_success:
            message = data.get("message") or default_error
            logger.error(f"PayPal error on {path}: {response.status_code} - {message}")
            raise error_class(
                message,
                status=response.status_code,
                gateway_order_id=gateway_order_id,
            )
        return data

    async def create_order(self, total_amount: Any) -> Dict[str, Any]:
        """Create a CAPTURE-intent order for total_amount; returns the gateway JSON."""
        payload = build_order_payload(total_amount, self.currency)
        data = await self._post(ORDERS_PATH, payload, DEFAULT_CREATE_ERROR)
        logger.info(f"PayPal order {data.get('id')} created for {payload['purchase_units'][0]['amount']['value']}")
        return data

    async def capture_order(self, order_id: str) -> Dict[str, Any]:
        data = await self._post(
            f"{ORDERS_PATH}/{order_id}/capture",
            None,
            DEFAULT_CAPTURE_ERROR,
            error_class=PaymentCaptureError,
            gateway_order_id=order_id,
        )
        logger.info(f"PayPal order {order_id} captured, status {data.get('status')}")
        return data


_paypal_client: Optional[PayPalClient] = None


def get_paypal_client() -> PayPalClient:
    """Shared client (FastAPI dependency)."""
    global _paypal_client
    if _paypal_client is None:
        _paypal_client = PayPalClient()
    return _paypal_client


async def close_paypal_client():
    global _paypal_client
    if _paypal_client:
        await _paypal_client.close()
        _paypal_client = None
