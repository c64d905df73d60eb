"""
PayPal routes

Thin server-side proxies for the gateway order create/capture calls made by
the checkout page. Gateway failures reach the browser as 500 {"error": ...}
carrying the gateway's message.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import PaymentGatewayError
from app.core.rate_limit import limiter
from app.schemas.checkout import CapturePayPalOrderRequest, CreatePayPalOrderRequest
from app.services.paypal_client import PayPalClient, get_paypal_client

logger = logging.getLogger(__name__)

router = APIRouter()


def _gateway_error(e: PaymentGatewayError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": e.message})


@router.post("/create-order")
@limiter.limit(settings.RATE_LIMIT_CHECKOUT)
async def create_order(
    request: Request,
    payload: CreatePayPalOrderRequest,
    paypal: PayPalClient = Depends(get_paypal_client),
):
    """Create a gateway order for the cart total; returns the gateway JSON."""
    try:
        return await paypal.create_order(payload.total_amount)
    except PaymentGatewayError as e:
        logger.error(f"PayPal create-order failed: {e.message} ({e.code})")
        return _gateway_error(e)


@router.post("/capture-order")
@limiter.limit(settings.RATE_LIMIT_CHECKOUT)
async def capture_order(
    request: Request,
    payload: CapturePayPalOrderRequest,
    paypal: PayPalClient = Depends(get_paypal_client),
):
    try:
        return await paypal.capture_order(payload.order_id)
    except PaymentGatewayError as e:
        # Funds may have moved; the order id is in the log for manual follow-up
        logger.error(f"PayPal capture failed for order {payload.order_id}: {e.message} ({e.code})")
        return _gateway_error(e)
