"""
Rate limiting

SlowAPI limiter keyed by client IP. Checkout and gateway routes use
RATE_LIMIT_CHECKOUT on top of the default limit.
"""
import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


def client_ip(request: Request) -> str:
    """Left-most X-Forwarded-For address behind the CDN, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    return first or get_remote_address(request)


limiter = Limiter(
    key_func=client_ip,
    enabled=settings.RATE_LIMIT_ENABLED,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same {error, code, details} shape as StoreError responses."""
    logger.warning(f"Rate limit hit by {client_ip(request)} on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests. Please slow down and try again shortly.",
            "code": "RATE_LIMITED",
            "details": {"limit": exc.detail},
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
