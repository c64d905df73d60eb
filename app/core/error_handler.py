"""
Unhandled error middleware

Anything that escapes a route and is not a StoreError or HTTPException ends
up here. The client gets {error, code, details} with a reference id; the
log gets the traceback. Driver and credential text never reaches the client.
"""
import logging
import uuid

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went wrong on our side. Please try again later."

# Lower-case fragments that mark a message as internal
INTERNAL_MARKERS = (
    "asyncpg",
    "sqlalchemy",
    "postgresql://",
    "secret",
    "password",
    "access_token",
    "traceback",
)

MAX_MESSAGE_LENGTH = 200


def client_message(exc: Exception) -> str:
    """Text safe to show a client: the real message only in DEBUG and only if harmless."""
    if not settings.DEBUG:
        return GENERIC_MESSAGE
    message = str(exc)
    if any(marker in message.lower() for marker in INTERNAL_MARKERS):
        return GENERIC_MESSAGE
    return message[:MAX_MESSAGE_LENGTH]


class ErrorSanitizationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception as e:
            reference = uuid.uuid4().hex[:12]
            logger.exception(
                f"Unhandled {type(e).__name__} [{reference}] on {request.method} {request.url.path}"
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": client_message(e),
                    "code": "INTERNAL_ERROR",
                    "details": {"reference": reference},
                },
            )
