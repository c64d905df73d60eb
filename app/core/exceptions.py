"""
Stylish Type Exception Hierarchy

Structured exception classes raised by services. Every exception carries a
code, message and details so the API layer can render it and the logs can
explain it.

Exception Hierarchy:
    StoreError
    ├── NotFoundError
    ├── ValidationFailed
    ├── PermissionDenied
    ├── PaymentError
    │   ├── PaymentGatewayError
    │   └── PaymentCaptureError
    └── StorageError
"""
import logging
from typing import Optional, Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """
    Base exception for all storefront errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging/audit
        status_code: HTTP status used when the error reaches a route
    """

    default_code: str = "STORE_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class NotFoundError(StoreError):
    """Unknown slug, id or order."""
    default_code = "NOT_FOUND"
    status_code = 404


class ValidationFailed(StoreError):
    """Input rejected by a business rule (not a schema error)."""
    default_code = "VALIDATION_FAILED"
    status_code = 400


class PermissionDenied(StoreError):
    """Authenticated, but not allowed to see or change the resource."""
    default_code = "PERMISSION_DENIED"
    status_code = 403


# =============================================================================
# PAYMENT ERRORS
# =============================================================================

class PaymentError(StoreError):
    """Base exception for payment processing errors."""
    default_code = "PAYMENT_ERROR"


class PaymentGatewayError(PaymentError):
    """Non-2xx or network failure talking to the payment gateway."""
    default_code = "PAYMENT_GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        gateway_order_id: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "status": status,
            "gateway_order_id": gateway_order_id,
        })
        super().__init__(message, details=details, **kwargs)


class PaymentCaptureError(PaymentGatewayError):
    """Capture failed - funds may or may not have moved."""
    default_code = "PAYMENT_CAPTURE_FAILED"


class StorageError(StoreError):
    """Object storage upload or delete failure."""
    default_code = "STORAGE_ERROR"


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Render a StoreError as {error, code, details} with the class status code."""
    if exc.status_code >= 500:
        logger.error(f"{exc!r} on {request.method} {request.url.path}: {exc.details}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code, "details": exc.details or None},
    )
