"""
Stylish Type Backend
FastAPI application entry point

- Rate limiting with SlowAPI (stricter on checkout)
- Error sanitization middleware
- StoreError -> {error, code, details} with the error's status code
- Health endpoint with DB ping
- Redis and gateway HTTP client closed on shutdown
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.routes import (
    admin_catalog,
    admin_content,
    admin_orders,
    admin_products,
    blog,
    cart,
    catalog,
    checkout,
    feeds,
    homepage,
    orders,
    pages,
    paypal,
    subscriptions,
)
from app.core.config import settings
from app.core.database import AsyncSessionLocal, get_db
from app.core.error_handler import ErrorSanitizationMiddleware
from app.core.exceptions import StoreError, store_error_handler
from app.core.rate_limit import limiter, rate_limit_exceeded_handler
from app.core.redis_client import close_redis
from app.schemas.admin import SiteConfigResponse
from app.services import content_service
from app.services.paypal_client import close_paypal_client

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Multipart logo uploads are the largest bodies we accept
MAX_REQUEST_SIZE = 10 * 1024 * 1024  # 10MB


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} API starting ({settings.ENVIRONMENT})")
    yield

    await close_paypal_client()
    logger.info("PayPal HTTP client closed")
    await close_redis()


app = FastAPI(
    lifespan=lifespan,
    title="Stylish Type API",
    description="""
## Stylish Type Storefront API

Font and font bundle storefront with a blog and an admin back office.

### Features
- **Catalog**: Fonts, bundles, search and product detail pages with discount pricing
- **Cart & Checkout**: Browser cart rules, PayPal order create/capture, order recording
- **Library**: Order history, purchased products, EULA and invoice downloads
- **Subscriptions**: Plans, plan changes and cancellation
- **Feeds**: Merchant product feed, sitemap and robots.txt

### Authentication
Bearer tokens are issued by the hosted auth provider; admin routes require an admin profile.

### Rate Limits
- Checkout: 10 requests/minute
- General: 100 requests/minute
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "Catalog", "description": "Fonts, bundles and product detail"},
        {"name": "Blog", "description": "Published posts"},
        {"name": "Homepage", "description": "Homepage sections"},
        {"name": "Cart", "description": "Cart rules applied to the browser cart"},
        {"name": "PayPal", "description": "Gateway order create and capture"},
        {"name": "Checkout", "description": "Order recording and library grants"},
        {"name": "Orders", "description": "Order history and license documents"},
        {"name": "Subscriptions", "description": "Plans and the caller's subscription"},
        {"name": "Feeds", "description": "Merchant feed, sitemap and robots.txt"},
        {"name": "Config", "description": "Public configuration endpoints"},
    ],
    license_info={
        "name": "Proprietary",
    },
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(StoreError, store_error_handler)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests that exceed the size limit."""

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_SIZE:
            logger.warning(
                f"Request size limit exceeded: {content_length} bytes on {request.url.path}"
            )
            return JSONResponse(
                status_code=413,
                content={
                    "error": "request_too_large",
                    "message": f"Request body exceeds maximum size of {MAX_REQUEST_SIZE // (1024*1024)}MB",
                },
            )
        return await call_next(request)


app.add_middleware(RequestSizeLimitMiddleware)

# Catches unhandled exceptions
app.add_middleware(ErrorSanitizationMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Storefront
app.include_router(catalog.router, prefix="/api", tags=["Catalog"])
app.include_router(blog.router, prefix="/api/blog", tags=["Blog"])
app.include_router(homepage.router, prefix="/api/homepage", tags=["Homepage"])
app.include_router(pages.router, prefix="/api", tags=["Pages"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(paypal.router, prefix="/api/paypal", tags=["PayPal"])
app.include_router(checkout.router, prefix="/api/checkout", tags=["Checkout"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(subscriptions.router, prefix="/api/subscription", tags=["Subscriptions"])
app.include_router(feeds.router, tags=["Feeds"])
# Back office
# Ahead of admin_content so /uploads/font-files is not taken for an image folder
app.include_router(admin_products.router, prefix="/api/admin", tags=["Admin - Products"])
app.include_router(admin_content.router, prefix="/api/admin", tags=["Admin - Content"])
app.include_router(admin_catalog.router, prefix="/api/admin", tags=["Admin - Catalog"])
app.include_router(admin_orders.router, prefix="/api/admin", tags=["Admin - Orders"])


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": "Stylish Type API",
        "version": "1.0.0",
        "status": "operational"
    }


@app.get("/api/config", response_model=SiteConfigResponse, tags=["Config"])
async def get_config(db: AsyncSession = Depends(get_db)):
    """Public tracking ids for the storefront (Meta pixel, Google Analytics)."""
    config = await content_service.get_site_config(db)
    return config or SiteConfigResponse()


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check with a DB ping. Returns 503 if the database is unreachable."""
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        health_status["database"] = f"error: {type(e).__name__}: {str(e)[:100]}"
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
