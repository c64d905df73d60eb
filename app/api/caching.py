"""
Response caching for public GET endpoints

Payloads are cached in Redis under the request path plus query string, so
invalidate_paths([path]) after an admin change drops every variant of it.
"""
import logging
from typing import Any, Awaitable, Callable

from fastapi import Request
from fastapi.encoders import jsonable_encoder

from app.core.redis_client import get_cached, page_cache_key, set_cached

logger = logging.getLogger(__name__)

CATALOG_CACHE_CONTROL = "s-maxage=600, stale-while-revalidate=3000"
DETAIL_CACHE_CONTROL = "s-maxage=3600, stale-while-revalidate"
FEED_CACHE_CONTROL = "s-maxage=3600, stale-while-revalidate"

# Paths dropped after catalog changes (products, discounts, licenses, partners)
CATALOG_PATHS = [
    "/api/fonts",
    "/api/bundles",
    "/api/font-detail",
    "/api/bundle-detail",
    "/api/homepage",
    "/api/search",
    "/api/font-pair-page",
    "/api/logotype-page",
    "/api/partners",
]
HOMEPAGE_PATHS = ["/api/homepage"]
FEED_PATHS = ["/api/catalog/facebook", "/sitemap.xml"]
# Brand logos also appear on partner pages
BRAND_PATHS = HOMEPAGE_PATHS + ["/api/partners"]
LICENSE_PATHS = CATALOG_PATHS + ["/api/license-page"]
PLAN_PATHS = ["/api/subscription-page"]
PRODUCT_PATHS = CATALOG_PATHS + FEED_PATHS
# Latest-post cards show on most storefront pages
BLOG_PATHS = [
    "/api/blog",
    "/api/homepage",
    "/api/font-detail",
    "/api/bundle-detail",
    "/api/font-pair-page",
    "/api/logotype-page",
    "/sitemap.xml",
]

def cache_key_for(request: Request) -> str:
    return page_cache_key(request.url.path, dict(request.query_params))


async def cached_payload(request: Request, ttl_seconds: int, build: Callable[[], Awaitable[Any]]) -> Any:
    """
    Cached JSON-ready payload for this request, building and storing it on a miss.

    Pydantic models are encoded with their aliases (camelCase view models).
    """
    key = cache_key_for(request)
    cached = await get_cached(key)
    if cached is not None:
        return cached

    payload = jsonable_encoder(await build(), by_alias=True)
    await set_cached(key, payload, ttl_seconds)
    return payload
