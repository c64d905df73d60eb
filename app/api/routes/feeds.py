"""
Feed routes

Merchant product feed, sitemap and robots.txt. Mounted without the /api
prefix except for the feed itself.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import FEED_CACHE_CONTROL, cache_key_for
from app.core.config import settings
from app.core.database import get_db
from app.core.redis_client import get_cached, set_cached
from app.services import feeds

router = APIRouter()


async def _cached_text(request: Request, build) -> str:
    key = cache_key_for(request)
    cached = await get_cached(key)
    if cached and "body" in cached:
        return cached["body"]
    body = await build()
    await set_cached(key, {"body": body}, settings.CACHE_TTL_FEED)
    return body


@router.get("/api/catalog/facebook")
async def merchant_feed(request: Request, db: AsyncSession = Depends(get_db)):
    """Product feed for Meta/Google merchant catalogs (RSS 2.0 with the g: namespace)."""
    body = await _cached_text(request, lambda: feeds.build_merchant_feed(db))
    return Response(
        content=body,
        media_type="application/xml",
        headers={"Cache-Control": FEED_CACHE_CONTROL},
    )


@router.get("/sitemap.xml")
async def sitemap(request: Request, db: AsyncSession = Depends(get_db)):
    body = await _cached_text(request, lambda: feeds.build_sitemap(db))
    return Response(
        content=body,
        media_type="application/xml",
        headers={"Cache-Control": FEED_CACHE_CONTROL},
    )


@router.get("/robots.txt", response_class=PlainTextResponse)
async def robots():
    return PlainTextResponse(feeds.build_robots())
