"""
Storefront page routes

Cached payloads for the licensing, subscription, font pairing, logotype
and partner pages.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import CATALOG_CACHE_CONTROL, DETAIL_CACHE_CONTROL, cached_payload
from app.core.config import settings
from app.core.database import get_db
from app.services import pages
from app.services.catalog import SORT_NEWEST

router = APIRouter()


@router.get("/license-page")
async def license_page(request: Request, db: AsyncSession = Depends(get_db)):
    """Every license's terms, Standard first: {licenseDetailsData}"""
    payload = await cached_payload(request, settings.CACHE_TTL_DETAIL, lambda: pages.get_license_page(db))
    return JSONResponse(payload, headers={"Cache-Control": DETAIL_CACHE_CONTROL})


@router.get("/subscription-page")
async def subscription_page(request: Request, db: AsyncSession = Depends(get_db)):
    """Plans by monthly price plus the feature comparison table."""
    payload = await cached_payload(request, settings.CACHE_TTL_DETAIL, lambda: pages.get_subscription_page(db))
    return JSONResponse(payload, headers={"Cache-Control": DETAIL_CACHE_CONTROL})


@router.get("/font-pair-page")
async def font_pair_page(request: Request, db: AsyncSession = Depends(get_db)):
    payload = await cached_payload(request, settings.CACHE_TTL_CATALOG, lambda: pages.get_font_pair_page(db))
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})


@router.get("/logotype-page")
async def logotype_page(request: Request, db: AsyncSession = Depends(get_db)):
    payload = await cached_payload(request, settings.CACHE_TTL_CATALOG, lambda: pages.get_logotype_page(db))
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})


@router.get("/partners")
async def partners_page(request: Request, db: AsyncSession = Depends(get_db)):
    payload = await cached_payload(request, settings.CACHE_TTL_CATALOG, lambda: pages.get_partners_page(db))
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})


@router.get("/partners/{slug}")
async def partner_page(
    slug: str,
    request: Request,
    search: Optional[str] = Query(None, max_length=100),
    sort: str = SORT_NEWEST,
    page: int = Query(1),
    db: AsyncSession = Depends(get_db),
):
    """A partner with its fonts: {partner, brands, fonts, totalPages}"""
    payload = await cached_payload(
        request,
        settings.CACHE_TTL_CATALOG,
        lambda: pages.get_partner_page(db, slug, search=search, sort=sort, page=page),
    )
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})
