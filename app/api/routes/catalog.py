"""
Catalog routes

Public font and bundle listings, detail pages and search. Listing payloads
are cached in Redis and at the CDN (Cache-Control).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import CATALOG_CACHE_CONTROL, DETAIL_CACHE_CONTROL, cached_payload
from app.core.config import settings
from app.core.database import get_db
from app.services import catalog, product_detail
from app.services.catalog import CatalogFilters, SORT_NEWEST

router = APIRouter()


@router.get("/fonts")
async def list_fonts(
    request: Request,
    search: Optional[str] = None,
    category: Optional[str] = None,
    sort: str = SORT_NEWEST,
    page: int = Query(1),
    partner_id: Optional[str] = Query(None, alias="partnerId"),
    partner: Optional[str] = None,
    tag: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Paginated font cards: {fonts, totalPages}"""
    filters = CatalogFilters(
        search=search,
        category=category,
        sort=sort,
        page=page,
        partner_id=partner_id,
        partner_slug=partner,
        tag=tag,
    )
    payload = await cached_payload(request, settings.CACHE_TTL_CATALOG, lambda: catalog.list_fonts(db, filters))
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})


@router.get("/fonts/categories")
async def list_font_categories(request: Request, db: AsyncSession = Depends(get_db)):
    payload = await cached_payload(request, settings.CACHE_TTL_CATALOG, lambda: catalog.get_font_categories(db))
    return JSONResponse({"categories": payload}, headers={"Cache-Control": CATALOG_CACHE_CONTROL})


@router.get("/bundles")
async def list_bundles(
    request: Request,
    search: Optional[str] = None,
    sort: str = SORT_NEWEST,
    page: int = Query(1),
    tag: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Paginated bundle cards: {bundles, totalPages}"""
    filters = CatalogFilters(search=search, sort=sort, page=page, tag=tag)
    payload = await cached_payload(request, settings.CACHE_TTL_CATALOG, lambda: catalog.list_bundles(db, filters))
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})


@router.get("/font-detail/{slug}")
async def font_detail(slug: str, request: Request, db: AsyncSession = Depends(get_db)):
    payload = await cached_payload(
        request, settings.CACHE_TTL_DETAIL, lambda: product_detail.get_font_detail(db, slug)
    )
    return JSONResponse(payload, headers={"Cache-Control": DETAIL_CACHE_CONTROL})


@router.get("/bundle-detail/{slug}")
async def bundle_detail(slug: str, request: Request, db: AsyncSession = Depends(get_db)):
    payload = await cached_payload(
        request, settings.CACHE_TTL_DETAIL, lambda: product_detail.get_bundle_detail(db, slug)
    )
    return JSONResponse(payload, headers={"Cache-Control": DETAIL_CACHE_CONTROL})


@router.get("/search")
async def search(
    request: Request,
    q: str = Query("", max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """Header search: a few fonts and bundles matching the name."""
    if not q.strip():
        return {"results": []}
    payload = await cached_payload(
        request, settings.CACHE_TTL_CATALOG, lambda: catalog.search_products(db, q.strip())
    )
    return JSONResponse({"results": payload}, headers={"Cache-Control": CATALOG_CACHE_CONTROL})
