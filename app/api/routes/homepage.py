"""
Homepage routes

Every storefront homepage section in one cached payload, plus the banner
slides on their own for pages that only show the carousel.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import CATALOG_CACHE_CONTROL, cached_payload
from app.core.config import settings
from app.core.database import get_db
from app.schemas.homepage import BannerSlidesResponse
from app.services.homepage_service import HomepageService

router = APIRouter()


@router.get("")
async def get_homepage(request: Request, db: AsyncSession = Depends(get_db)):
    payload = await cached_payload(request, settings.CACHE_TTL_CATALOG, lambda: HomepageService.get_homepage(db))
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})


@router.get("/banner-slides")
async def get_banner_slides(request: Request, db: AsyncSession = Depends(get_db)):
    async def build():
        return BannerSlidesResponse(banner_data=await HomepageService.get_banner_slides(db))

    payload = await cached_payload(request, settings.CACHE_TTL_CATALOG, build)
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})
