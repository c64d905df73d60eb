"""
Blog routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import CATALOG_CACHE_CONTROL, cached_payload
from app.core.config import settings
from app.core.database import get_db
from app.schemas.blog import PostDetailResponse
from app.services import blog_service

router = APIRouter()


@router.get("")
async def list_posts(
    request: Request,
    page: int = Query(1),
    search: Optional[str] = None,
    category: Optional[str] = None,
    sort: str = "Newest",
    db: AsyncSession = Depends(get_db),
):
    """Published post cards: {posts, totalPages}"""
    payload = await cached_payload(
        request,
        settings.CACHE_TTL_CATALOG,
        lambda: blog_service.list_posts(db, page=page, search=search, category=category, sort=sort),
    )
    return JSONResponse(payload, headers={"Cache-Control": CATALOG_CACHE_CONTROL})


@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    return {"categories": await blog_service.list_post_categories(db)}


# Not cached: every read bumps the view count
@router.get("/{slug}", response_model=PostDetailResponse, response_model_by_alias=True)
async def get_post(slug: str, db: AsyncSession = Depends(get_db)):
    return await blog_service.get_post_detail(db, slug)
