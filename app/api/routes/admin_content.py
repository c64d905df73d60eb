"""
Admin routes for storefront content

Partners (foundries), trusted-by brands, banner slides, the "font in use"
gallery, blog posts and site config. Every mutation is audit logged and drops the
cached pages that show the content.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import BLOG_PATHS, BRAND_PATHS, CATALOG_PATHS, FEED_PATHS, HOMEPAGE_PATHS
from app.api.deps import get_current_admin
from app.core.audit_log import (
    ACTION_BANNER_CREATE,
    ACTION_BANNER_DELETE,
    ACTION_BANNER_UPDATE,
    ACTION_BRAND_CREATE,
    ACTION_BRAND_DELETE,
    ACTION_CONFIG_UPDATE,
    ACTION_GALLERY_CREATE,
    ACTION_GALLERY_DELETE,
    ACTION_PARTNER_CREATE,
    ACTION_PARTNER_DELETE,
    ACTION_PARTNER_UPDATE,
    ACTION_POST_CREATE,
    ACTION_POST_DELETE,
    ACTION_POST_UPDATE,
    audit,
)
from app.core.database import get_db
from app.core.redis_client import invalidate_paths
from app.models.user import Profile
from app.schemas.admin import (
    BannerSlideCreate,
    BannerSlideResponse,
    BannerSlideUpdate,
    BrandCreate,
    BrandResponse,
    BulkDeleteRequest,
    GalleryBulkAddRequest,
    GalleryImageResponse,
    MessageResponse,
    PartnerListResponse,
    PartnerNameItem,
    PartnerResponse,
    PostWrite,
    SiteConfigResponse,
    SiteConfigUpdate,
    UploadResponse,
)
from app.schemas.blog import PostResponse
from app.services import blog_service, content_service
from app.services.storage import FOLDER_PARTNER_LOGOS, IMAGE_FOLDERS, StorageService, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()

PARTNER_PATHS = CATALOG_PATHS + FEED_PATHS


async def _upload(storage: StorageService, folder: str, file: UploadFile) -> UploadResponse:
    if not storage.is_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage service not configured. Set S3_BUCKET, S3_ACCESS_KEY, S3_SECRET_KEY."
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")

    result = await storage.upload_image(
        folder=folder,
        content=content,
        filename=file.filename or "image",
        content_type=file.content_type or "application/octet-stream",
    )
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return UploadResponse(url=result.url, key=result.key)


@router.post("/uploads/{folder}", response_model=UploadResponse, status_code=201)
async def upload_image(
    folder: str,
    file: UploadFile = File(...),
    admin: Profile = Depends(get_current_admin),
    storage: StorageService = Depends(get_storage),
):
    """
    Upload an image into a storage folder and return its public URL.

    The admin screens upload first, then save the URL with the row
    (brand logo, banner slide, gallery image).
    """
    if folder not in IMAGE_FOLDERS:
        raise HTTPException(status_code=404, detail=f"Unknown image folder: {folder}")
    return await _upload(storage, folder, file)


# ----- Partners -----

@router.get("/partners", response_model=PartnerListResponse)
async def list_partners(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await content_service.list_partners(db, page=page, limit=limit, search=search)


@router.get("/partners/names", response_model=List[PartnerNameItem])
async def list_partner_names(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Id/name pairs for the product editor's partner dropdown."""
    return await content_service.list_partner_names(db)


@router.get("/partners/{partner_id}", response_model=PartnerResponse)
async def get_partner(
    partner_id: str,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await content_service.get_partner(db, partner_id)


@router.post("/partners", response_model=PartnerResponse, status_code=201)
async def create_partner(
    request: Request,
    name: str = Form(..., max_length=255),
    subheadline: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Create a partner from the multipart form; the logo file is optional."""
    logo_url = None
    if logo is not None and logo.filename:
        logo_url = (await _upload(storage, FOLDER_PARTNER_LOGOS, logo)).url

    partner = await content_service.create_partner(db, name, subheadline=subheadline, logo_url=logo_url)
    audit(request, admin, ACTION_PARTNER_CREATE, "partner", partner.id, {"name": partner.name})
    await invalidate_paths(PARTNER_PATHS)
    return partner


@router.put("/partners/{partner_id}", response_model=PartnerResponse)
async def update_partner(
    partner_id: str,
    request: Request,
    name: str = Form(..., max_length=255),
    subheadline: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    existing = await content_service.get_partner(db, partner_id)
    old_logo_url = existing.logo_url

    logo_url = None
    if logo is not None and logo.filename:
        logo_url = (await _upload(storage, FOLDER_PARTNER_LOGOS, logo)).url

    partner = await content_service.update_partner(
        db, partner_id, name, subheadline=subheadline, logo_url=logo_url
    )
    if logo_url and old_logo_url and old_logo_url != logo_url:
        await storage.delete_by_url(old_logo_url)

    audit(request, admin, ACTION_PARTNER_UPDATE, "partner", partner.id, {"name": partner.name})
    await invalidate_paths(PARTNER_PATHS)
    return partner


@router.delete("/partners/{partner_id}", response_model=MessageResponse)
async def delete_partner(
    partner_id: str,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    partner = await content_service.delete_partner(db, storage, partner_id)
    audit(request, admin, ACTION_PARTNER_DELETE, "partner", partner_id, {"name": partner.name})
    await invalidate_paths(PARTNER_PATHS)
    return MessageResponse(success=f"Partner {partner.name} deleted.")


# ----- Brands (trusted by) -----

@router.get("/brands", response_model=List[BrandResponse])
async def list_brands(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await content_service.list_brands(db)


@router.post("/brands", response_model=BrandResponse, status_code=201)
async def add_brand(
    payload: BrandCreate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    brand = await content_service.add_brand(db, payload)
    audit(request, admin, ACTION_BRAND_CREATE, "brand", brand.id, {"name": brand.name})
    await invalidate_paths(BRAND_PATHS)
    return brand


@router.delete("/brands/{brand_id}", response_model=MessageResponse)
async def delete_brand(
    brand_id: str,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    brand = await content_service.delete_brand(db, storage, brand_id)
    audit(request, admin, ACTION_BRAND_DELETE, "brand", brand_id, {"name": brand.name})
    await invalidate_paths(BRAND_PATHS)
    return MessageResponse(success="Brand deleted.")


@router.post("/brands/bulk-delete", response_model=MessageResponse)
async def bulk_delete_brands(
    payload: BulkDeleteRequest,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    deleted = await content_service.bulk_delete_brands(db, storage, payload.ids)
    audit(request, admin, ACTION_BRAND_DELETE, "brand", None, {"ids": payload.ids, "deleted": deleted})
    await invalidate_paths(BRAND_PATHS)
    return MessageResponse(success=f"{deleted} brands deleted.")


# ----- Banner slides -----

@router.get("/banner-slides", response_model=List[BannerSlideResponse])
async def list_banner_slides(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await content_service.list_banner_slides(db)


@router.post("/banner-slides", response_model=BannerSlideResponse, status_code=201)
async def add_banner_slide(
    payload: BannerSlideCreate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    slide = await content_service.add_banner_slide(db, payload)
    audit(request, admin, ACTION_BANNER_CREATE, "banner_slide", slide.id)
    await invalidate_paths(HOMEPAGE_PATHS)
    return slide


@router.put("/banner-slides/{slide_id}", response_model=BannerSlideResponse)
async def update_banner_slide(
    slide_id: str,
    payload: BannerSlideUpdate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    slide = await content_service.update_banner_slide(db, storage, slide_id, payload)
    audit(request, admin, ACTION_BANNER_UPDATE, "banner_slide", slide_id,
          {"image_replaced": bool(payload.new_image_url)})
    await invalidate_paths(HOMEPAGE_PATHS)
    return slide


@router.delete("/banner-slides/{slide_id}", response_model=MessageResponse)
async def delete_banner_slide(
    slide_id: str,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    await content_service.delete_banner_slide(db, storage, slide_id)
    audit(request, admin, ACTION_BANNER_DELETE, "banner_slide", slide_id)
    await invalidate_paths(HOMEPAGE_PATHS)
    return MessageResponse(success="Banner slide deleted.")


# ----- Gallery -----

@router.get("/gallery", response_model=List[GalleryImageResponse])
async def list_gallery_images(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await content_service.list_gallery_images(db)


@router.post("/gallery", response_model=List[GalleryImageResponse], status_code=201)
async def bulk_add_gallery_images(
    payload: GalleryBulkAddRequest,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    images = await content_service.bulk_add_gallery_images(db, payload.images)
    audit(request, admin, ACTION_GALLERY_CREATE, "gallery_image", None, {"count": len(images)})
    await invalidate_paths(HOMEPAGE_PATHS)
    return images


@router.post("/gallery/bulk-delete", response_model=MessageResponse)
async def bulk_delete_gallery_images(
    payload: BulkDeleteRequest,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    deleted = await content_service.bulk_delete_gallery_images(db, storage, payload.ids)
    audit(request, admin, ACTION_GALLERY_DELETE, "gallery_image", None, {"ids": payload.ids, "deleted": deleted})
    await invalidate_paths(HOMEPAGE_PATHS)
    return MessageResponse(success=f"{deleted} images deleted.")


# ----- Site config -----

@router.get("/site-config", response_model=SiteConfigResponse)
async def get_site_config(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    config = await content_service.get_site_config(db)
    return config or SiteConfigResponse()


@router.put("/site-config", response_model=SiteConfigResponse)
async def update_site_config(
    payload: SiteConfigUpdate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    config = await content_service.update_site_config(db, payload)
    audit(request, admin, ACTION_CONFIG_UPDATE, "site_config", config.id,
          payload.model_dump(exclude_unset=True))
    return config


# ----- Blog posts -----

@router.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Any post, drafts included."""
    return await blog_service.get_post(db, post_id)


@router.post("/posts", response_model=PostResponse, status_code=201)
async def create_post(
    payload: PostWrite,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    post = await blog_service.create_post(db, payload)
    audit(request, admin, ACTION_POST_CREATE, "post", post.id, {"title": post.title, "status": payload.status})
    await invalidate_paths(BLOG_PATHS)
    return post


@router.put("/posts/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    payload: PostWrite,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    post = await blog_service.update_post(db, post_id, payload)
    audit(request, admin, ACTION_POST_UPDATE, "post", post.id, {"title": post.title, "status": payload.status})
    await invalidate_paths(BLOG_PATHS)
    return post


@router.delete("/posts/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    post = await blog_service.delete_post(db, storage, post_id)
    audit(request, admin, ACTION_POST_DELETE, "post", post_id, {"title": post.title})
    await invalidate_paths(BLOG_PATHS)
    return MessageResponse(success=f"Post {post.title} deleted.")
