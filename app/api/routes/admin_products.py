"""
Admin routes for fonts and bundles

The font and bundle editors upload preview images (through
/uploads/product_images) and font files first, then save the product with
the returned URLs. Every mutation is audit logged and drops the cached
catalog pages and feeds.
"""
import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import PRODUCT_PATHS
from app.api.deps import get_current_admin
from app.core.audit_log import (
    ACTION_BUNDLE_CREATE,
    ACTION_BUNDLE_DELETE,
    ACTION_BUNDLE_UPDATE,
    ACTION_FONT_CREATE,
    ACTION_FONT_DELETE,
    ACTION_FONT_UPDATE,
    audit,
)
from app.core.database import get_db
from app.core.redis_client import invalidate_paths
from app.models.user import Profile
from app.schemas.admin import (
    BulkDeleteRequest,
    BundleAdminResponse,
    BundleCreate,
    BundleUpdate,
    FontAdminResponse,
    FontCreate,
    FontUpdate,
    MessageResponse,
    UploadResponse,
)
from app.services import product_admin
from app.services.storage import StorageService, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/uploads/font-files", response_model=UploadResponse, status_code=201)
async def upload_font_file(
    file: UploadFile = File(...),
    admin: Profile = Depends(get_current_admin),
    storage: StorageService = Depends(get_storage),
):
    """Store an OTF/TTF/WOFF/WOFF2 file and return its public URL."""
    if not storage.is_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage service not configured. Set S3_BUCKET, S3_ACCESS_KEY, S3_SECRET_KEY."
        )

    result = await storage.upload_font_file(await file.read(), file.filename or "font")
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return UploadResponse(url=result.url, key=result.key)


# ----- Fonts -----

@router.get("/fonts/{font_id}", response_model=FontAdminResponse)
async def get_font(
    font_id: str,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await product_admin.get_font(db, font_id)


@router.post("/fonts", response_model=FontAdminResponse, status_code=201)
async def create_font(
    payload: FontCreate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    font = await product_admin.create_font(db, payload)
    audit(request, admin, ACTION_FONT_CREATE, "font", font.id, {"name": font.name, "slug": font.slug})
    await invalidate_paths(PRODUCT_PATHS)
    return font


@router.put("/fonts/{font_id}", response_model=FontAdminResponse)
async def update_font(
    font_id: str,
    payload: FontUpdate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    font = await product_admin.update_font(db, font_id, payload)
    audit(request, admin, ACTION_FONT_UPDATE, "font", font.id, {"name": font.name, "slug": font.slug})
    await invalidate_paths(PRODUCT_PATHS)
    return font


@router.delete("/fonts/{font_id}", response_model=MessageResponse)
async def delete_font(
    font_id: str,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    font = await product_admin.delete_font(db, storage, font_id)
    audit(request, admin, ACTION_FONT_DELETE, "font", font_id, {"name": font.name})
    await invalidate_paths(PRODUCT_PATHS)
    return MessageResponse(success=f"Font {font.name} deleted.")


@router.post("/fonts/bulk-delete", response_model=MessageResponse)
async def bulk_delete_fonts(
    payload: BulkDeleteRequest,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    deleted = await product_admin.bulk_delete_fonts(db, storage, payload.ids)
    audit(request, admin, ACTION_FONT_DELETE, "font", None, {"ids": payload.ids, "deleted": deleted})
    await invalidate_paths(PRODUCT_PATHS)
    return MessageResponse(success=f"{deleted} fonts deleted.")


# ----- Bundles -----

@router.get("/bundles/{bundle_id}", response_model=BundleAdminResponse)
async def get_bundle(
    bundle_id: str,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await product_admin.get_bundle(db, bundle_id)


@router.post("/bundles", response_model=BundleAdminResponse, status_code=201)
async def create_bundle(
    payload: BundleCreate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    bundle = await product_admin.create_bundle(db, payload)
    audit(request, admin, ACTION_BUNDLE_CREATE, "bundle", bundle.id, {"name": bundle.name, "slug": bundle.slug})
    await invalidate_paths(PRODUCT_PATHS)
    return bundle


@router.put("/bundles/{bundle_id}", response_model=BundleAdminResponse)
async def update_bundle(
    bundle_id: str,
    payload: BundleUpdate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    bundle = await product_admin.update_bundle(db, bundle_id, payload)
    audit(request, admin, ACTION_BUNDLE_UPDATE, "bundle", bundle.id, {"name": bundle.name, "slug": bundle.slug})
    await invalidate_paths(PRODUCT_PATHS)
    return bundle


@router.delete("/bundles/{bundle_id}", response_model=MessageResponse)
async def delete_bundle(
    bundle_id: str,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    bundle = await product_admin.delete_bundle(db, storage, bundle_id)
    audit(request, admin, ACTION_BUNDLE_DELETE, "bundle", bundle_id, {"name": bundle.name})
    await invalidate_paths(PRODUCT_PATHS)
    return MessageResponse(success=f"Bundle {bundle.name} deleted.")


@router.post("/bundles/bulk-delete", response_model=MessageResponse)
async def bulk_delete_bundles(
    payload: BulkDeleteRequest,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    deleted = await product_admin.bulk_delete_bundles(db, storage, payload.ids)
    audit(request, admin, ACTION_BUNDLE_DELETE, "bundle", None, {"ids": payload.ids, "deleted": deleted})
    await invalidate_paths(PRODUCT_PATHS)
    return MessageResponse(success=f"{deleted} bundles deleted.")
