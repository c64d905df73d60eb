"""
Admin routes for catalog merchandising

Licenses, discounts, staff picks and the curated homepage sections.
Anything that changes a listed price or a listing's membership drops the
cached catalog pages.
"""
import logging
from typing import List, Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import CATALOG_PATHS, FEED_PATHS, HOMEPAGE_PATHS, LICENSE_PATHS
from app.api.deps import get_current_admin
from app.core.audit_log import (
    ACTION_DISCOUNT_APPLY,
    ACTION_DISCOUNT_CREATE,
    ACTION_DISCOUNT_DELETE,
    ACTION_HOMEPAGE_UPDATE,
    ACTION_LICENSE_CREATE,
    ACTION_LICENSE_DELETE,
    ACTION_LICENSE_UPDATE,
    ACTION_STAFF_PICK_UPDATE,
    audit,
)
from app.core.database import get_db
from app.core.redis_client import invalidate_paths
from app.models.user import Profile
from app.schemas.admin import (
    DiscountApplyRequest,
    DiscountCreate,
    DiscountResponse,
    LicenseCreate,
    LicenseUpdate,
    MessageResponse,
    StaffPickUpdate,
    StandardLicenseResponse,
)
from app.schemas.homepage import HomepageSectionResponse, HomepageSectionUpdate
from app.schemas.product import LicenseResponse, ProductCard, ProductPickerItem
from app.services import catalog, license_service, merchandising
from app.services.homepage_service import HomepageService

logger = logging.getLogger(__name__)

router = APIRouter()

PRICE_PATHS = CATALOG_PATHS + FEED_PATHS


# ----- Licenses -----

@router.get("/licenses", response_model=List[LicenseResponse])
async def list_licenses(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await license_service.list_licenses(db)


@router.get("/licenses/standard", response_model=StandardLicenseResponse)
async def get_standard_license(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """The default license the product editor pre-selects."""
    return await license_service.get_standard_license(db)


@router.post("/licenses", response_model=LicenseResponse, status_code=201)
async def create_license(
    payload: LicenseCreate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    lic = await license_service.create_license(db, payload)
    audit(request, admin, ACTION_LICENSE_CREATE, "license", lic.id, {"name": lic.name})
    await invalidate_paths(LICENSE_PATHS)
    return lic


@router.put("/licenses/{license_id}", response_model=LicenseResponse)
async def update_license(
    license_id: str,
    payload: LicenseUpdate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    lic = await license_service.update_license(db, license_id, payload)
    audit(request, admin, ACTION_LICENSE_UPDATE, "license", license_id, {"name": lic.name})
    await invalidate_paths(LICENSE_PATHS)
    return lic


@router.delete("/licenses/{license_id}", response_model=MessageResponse)
async def delete_license(
    license_id: str,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    lic = await license_service.delete_license(db, license_id)
    audit(request, admin, ACTION_LICENSE_DELETE, "license", license_id, {"name": lic.name})
    await invalidate_paths(LICENSE_PATHS)
    return MessageResponse(success=f"License {lic.name} deleted.")


# ----- Discounts -----

@router.get("/discounts", response_model=List[DiscountResponse])
async def list_discounts(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await merchandising.list_discounts(db)


@router.post("/discounts", response_model=DiscountResponse, status_code=201)
async def create_discount(
    payload: DiscountCreate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    discount = await merchandising.create_discount(db, payload)
    audit(request, admin, ACTION_DISCOUNT_CREATE, "discount", discount.id,
          {"name": discount.name, "percentage": discount.percentage})
    return discount


@router.delete("/discounts/{discount_id}", response_model=MessageResponse)
async def delete_discount(
    discount_id: str,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    discount = await merchandising.delete_discount(db, discount_id)
    audit(request, admin, ACTION_DISCOUNT_DELETE, "discount", discount_id, {"name": discount.name})
    await invalidate_paths(PRICE_PATHS)
    return MessageResponse(success="Discount deleted.")


@router.post("/discounts/apply", response_model=MessageResponse)
async def apply_discount(
    payload: DiscountApplyRequest,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Attach a discount to products (all of the type when productIds is omitted), or clear it."""
    updated = await merchandising.apply_discount_to_products(db, payload)
    audit(request, admin, ACTION_DISCOUNT_APPLY, payload.product_type, None, {
        "discount_id": payload.discount_id,
        "product_ids": payload.product_ids,
        "updated": updated,
    })
    await invalidate_paths(PRICE_PATHS)
    return MessageResponse(success=f"Discount updated on {updated} {payload.product_type}s.")


# ----- Staff picks -----

@router.post("/staff-picks", response_model=MessageResponse)
async def set_staff_pick(
    payload: StaffPickUpdate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    updated = await merchandising.set_staff_pick(db, payload)
    audit(request, admin, ACTION_STAFF_PICK_UPDATE, payload.product_type, None, {
        "product_ids": payload.product_ids,
        "staff_pick": payload.staff_pick,
    })
    await invalidate_paths(CATALOG_PATHS)
    return MessageResponse(success=f"Staff pick updated on {updated} {payload.product_type}s.")


# ----- Homepage sections -----

@router.get("/homepage/sections", response_model=List[HomepageSectionResponse])
async def list_homepage_sections(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await HomepageService.list_sections(db)


@router.put("/homepage/sections/{section_key}", response_model=HomepageSectionResponse)
async def update_homepage_section(
    section_key: str,
    payload: HomepageSectionUpdate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    section = await HomepageService.update_section(db, section_key, payload.product_ids)
    audit(request, admin, ACTION_HOMEPAGE_UPDATE, "homepage_section", section_key,
          {"product_ids": payload.product_ids})
    await invalidate_paths(HOMEPAGE_PATHS)
    return section


@router.get("/products/picker", response_model=List[ProductPickerItem], response_model_by_alias=True)
async def product_picker(
    product_type: Literal["all", "font", "bundle"] = Query("all", alias="type"),
    search: str = Query("", max_length=100),
    staff_pick_only: bool = Query(False, alias="staffPick"),
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Fonts and bundles by name for the homepage section editor."""
    return await catalog.get_products_for_manager(
        db, product_type=product_type, search_term=search, staff_pick_only=staff_pick_only
    )


@router.get("/products/by-ids", response_model=List[ProductCard], response_model_by_alias=True)
async def products_by_ids(
    ids: List[str] = Query([]),
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Section preview: formatted products in the order given."""
    return await catalog.get_products_by_ids(db, ids)
