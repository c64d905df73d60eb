"""
Content Service

Admin-managed storefront content: partners, trusted-by brands, banner
slides, the "font in use" gallery and the site config row.

Deleting a row that owns an uploaded image also deletes the stored object.
A failed object delete is logged but does not block the row delete.
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationFailed
from app.core.utils import page_offset, slugify, utcnow
from app.models import BannerSlide, Brand, GalleryImage, Partner, SiteConfig
from app.models.site_content import SITE_CONFIG_ID
from app.schemas.admin import (
    BannerSlideCreate,
    BannerSlideUpdate,
    BrandCreate,
    GalleryImageCreate,
    PartnerListResponse,
    PartnerResponse,
    SiteConfigUpdate,
)
from app.services.catalog import count_query
from app.services.storage import StorageService

logger = logging.getLogger(__name__)


# =============================================================================
# PARTNERS
# =============================================================================

async def list_partners(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
) -> PartnerListResponse:
    query = select(Partner)
    if search:
        query = query.where(Partner.name.ilike(f"%{search}%"))
    count = await db.scalar(count_query(query)) or 0
    result = await db.execute(
        query.order_by(Partner.name.asc()).offset(page_offset(page, limit)).limit(limit)
    )
    return PartnerListResponse(
        data=[PartnerResponse.model_validate(p) for p in result.scalars().all()],
        count=count,
    )


async def list_partner_names(db: AsyncSession) -> List[Partner]:
    result = await db.execute(select(Partner).order_by(Partner.name.asc()))
    return list(result.scalars().all())


async def get_partner(db: AsyncSession, partner_id: str) -> Partner:
    partner = await db.get(Partner, partner_id)
    if not partner:
        raise NotFoundError("Partner not found", details={"partner_id": partner_id})
    return partner


async def get_partner_by_slug(db: AsyncSession, slug: str) -> Partner:
    result = await db.execute(select(Partner).where(Partner.slug == slug))
    partner = result.scalar_one_or_none()
    if not partner:
        raise NotFoundError("Partner not found", details={"slug": slug})
    return partner


def _partner_slug(name: str) -> str:
    if not name or not name.strip():
        raise ValidationFailed("Partner Name is required.")
    slug = slugify(name)
    if not slug:
        raise ValidationFailed("Partner Name must contain letters or numbers.")
    return slug


async def create_partner(
    db: AsyncSession,
    name: str,
    subheadline: Optional[str] = None,
    logo_url: Optional[str] = None,
) -> Partner:
    partner = Partner(
        name=name.strip(),
        slug=_partner_slug(name),
        subheadline=subheadline,
        logo_url=logo_url,
    )
    db.add(partner)
    await db.commit()
    await db.refresh(partner)
    logger.info(f"Partner created: {partner.slug}")
    return partner


async def update_partner(
    db: AsyncSession,
    partner_id: str,
    name: str,
    subheadline: Optional[str] = None,
    logo_url: Optional[str] = None,
) -> Partner:
    """Rename/re-describe a partner; the slug follows the name. logo_url None keeps the current logo."""
    partner = await get_partner(db, partner_id)
    partner.name = name.strip()
    partner.slug = _partner_slug(name)
    partner.subheadline = subheadline
    if logo_url is not None:
        partner.logo_url = logo_url
    await db.commit()
    await db.refresh(partner)
    return partner


async def delete_partner(db: AsyncSession, storage: StorageService, partner_id: str) -> Partner:
    partner = await get_partner(db, partner_id)
    await db.delete(partner)
    await db.commit()
    await storage.delete_by_url(partner.logo_url)
    logger.info(f"Partner deleted: {partner.slug}")
    return partner


# =============================================================================
# BRANDS (trusted by)
# =============================================================================

async def list_brands(db: AsyncSession) -> List[Brand]:
    result = await db.execute(select(Brand).order_by(Brand.created_at.desc()))
    return list(result.scalars().all())


async def add_brand(db: AsyncSession, data: BrandCreate) -> Brand:
    brand = Brand(name=data.name.strip(), logo_url=data.logo_url)
    db.add(brand)
    await db.commit()
    await db.refresh(brand)
    return brand


async def delete_brand(db: AsyncSession, storage: StorageService, brand_id: str) -> Brand:
    brand = await db.get(Brand, brand_id)
    if not brand:
        raise NotFoundError("Brand not found", details={"brand_id": brand_id})
    await db.delete(brand)
    await db.commit()
    await storage.delete_by_url(brand.logo_url)
    return brand


async def bulk_delete_brands(db: AsyncSession, storage: StorageService, brand_ids: List[str]) -> int:
    result = await db.execute(select(Brand).where(Brand.id.in_(brand_ids)))
    brands = list(result.scalars().all())
    if not brands:
        return 0
    await db.execute(delete(Brand).where(Brand.id.in_([b.id for b in brands])))
    await db.commit()
    for brand in brands:
        await storage.delete_by_url(brand.logo_url)
    logger.info(f"Deleted {len(brands)} brands")
    return len(brands)


# =============================================================================
# BANNER SLIDES
# =============================================================================

async def list_banner_slides(db: AsyncSession) -> List[BannerSlide]:
    result = await db.execute(
        select(BannerSlide).order_by(BannerSlide.sort_order.asc(), BannerSlide.created_at.desc())
    )
    return list(result.scalars().all())


async def add_banner_slide(db: AsyncSession, data: BannerSlideCreate) -> BannerSlide:
    slide = BannerSlide(
        image_url=data.image_url,
        link_href=data.link_href,
        alt_text=data.alt_text,
        sort_order=data.sort_order,
    )
    db.add(slide)
    await db.commit()
    await db.refresh(slide)
    return slide


async def update_banner_slide(
    db: AsyncSession,
    storage: StorageService,
    slide_id: str,
    data: BannerSlideUpdate,
) -> BannerSlide:
    slide = await db.get(BannerSlide, slide_id)
    if not slide:
        raise NotFoundError("Banner slide not found", details={"slide_id": slide_id})

    old_image_url = None
    if data.new_image_url and data.new_image_url != slide.image_url:
        old_image_url = slide.image_url
        slide.image_url = data.new_image_url

    slide.link_href = data.link_href
    slide.alt_text = data.alt_text
    if data.sort_order is not None:
        slide.sort_order = data.sort_order
    await db.commit()
    await db.refresh(slide)

    if old_image_url:
        await storage.delete_by_url(old_image_url)
    return slide


async def delete_banner_slide(db: AsyncSession, storage: StorageService, slide_id: str) -> BannerSlide:
    slide = await db.get(BannerSlide, slide_id)
    if not slide:
        raise NotFoundError("Banner slide not found", details={"slide_id": slide_id})
    await db.delete(slide)
    await db.commit()
    await storage.delete_by_url(slide.image_url)
    return slide


# =============================================================================
# GALLERY ("font in use")
# =============================================================================

async def list_gallery_images(db: AsyncSession) -> List[GalleryImage]:
    result = await db.execute(select(GalleryImage).order_by(GalleryImage.created_at.desc()))
    return list(result.scalars().all())


async def bulk_add_gallery_images(db: AsyncSession, images: List[GalleryImageCreate]) -> List[GalleryImage]:
    rows = [GalleryImage(image_url=i.image_url, alt_text=i.alt_text) for i in images]
    db.add_all(rows)
    await db.commit()
    logger.info(f"Added {len(rows)} gallery images")
    return rows


async def bulk_delete_gallery_images(db: AsyncSession, storage: StorageService, image_ids: List[str]) -> int:
    result = await db.execute(select(GalleryImage).where(GalleryImage.id.in_(image_ids)))
    images = list(result.scalars().all())
    if not images:
        return 0
    await db.execute(delete(GalleryImage).where(GalleryImage.id.in_([i.id for i in images])))
    await db.commit()
    for image in images:
        await storage.delete_by_url(image.image_url)
    logger.info(f"Deleted {len(images)} gallery images")
    return len(images)


# =============================================================================
# SITE CONFIG
# =============================================================================

async def get_site_config(db: AsyncSession) -> Optional[SiteConfig]:
    return await db.get(SiteConfig, SITE_CONFIG_ID)


async def update_site_config(db: AsyncSession, data: SiteConfigUpdate) -> SiteConfig:
    """Update the single config row, creating it on first save. Fields not sent are left as they are."""
    config = await db.get(SiteConfig, SITE_CONFIG_ID)
    if config is None:
        config = SiteConfig(id=SITE_CONFIG_ID)
        db.add(config)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(config, field, value)
    config.updated_at = utcnow()
    await db.commit()
    return config
