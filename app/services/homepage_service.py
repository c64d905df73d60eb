"""
Homepage Service
Section payloads for the storefront homepage and the curated section config.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationFailed
from app.core.utils import utcnow
from app.models import BannerSlide, Brand, Bundle, Font, GalleryImage, HomepageSection
from app.models.site_content import SECTION_FEATURED_PRODUCTS, SECTION_POPULAR_BUNDLES
from app.schemas.homepage import (
    BannerSlideView,
    BrandView,
    GalleryImageView,
    HomepageResponse,
    HomepageSectionResponse,
    VALID_SECTION_KEYS,
)
from app.schemas.product import ProductCard
from app.services import blog_service, catalog
from app.services.pricing import format_bundle

logger = logging.getLogger(__name__)

FEATURED_FALLBACK_LIMIT = 8
POPULAR_BUNDLES_LIMIT = 4


class HomepageService:
    @staticmethod
    async def get_section_ids(db: AsyncSession, section_key: str) -> List[str]:
        result = await db.execute(
            select(HomepageSection).where(HomepageSection.section_key == section_key)
        )
        section = result.scalar_one_or_none()
        if not section or not section.product_ids:
            return []
        return [str(i) for i in section.product_ids]

    @staticmethod
    async def get_featured_products(db: AsyncSession) -> List[ProductCard]:
        """Curated featured products, or the newest staff-pick fonts when none are configured."""
        product_ids = await HomepageService.get_section_ids(db, SECTION_FEATURED_PRODUCTS)
        if not product_ids:
            result = await db.execute(
                select(Font.id)
                .where(Font.staff_pick.is_(True))
                .order_by(Font.created_at.desc())
                .limit(FEATURED_FALLBACK_LIMIT)
            )
            product_ids = [str(i) for i in result.scalars().all()]
        return await catalog.get_products_by_ids(db, product_ids)

    @staticmethod
    async def get_popular_bundles(db: AsyncSession) -> List[ProductCard]:
        product_ids = await HomepageService.get_section_ids(db, SECTION_POPULAR_BUNDLES)
        if product_ids:
            product_ids = product_ids[:POPULAR_BUNDLES_LIMIT]
            result = await db.execute(select(Bundle).where(Bundle.id.in_(product_ids)))
            by_id = {str(b.id): format_bundle(b) for b in result.scalars().all()}
            return [by_id[i] for i in product_ids if i in by_id]
        return await catalog.get_latest_bundles(db, limit=POPULAR_BUNDLES_LIMIT)

    @staticmethod
    async def get_banner_slides(db: AsyncSession) -> List[BannerSlideView]:
        result = await db.execute(
            select(BannerSlide).order_by(BannerSlide.sort_order.asc(), BannerSlide.created_at.desc())
        )
        return [
            BannerSlideView(src=s.image_url, href=s.link_href, alt=s.alt_text or "Banner image")
            for s in result.scalars().all()
        ]

    @staticmethod
    async def get_brands(db: AsyncSession) -> List[BrandView]:
        result = await db.execute(select(Brand).order_by(Brand.created_at.desc()))
        return [BrandView.model_validate(b) for b in result.scalars().all()]

    @staticmethod
    async def get_gallery_images(db: AsyncSession) -> List[GalleryImageView]:
        result = await db.execute(select(GalleryImage).order_by(GalleryImage.created_at.desc()))
        return [GalleryImageView.model_validate(g) for g in result.scalars().all()]

    @staticmethod
    async def get_homepage(db: AsyncSession) -> HomepageResponse:
        return HomepageResponse(
            banner_data=await HomepageService.get_banner_slides(db),
            featured_products=await HomepageService.get_featured_products(db),
            popular_bundles=await HomepageService.get_popular_bundles(db),
            marquee_fonts=await catalog.get_marquee_fonts(db),
            logotype_preview=await catalog.get_logotype_preview_fonts(db),
            latest_posts=await blog_service.get_latest_posts(db),
            trusted_by=await HomepageService.get_brands(db),
            font_in_use=await HomepageService.get_gallery_images(db),
        )

    # ----- Admin: curated sections -----

    @staticmethod
    async def list_sections(db: AsyncSession) -> List[HomepageSectionResponse]:
        result = await db.execute(select(HomepageSection).order_by(HomepageSection.section_key))
        return [HomepageSectionResponse.model_validate(s) for s in result.scalars().all()]

    @staticmethod
    async def update_section(
        db: AsyncSession,
        section_key: str,
        product_ids: List[str],
    ) -> HomepageSectionResponse:
        """Replace a section's ordered product ids, creating the section row if needed."""
        if section_key not in VALID_SECTION_KEYS:
            raise ValidationFailed(f"Invalid section key: {section_key}")

        result = await db.execute(
            select(HomepageSection).where(HomepageSection.section_key == section_key)
        )
        section: Optional[HomepageSection] = result.scalar_one_or_none()
        if section:
            section.product_ids = list(product_ids)
            section.updated_at = utcnow()
        else:
            section = HomepageSection(section_key=section_key, product_ids=list(product_ids), updated_at=utcnow())
            db.add(section)

        await db.commit()
        logger.info(f"Homepage section {section_key} set to {len(product_ids)} products")
        return HomepageSectionResponse.model_validate(section)
