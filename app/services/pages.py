"""
Page Service

Payloads for the storefront's marketing pages: licensing, subscription
comparison, font pairing, logotype maker and the partner foundries.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Font, Partner
from app.schemas.homepage import BrandView
from app.schemas.pages import (
    FontPairPageResponse,
    LicenseDetail,
    LicensePageResponse,
    LogotypePageResponse,
    PartnerPageResponse,
    PartnersPageResponse,
    PartnerView,
    SubscriptionPageResponse,
)
from app.schemas.subscription import PlanResponse
from app.services import blog_service, catalog, content_service, license_service, subscription_service
from app.services.catalog import CatalogFilters, SORT_NEWEST
from app.services.pricing import sort_licenses

logger = logging.getLogger(__name__)


async def get_license_page(db: AsyncSession) -> LicensePageResponse:
    licenses = sort_licenses(await license_service.list_licenses(db))
    return LicensePageResponse(license_details_data=[
        LicenseDetail(
            title=lic.name,
            description=lic.description or "",
            allowed=list(lic.allowed or []),
            not_allowed=list(lic.not_allowed or []),
        )
        for lic in licenses
    ])


def comparison_table(plans) -> List[Dict[str, Optional[List[str]]]]:
    """
    One row per allowed feature across all plans, in first-seen order.

    Each plan column holds [feature] when the plan includes it, else None.
    """
    features: List[str] = []
    for plan in plans:
        for feature in plan.allowed_features:
            if feature not in features:
                features.append(feature)

    rows = []
    for feature in features:
        row = {"feature": feature}
        for plan in plans:
            row[plan.name] = [feature] if feature in plan.allowed_features else None
        rows.append(row)
    return rows


async def get_subscription_page(db: AsyncSession) -> SubscriptionPageResponse:
    plans = await subscription_service.list_plans(db)
    return SubscriptionPageResponse(
        plans=[PlanResponse.model_validate(p) for p in plans],
        plan_names=[p.name for p in plans],
        comparison_table_data=comparison_table(plans),
    )


async def get_font_pair_page(db: AsyncSession) -> FontPairPageResponse:
    return FontPairPageResponse(
        all_fonts_for_pairing=await catalog.get_fonts_for_pairing(db),
        latest_blog_posts=await blog_service.get_latest_posts(db),
        marquee_fonts=await catalog.get_marquee_fonts(db),
    )


async def get_logotype_page(db: AsyncSession) -> LogotypePageResponse:
    """Every font with a previewable file, newest first."""
    result = await db.execute(select(Font).order_by(Font.created_at.desc()))
    previews = [catalog.logotype_preview(f) for f in result.scalars().all()]
    return LogotypePageResponse(
        all_logotype_fonts=[p for p in previews if p is not None],
        latest_blog_posts=await blog_service.get_latest_posts(db),
        marquee_fonts=await catalog.get_marquee_fonts(db),
    )


async def get_partners_page(db: AsyncSession) -> PartnersPageResponse:
    result = await db.execute(select(Partner).order_by(Partner.name.asc()))
    return PartnersPageResponse(
        partners=[PartnerView.model_validate(p) for p in result.scalars().all()],
        marquee_fonts=await catalog.get_marquee_fonts(db),
    )


async def get_partner_page(
    db: AsyncSession,
    slug: str,
    search: Optional[str] = None,
    sort: str = SORT_NEWEST,
    page: int = 1,
) -> PartnerPageResponse:
    """
    A partner foundry with its fonts, paginated like the main listing.

    Raises:
        NotFoundError: no partner has this slug
    """
    partner = await content_service.get_partner_by_slug(db, slug)
    brands = await content_service.list_brands(db)
    listing = await catalog.list_fonts(
        db, CatalogFilters(search=search, sort=sort, page=page, partner_id=str(partner.id))
    )
    return PartnerPageResponse(
        partner=PartnerView.model_validate(partner),
        brands=[BrandView.model_validate(b) for b in brands],
        fonts=listing.fonts,
        total_pages=listing.total_pages,
    )
