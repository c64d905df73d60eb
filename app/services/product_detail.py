"""
Product detail pages

Composes the font and bundle detail payloads: the product row, its price
breakdown, every license, and related content.
"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationFailed
from app.models import Bundle, Font, License
from app.schemas.cart import CartLicenseSchema, LicenseQuote, LicenseQuoteRequest
from app.schemas.product import (
    BundleDetailResponse,
    BundleRow,
    FontDetailResponse,
    FontRow,
    LicenseResponse,
    PriceView,
)
from app.services import blog_service, catalog, license_service
from app.services.pricing import (
    PRODUCT_BUNDLE,
    PRODUCT_FONT,
    apply_discount,
    license_offered,
    quote_license,
    sort_licenses,
)

logger = logging.getLogger(__name__)


def price_view(row) -> PriceView:
    pricing = apply_discount(row.price, row.discount)
    return PriceView(
        price=float(pricing.price),
        original_price=float(pricing.original_price) if pricing.is_discounted else None,
        discount=pricing.discount_label,
    )


async def list_licenses(db: AsyncSession, kind: str = PRODUCT_FONT) -> List[LicenseResponse]:
    """Licenses offered for this product type, Standard first."""
    offered = [lic for lic in await license_service.list_licenses(db) if license_offered(lic, kind)]
    return [LicenseResponse.model_validate(lic) for lic in sort_licenses(offered)]


async def get_font_detail(db: AsyncSession, slug: str) -> FontDetailResponse:
    result = await db.execute(select(Font).where(Font.slug == slug))
    font = result.scalar_one_or_none()
    if not font:
        raise NotFoundError("Font not found", details={"slug": slug})

    # One session cannot run statements concurrently, so these are sequential
    licenses = await list_licenses(db)
    bundles = await catalog.get_latest_bundles(db, limit=4)
    pairing = await catalog.get_fonts_for_pairing(db)
    posts = await blog_service.get_latest_posts(db)

    return FontDetailResponse(
        font=FontRow.model_validate(font),
        pricing=price_view(font),
        licenses=licenses,
        formatted_bundles=bundles,
        all_fonts_for_pairing=pairing,
        latest_blog_posts=posts[:4],
    )


async def get_bundle_detail(db: AsyncSession, slug: str) -> BundleDetailResponse:
    result = await db.execute(select(Bundle).where(Bundle.slug == slug))
    bundle = result.scalar_one_or_none()
    if not bundle:
        raise NotFoundError("Bundle not found", details={"slug": slug})

    return BundleDetailResponse(
        bundle=BundleRow.model_validate(bundle),
        pricing=price_view(bundle),
        licenses=await list_licenses(db, PRODUCT_BUNDLE),
        latest_blog_posts=await blog_service.get_latest_posts(db),
    )


async def quote_product_license(db: AsyncSession, request: LicenseQuoteRequest) -> LicenseQuote:
    """Server-side price for adding a product under a license to the cart."""
    model = Font if request.type == PRODUCT_FONT else Bundle
    product = await db.get(model, request.product_id)
    if not product:
        raise NotFoundError(
            f"{request.type.capitalize()} not found",
            details={"product_id": request.product_id},
        )
    lic = await db.get(License, request.license_id)
    if not lic:
        raise NotFoundError("License not found", details={"license_id": request.license_id})

    try:
        quote = quote_license(product, lic, request.type, request.user_count)
    except ValueError as e:
        raise ValidationFailed(str(e), details={"license_id": request.license_id})

    return LicenseQuote(
        price=float(quote.price),
        original_price=float(quote.original_price) if quote.original_price is not None else None,
        quantity=quote.user_count,
        discount=quote.discount_label,
        license=CartLicenseSchema(id=str(lic.id), name=lic.name),
    )
