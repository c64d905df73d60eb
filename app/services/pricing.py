"""
Pricing and product card formatting

One implementation of the discount rule for every listing endpoint:

    final = price - price * percentage / 100

Money is handled as Decimal and rounded half-up to cents, so a $50.00 font
with 20% off is exactly 40.00 and a 15% discount on 9.99 is 8.49.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from app.core.config import settings
from app.schemas.product import FontCard, PartnerRef, ProductCard

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

PRODUCT_FONT = "font"
PRODUCT_BUNDLE = "bundle"


def to_decimal(value: Any) -> Decimal:
    """Decimal from a DB Numeric, float, int or string. None is zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so 19.99 becomes Decimal("19.99"), not its binary expansion
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Any) -> str:
    """Two-decimal string: 19.989999 -> "19.99"."""
    return str(quantize_money(value))


def discount_percentage(discount: Any) -> int:
    """Percentage of a Discount row or {"percentage": ...} dict; 0 when absent."""
    if discount is None:
        return 0
    if isinstance(discount, dict):
        percentage = discount.get("percentage")
    else:
        percentage = getattr(discount, "percentage", None)
    return int(percentage or 0)


@dataclass
class PriceBreakdown:
    price: Decimal
    original_price: Optional[Decimal] = None
    discount_label: Optional[str] = None

    @property
    def is_discounted(self) -> bool:
        return self.original_price is not None


def apply_discount(price: Any, discount: Any = None) -> PriceBreakdown:
    """
    Final price for a list price and an optional discount.

    original_price is only set when a discount with percentage > 0 applies;
    a 0% discount behaves exactly like no discount.
    """
    raw = quantize_money(price)
    percentage = discount_percentage(discount)
    if percentage <= 0:
        return PriceBreakdown(price=raw)

    final = raw - raw * Decimal(percentage) / Decimal(100)
    return PriceBreakdown(
        price=quantize_money(final),
        original_price=raw,
        discount_label=f"{percentage}% OFF",
    )


def first_image(preview_image_urls) -> str:
    if preview_image_urls:
        return preview_image_urls[0]
    return settings.PLACEHOLDER_IMAGE_URL


def _card_fields(row, kind: str) -> dict:
    pricing = apply_discount(row.price, getattr(row, "discount", None))
    if kind == PRODUCT_FONT:
        description = getattr(row, "category", None) or "Font"
    else:
        description = "Bundle"
    return {
        "id": str(row.id),
        "name": row.name,
        "slug": row.slug,
        "image_url": first_image(row.preview_image_urls),
        "price": float(pricing.price),
        "original_price": float(pricing.original_price) if pricing.is_discounted else None,
        "description": description,
        "type": kind,
        "discount": pricing.discount_label,
        "staff_pick": bool(row.staff_pick),
    }


def format_product(row, kind: str) -> ProductCard:
    """Storefront card for a Font or Bundle row."""
    return ProductCard(**_card_fields(row, kind))


def format_font(font) -> FontCard:
    """Font card with the downloadable file manifest and partner reference."""
    partner = None
    if font.partner is not None:
        partner = PartnerRef(name=font.partner.name, slug=font.partner.slug)
    return FontCard(
        **_card_fields(font, PRODUCT_FONT),
        font_files=list(font.font_files or []),
        partner=partner,
    )


def format_bundle(bundle) -> ProductCard:
    return format_product(bundle, PRODUCT_BUNDLE)


# License names are compared case-insensitively
STANDARD_LICENSE = "standard"
BUNDLE_EXCLUDED_LICENSES = frozenset({"trademark", "studio", "extended", "corporate", "exclusive"})
SINGLE_SEAT_LICENSES = frozenset({"corporate", "exclusive"})

# Tolerance when checking a submitted price against a quote
PRICE_TOLERANCE = CENTS


def license_key(license) -> str:
    return (license.name or "").strip().lower()


def license_offered(license, kind: str) -> bool:
    """Bundles are never sold under the single-font enterprise licenses."""
    return kind != PRODUCT_BUNDLE or license_key(license) not in BUNDLE_EXCLUDED_LICENSES


def sort_licenses(licenses: list) -> list:
    """Standard first, the rest in their given order."""
    return sorted(licenses, key=lambda lic: license_key(lic) != STANDARD_LICENSE)


@dataclass
class LicenseQuote:
    price: Decimal
    original_price: Optional[Decimal]
    user_count: int
    discount_label: Optional[str] = None


def quote_license(product, license, kind: str, user_count: int = 1) -> LicenseQuote:
    """
    Price of product under license for user_count seats.

    The Standard license costs the product's list price; any other license
    costs its own font_price or bundle_price. Corporate and Exclusive are
    always one seat. The product's discount applies to the whole amount.

    Raises:
        ValueError: the license is not offered for this product type
    """
    if not license_offered(license, kind):
        raise ValueError(f"The {license.name} license is not available for bundles")

    if license_key(license) == STANDARD_LICENSE:
        base = quantize_money(product.price)
    elif kind == PRODUCT_BUNDLE:
        base = quantize_money(license.bundle_price)
    else:
        base = quantize_money(license.font_price)

    seats = 1 if license_key(license) in SINGLE_SEAT_LICENSES else max(1, int(user_count or 1))
    breakdown = apply_discount(base * seats, getattr(product, "discount", None))
    return LicenseQuote(
        price=breakdown.price,
        original_price=breakdown.original_price,
        user_count=seats,
        discount_label=breakdown.discount_label,
    )


def price_matches(submitted: Any, quoted: Decimal) -> bool:
    return abs(quantize_money(submitted) - quoted) <= PRICE_TOLERANCE
