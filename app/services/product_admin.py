"""
Product Admin Service

Create, edit and delete fonts and bundles from the back office.

Slugs follow the product name unless the font editor sends its own. A
name that collides with an existing slug is rejected rather than
suffixed, so storefront URLs stay predictable. Deleting a product removes
its preview images and font files from storage after the row is gone.
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationFailed
from app.core.utils import slugify
from app.models import Bundle, Font, Partner
from app.schemas.admin import BundleCreate, BundleUpdate, FontCreate, FontUpdate
from app.services.pricing import PRODUCT_BUNDLE, quantize_money
from app.services.storage import StorageService

logger = logging.getLogger(__name__)


def product_slug(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise ValidationFailed("Name must contain letters or numbers.")
    return slug


def stored_urls(product) -> List[str]:
    """Every storage URL a product row points at."""
    urls = list(product.preview_image_urls or [])
    urls += [f.get("url") for f in (product.font_files or []) if f.get("url")]
    return urls


async def _ensure_slug_free(db: AsyncSession, model, slug: str, own_id: Optional[str] = None) -> None:
    query = select(model.id).where(model.slug == slug)
    if own_id:
        query = query.where(model.id != own_id)
    if await db.scalar(query):
        raise ValidationFailed(f"A product with the URL '{slug}' already exists.", details={"slug": slug})


async def _ensure_partner(db: AsyncSession, partner_id: Optional[str]) -> None:
    if partner_id and not await db.get(Partner, partner_id):
        raise ValidationFailed("Partner not found", details={"partner_id": partner_id})


async def _commit(db: AsyncSession, kind: str, name: str) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Failed to save {kind} {name}: {e}")
        raise ValidationFailed(f"Failed to save {kind}: {name} conflicts with an existing {kind}.")


async def _delete_stored_files(storage: StorageService, rows) -> None:
    for row in rows:
        for url in stored_urls(row):
            await storage.delete_by_url(url)


# =============================================================================
# FONTS
# =============================================================================

async def get_font(db: AsyncSession, font_id: str) -> Font:
    font = await db.get(Font, font_id)
    if not font:
        raise NotFoundError("Font not found", details={"font_id": font_id})
    return font


async def create_font(db: AsyncSession, data: FontCreate) -> Font:
    slug = product_slug(data.name)
    await _ensure_slug_free(db, Font, slug)
    await _ensure_partner(db, data.partner_id)

    font = Font(
        name=data.name,
        slug=slug,
        price=quantize_money(data.price),
        category=data.category or None,
        main_description=data.main_description or None,
        partner_id=data.partner_id,
        tags=data.tags,
        purpose_tags=data.purpose_tags,
        preview_image_urls=data.preview_image_urls,
        font_files=[f.model_dump() for f in data.font_files],
        staff_pick=False,
    )
    db.add(font)
    await _commit(db, "font", data.name)
    await db.refresh(font)
    logger.info(f"Font created: {font.slug}")
    return font


async def update_font(db: AsyncSession, font_id: str, data: FontUpdate) -> Font:
    """Font files are kept; everything the editor shows is replaced."""
    font = await get_font(db, font_id)
    slug = slugify(data.slug) if data.slug else product_slug(data.name)
    await _ensure_slug_free(db, Font, slug, own_id=font_id)
    await _ensure_partner(db, data.partner_id)

    font.name = data.name
    font.slug = slug
    font.price = quantize_money(data.price)
    font.main_description = data.main_description
    font.category = data.category
    font.partner_id = data.partner_id
    font.tags = data.tags
    font.purpose_tags = data.purpose_tags
    font.staff_pick = data.staff_pick
    font.preview_image_urls = data.preview_image_urls
    await _commit(db, "font", data.name)
    await db.refresh(font)
    return font


async def delete_font(db: AsyncSession, storage: StorageService, font_id: str) -> Font:
    font = await get_font(db, font_id)
    await db.delete(font)
    await db.commit()
    await _delete_stored_files(storage, [font])
    logger.info(f"Font deleted: {font.slug}")
    return font


async def bulk_delete_fonts(db: AsyncSession, storage: StorageService, font_ids: List[str]) -> int:
    result = await db.execute(select(Font).where(Font.id.in_(font_ids)))
    fonts = list(result.scalars().all())
    if not fonts:
        return 0
    await db.execute(delete(Font).where(Font.id.in_([f.id for f in fonts])))
    await db.commit()
    await _delete_stored_files(storage, fonts)
    logger.info(f"Deleted {len(fonts)} fonts")
    return len(fonts)


# =============================================================================
# BUNDLES
# =============================================================================

async def get_bundle(db: AsyncSession, bundle_id: str) -> Bundle:
    bundle = await db.get(Bundle, bundle_id)
    if not bundle:
        raise NotFoundError("Bundle not found", details={"bundle_id": bundle_id})
    return bundle


def _apply_bundle(bundle: Bundle, data: BundleUpdate, slug: str) -> None:
    bundle.name = data.name
    bundle.slug = slug
    bundle.price = quantize_money(data.price)
    bundle.main_description = data.main_description
    bundle.tags = data.tags
    bundle.purpose_tags = data.purpose_tags
    bundle.preview_image_urls = data.preview_image_urls


async def create_bundle(db: AsyncSession, data: BundleCreate) -> Bundle:
    slug = product_slug(data.name)
    await _ensure_slug_free(db, Bundle, slug)

    bundle = Bundle(staff_pick=False, font_files=[f.model_dump() for f in data.font_files])
    _apply_bundle(bundle, data, slug)
    db.add(bundle)
    await _commit(db, PRODUCT_BUNDLE, data.name)
    await db.refresh(bundle)
    logger.info(f"Bundle created: {bundle.slug}")
    return bundle


async def update_bundle(db: AsyncSession, bundle_id: str, data: BundleUpdate) -> Bundle:
    """The slug always follows the bundle name."""
    bundle = await get_bundle(db, bundle_id)
    slug = product_slug(data.name)
    await _ensure_slug_free(db, Bundle, slug, own_id=bundle_id)
    _apply_bundle(bundle, data, slug)
    await _commit(db, PRODUCT_BUNDLE, data.name)
    await db.refresh(bundle)
    return bundle


async def delete_bundle(db: AsyncSession, storage: StorageService, bundle_id: str) -> Bundle:
    bundle = await get_bundle(db, bundle_id)
    await db.delete(bundle)
    await db.commit()
    await _delete_stored_files(storage, [bundle])
    logger.info(f"Bundle deleted: {bundle.slug}")
    return bundle


async def bulk_delete_bundles(db: AsyncSession, storage: StorageService, bundle_ids: List[str]) -> int:
    result = await db.execute(select(Bundle).where(Bundle.id.in_(bundle_ids)))
    bundles = list(result.scalars().all())
    if not bundles:
        return 0
    await db.execute(delete(Bundle).where(Bundle.id.in_([b.id for b in bundles])))
    await db.commit()
    await _delete_stored_files(storage, bundles)
    logger.info(f"Deleted {len(bundles)} bundles")
    return len(bundles)
