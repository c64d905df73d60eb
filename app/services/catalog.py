"""
Catalog Service

Filter/sort/paginate query building for the font and bundle listings,
plus the smaller product feeds (marquee, pairing, logotype preview,
search suggestions, admin product picker).

Sort keys: Newest | Oldest | A to Z | Z to A | Popular | Staff Pick.
Unknown keys fall back to Newest. Staff Pick narrows to staff picks and
keeps the Newest ordering.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.config import settings
from app.core.utils import page_offset, total_pages
from app.models import Bundle, Font, Partner
from app.schemas.product import (
    BundleListResponse,
    FontListResponse,
    LogotypePreviewFont,
    PairingFont,
    ProductCard,
    ProductPickerItem,
)
from app.services.pricing import (
    PRODUCT_BUNDLE,
    PRODUCT_FONT,
    first_image,
    format_bundle,
    format_font,
)

logger = logging.getLogger(__name__)

SORT_NEWEST = "Newest"
SORT_OLDEST = "Oldest"
SORT_A_TO_Z = "A to Z"
SORT_Z_TO_A = "Z to A"
SORT_POPULAR = "Popular"
SORT_STAFF_PICK = "Staff Pick"

SORT_OPTIONS = [SORT_NEWEST, SORT_OLDEST, SORT_A_TO_Z, SORT_Z_TO_A, SORT_POPULAR, SORT_STAFF_PICK]

ALL_CATEGORIES = "All"

MARQUEE_LIMIT = 30
LOGOTYPE_PREVIEW_LIMIT = 12
SEARCH_FONT_LIMIT = 4
SEARCH_BUNDLE_LIMIT = 2
PRODUCT_PICKER_LIMIT = 50


@dataclass
class CatalogFilters:
    search: Optional[str] = None
    category: Optional[str] = None
    sort: str = SORT_NEWEST
    page: int = 1
    partner_id: Optional[str] = None
    partner_slug: Optional[str] = None
    tag: Optional[str] = None

    @property
    def normalized_sort(self) -> str:
        return self.sort if self.sort in SORT_OPTIONS else SORT_NEWEST


def _ordering(model, sort: str) -> list:
    if sort == SORT_POPULAR and hasattr(model, "sales_count"):
        return [model.sales_count.desc()]
    if sort == SORT_OLDEST:
        return [model.created_at.asc()]
    if sort == SORT_A_TO_Z:
        return [model.name.asc()]
    if sort == SORT_Z_TO_A:
        return [model.name.desc()]
    # Newest, Staff Pick, and Popular for models without a sales counter
    return [model.created_at.desc()]


def _common_filters(query: Select, model, filters: CatalogFilters) -> Select:
    if filters.search:
        query = query.where(model.name.ilike(f"%{filters.search}%"))
    if filters.tag:
        query = query.where(
            or_(model.tags.contains([filters.tag]), model.purpose_tags.contains([filters.tag]))
        )
    if filters.normalized_sort == SORT_STAFF_PICK:
        query = query.where(model.staff_pick.is_(True))
    return query


def build_font_query(filters: CatalogFilters) -> Select:
    """Filtered and ordered font select, not yet paginated."""
    query = _common_filters(select(Font), Font, filters)

    if filters.category and filters.category != ALL_CATEGORIES:
        query = query.where(Font.category == filters.category)

    if filters.partner_id:
        query = query.where(Font.partner_id == filters.partner_id)
    elif filters.partner_slug == settings.HOUSE_PARTNER_SLUG:
        # House fonts have no partner row
        query = query.where(Font.partner_id.is_(None))
    elif filters.partner_slug:
        query = query.where(
            Font.partner_id.in_(select(Partner.id).where(Partner.slug == filters.partner_slug))
        )

    return query.order_by(*_ordering(Font, filters.normalized_sort))


def build_bundle_query(filters: CatalogFilters) -> Select:
    """Filtered and ordered bundle select, not yet paginated."""
    query = _common_filters(select(Bundle), Bundle, filters)
    return query.order_by(*_ordering(Bundle, filters.normalized_sort))


def count_query(query: Select) -> Select:
    return select(func.count()).select_from(query.order_by(None).subquery())


def paginate(query: Select, page: int, page_size: Optional[int] = None) -> Select:
    page_size = page_size or settings.CATALOG_PAGE_SIZE
    return query.offset(page_offset(page, page_size)).limit(page_size)


async def _fetch_page(db: AsyncSession, query: Select, page: int):
    """Rows for one page plus the total page count. Pages past the end are empty."""
    page_size = settings.CATALOG_PAGE_SIZE
    count = await db.scalar(count_query(query)) or 0
    if page_offset(page, page_size) >= count:
        return [], total_pages(count, page_size)

    result = await db.execute(paginate(query, page, page_size))
    return result.scalars().all(), total_pages(count, page_size)


async def list_fonts(db: AsyncSession, filters: CatalogFilters) -> FontListResponse:
    fonts, pages = await _fetch_page(db, build_font_query(filters), filters.page)
    return FontListResponse(fonts=[format_font(f) for f in fonts], total_pages=pages)


async def list_bundles(db: AsyncSession, filters: CatalogFilters) -> BundleListResponse:
    bundles, pages = await _fetch_page(db, build_bundle_query(filters), filters.page)
    return BundleListResponse(bundles=[format_bundle(b) for b in bundles], total_pages=pages)


async def get_latest_bundles(db: AsyncSession, limit: int = 4) -> List[ProductCard]:
    result = await db.execute(select(Bundle).order_by(Bundle.created_at.desc()).limit(limit))
    return [format_bundle(b) for b in result.scalars().all()]


async def get_marquee_fonts(db: AsyncSession, limit: int = MARQUEE_LIMIT) -> List[ProductCard]:
    """Newest staff-pick fonts for the scrolling promo row."""
    result = await db.execute(
        select(Font)
        .where(Font.staff_pick.is_(True))
        .order_by(Font.created_at.desc())
        .limit(limit)
    )
    return [format_font(f) for f in result.scalars().all()]


async def get_fonts_for_pairing(db: AsyncSession) -> List[PairingFont]:
    result = await db.execute(select(Font).order_by(Font.name.asc()))
    return [PairingFont.model_validate(f) for f in result.scalars().all()]


async def get_font_categories(db: AsyncSession) -> List[str]:
    result = await db.execute(
        select(Font.category).where(Font.category.isnot(None)).distinct()
    )
    return sorted(c for c in result.scalars().all() if c)


def preview_text_from_name(name: str) -> str:
    """First three words of a font name, ignoring any "- Style" suffix."""
    name_without_style = name.split("-")[0].strip()
    return " ".join(name_without_style.split(" ")[:3])


def logotype_preview(font) -> Optional[LogotypePreviewFont]:
    """Preview entry using the Regular file (or the first one). None if the font has no files."""
    files = font.font_files or []
    display_file = next(
        (f for f in files if str(f.get("style", "")).lower() == "regular"),
        files[0] if files else None,
    )
    if not display_file or not font.slug:
        return None
    return LogotypePreviewFont(
        id=str(font.id),
        name=font.name,
        slug=font.slug,
        font_family=f"logotype-preview-{font.slug}",
        font_url=display_file.get("url"),
        initial_preview_text=preview_text_from_name(font.name),
    )


async def get_logotype_preview_fonts(db: AsyncSession, limit: int = LOGOTYPE_PREVIEW_LIMIT) -> List[LogotypePreviewFont]:
    result = await db.execute(select(Font).order_by(Font.created_at.desc()).limit(limit))
    previews = [logotype_preview(f) for f in result.scalars().all()]
    return [p for p in previews if p is not None]


def _picker_item(row, kind: str) -> ProductPickerItem:
    return ProductPickerItem(
        id=str(row.id),
        name=row.name,
        slug=row.slug,
        type=kind,
        image_url=first_image(row.preview_image_urls),
        staff_pick=bool(row.staff_pick),
    )


async def search_products(db: AsyncSession, term: str) -> List[ProductPickerItem]:
    """Name search for the storefront search box: up to 4 fonts then 2 bundles."""
    if not term:
        return []
    pattern = f"%{term}%"
    fonts = await db.execute(select(Font).where(Font.name.ilike(pattern)).limit(SEARCH_FONT_LIMIT))
    bundles = await db.execute(select(Bundle).where(Bundle.name.ilike(pattern)).limit(SEARCH_BUNDLE_LIMIT))
    return (
        [_picker_item(f, PRODUCT_FONT) for f in fonts.scalars().all()]
        + [_picker_item(b, PRODUCT_BUNDLE) for b in bundles.scalars().all()]
    )


async def get_products_for_manager(
    db: AsyncSession,
    product_type: str = "all",
    search_term: str = "",
    staff_pick_only: bool = False,
) -> List[ProductPickerItem]:
    """Admin product picker used when curating homepage sections."""
    items: List[ProductPickerItem] = []
    pattern = f"%{search_term or ''}%"
    for model, kind in ((Font, PRODUCT_FONT), (Bundle, PRODUCT_BUNDLE)):
        if product_type not in ("all", kind):
            continue
        query = select(model).where(model.name.ilike(pattern))
        if staff_pick_only:
            query = query.where(model.staff_pick.is_(True))
        result = await db.execute(query.order_by(model.name.asc()).limit(PRODUCT_PICKER_LIMIT))
        items.extend(_picker_item(row, kind) for row in result.scalars().all())
    return items


async def get_products_by_ids(db: AsyncSession, product_ids: Sequence[str]) -> List[ProductCard]:
    """Formatted fonts and bundles for the given ids, in the order given. Unknown ids are skipped."""
    if not product_ids:
        return []
    ids = [str(i) for i in product_ids]
    fonts = await db.execute(select(Font).where(Font.id.in_(ids)))
    bundles = await db.execute(select(Bundle).where(Bundle.id.in_(ids)))

    by_id = {}
    for font in fonts.scalars().all():
        by_id[str(font.id)] = format_font(font)
    for bundle in bundles.scalars().all():
        by_id[str(bundle.id)] = format_bundle(bundle)
    return [by_id[i] for i in ids if i in by_id]
