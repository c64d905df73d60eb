"""
Feeds

Merchant catalog feed (RSS 2.0 with the Google "g:" namespace, consumed by
the Facebook/Meta catalog), sitemap.xml and robots.txt.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.utils import utcnow
from app.models import Bundle, Font, Partner, Post
from app.services.pricing import format_money
from app.services.templates import render

logger = logging.getLogger(__name__)

FEED_TITLE = "Stylish Type Catalog"
FEED_DESCRIPTION = "Premium Fonts and Bundles"
GOOGLE_PRODUCT_CATEGORY = "Software > Digital Goods > Fonts"
DESCRIPTION_MAX_LENGTH = 5000

STATIC_ROUTES = [
    "",
    "/bundles",
    "/product",
    "/logotype",
    "/font-pair",
    "/subscription",
    "/license",
    "/partners",
    "/blog",
    "/about",
    "/contact",
    "/faq",
    "/privacy",
    "/terms",
]

ROBOTS_DISALLOW = ["/admin/", "/account/", "/checkout/", "/auth/", "/api/"]

_TAG_RE = re.compile(r"<[^>]*>?")


def strip_html(text: str) -> str:
    return _TAG_RE.sub("", text)


def feed_description(main_description: Optional[str], fallback: str) -> str:
    if not main_description:
        return fallback
    return strip_html(main_description)[:DESCRIPTION_MAX_LENGTH]


@dataclass
class FeedItem:
    id: str
    title: str
    description: str
    link: str
    image_link: str
    price: str
    custom_label_0: str
    brand: str = "Stylish Type"
    google_product_category: str = GOOGLE_PRODUCT_CATEGORY


def font_feed_item(font, base_url: str) -> FeedItem:
    return FeedItem(
        id=f"font_{font.id}",
        title=font.name,
        description=feed_description(font.main_description, f"Premium font {font.name}"),
        link=f"{base_url}/product/{font.slug}",
        image_link=(font.preview_image_urls or [None])[0] or f"{base_url}/og-image.png",
        price=f"{format_money(font.price)} USD",
        custom_label_0="font",
        brand=settings.BRAND_NAME,
    )


def bundle_feed_item(bundle, base_url: str) -> FeedItem:
    return FeedItem(
        id=f"bundle_{bundle.id}",
        title=bundle.name,
        description=feed_description(bundle.main_description, f"Premium font bundle {bundle.name}"),
        link=f"{base_url}/bundles/{bundle.slug}",
        image_link=(bundle.preview_image_urls or [None])[0] or f"{base_url}/og-image.png",
        price=f"{format_money(bundle.price)} USD",
        custom_label_0="bundle",
        brand=settings.BRAND_NAME,
    )


async def build_merchant_feed(db: AsyncSession) -> str:
    """Every font, then every bundle, newest first."""
    base_url = settings.site_url
    fonts = (await db.execute(select(Font).order_by(Font.created_at.desc()))).scalars().all()
    bundles = (await db.execute(select(Bundle).order_by(Bundle.created_at.desc()))).scalars().all()

    items = [font_feed_item(f, base_url) for f in fonts]
    items += [bundle_feed_item(b, base_url) for b in bundles]
    logger.info(f"Merchant feed built with {len(fonts)} fonts and {len(bundles)} bundles")
    return render(
        "merchant_feed.xml",
        title=FEED_TITLE,
        base_url=base_url,
        description=FEED_DESCRIPTION,
        items=items,
    )


@dataclass
class SitemapEntry:
    loc: str
    priority: float
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None


def _lastmod(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


async def build_sitemap_entries(db: AsyncSession) -> List[SitemapEntry]:
    base_url = settings.site_url
    now = _lastmod(utcnow())

    entries = [
        SitemapEntry(
            loc=f"{base_url}{route}",
            lastmod=now,
            changefreq="daily",
            priority=1.0 if route == "" else 0.5,
        )
        for route in STATIC_ROUTES
    ]

    fonts = await db.execute(select(Font.slug, Font.created_at))
    entries += [
        SitemapEntry(f"{base_url}/product/{slug}", 0.8, _lastmod(created), "weekly")
        for slug, created in fonts.all()
    ]

    bundles = await db.execute(select(Bundle.slug, Bundle.created_at))
    entries += [
        SitemapEntry(f"{base_url}/bundles/{slug}", 0.8, _lastmod(created), "weekly")
        for slug, created in bundles.all()
    ]

    posts = await db.execute(select(Post.slug, Post.updated_at).where(Post.is_published.is_(True)))
    entries += [
        SitemapEntry(f"{base_url}/blog/{slug}", 0.7, _lastmod(updated), "monthly")
        for slug, updated in posts.all()
    ]

    partners = await db.execute(select(Partner.slug, Partner.created_at))
    entries += [
        SitemapEntry(f"{base_url}/partners/{slug}", 0.6, _lastmod(created))
        for slug, created in partners.all()
    ]
    return entries


async def build_sitemap(db: AsyncSession) -> str:
    return render("sitemap.xml", entries=await build_sitemap_entries(db))


def build_robots() -> str:
    return render(
        "robots.txt",
        disallow=ROBOTS_DISALLOW,
        sitemap_url=f"{settings.site_url}/sitemap.xml",
    )
