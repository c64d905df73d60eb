"""
Homepage content and site configuration models

Banner slides, the "font in use" gallery, curated homepage sections and
the single-row site configuration (tracking ids).
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from app.core.database import Base
from app.models.product import _uuid

SITE_CONFIG_ID = 1

SECTION_FEATURED_PRODUCTS = "featured_products"
SECTION_POPULAR_BUNDLES = "popular_bundles"


class BannerSlide(Base):
    __tablename__ = "banner_slides"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    image_url = Column(Text, nullable=False)
    link_href = Column(Text, nullable=True)
    alt_text = Column(String(255), nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class GalleryImage(Base):
    """Showcase image for the "font in use" gallery."""
    __tablename__ = "gallery_images"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    image_url = Column(Text, nullable=False)
    alt_text = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class HomepageSection(Base):
    """Ordered product ids curated for a homepage section."""
    __tablename__ = "homepage_sections"

    section_key = Column(String(100), primary_key=True)
    product_ids = Column(ARRAY(String), default=lambda: [], nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class SiteConfig(Base):
    __tablename__ = "site_config"

    id = Column(Integer, primary_key=True, default=SITE_CONFIG_ID)
    meta_pixel_id = Column(String(100), nullable=True)
    google_analytics_id = Column(String(100), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
