"""
Homepage schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import CamelModel
from app.schemas.blog import PostCard
from app.schemas.product import LogotypePreviewFont, ProductCard
from app.models.site_content import SECTION_FEATURED_PRODUCTS, SECTION_POPULAR_BUNDLES

VALID_SECTION_KEYS = {SECTION_FEATURED_PRODUCTS, SECTION_POPULAR_BUNDLES}


class BannerSlideView(BaseModel):
    src: str
    href: Optional[str] = None
    alt: str


class BannerSlidesResponse(CamelModel):
    banner_data: List[BannerSlideView]


class BrandView(CamelModel):
    id: str
    name: str
    logo_url: str


class GalleryImageView(CamelModel):
    id: str
    image_url: str
    alt_text: Optional[str] = None


class HomepageResponse(CamelModel):
    """Every homepage section in one payload."""
    banner_data: List[BannerSlideView]
    featured_products: List[ProductCard]
    popular_bundles: List[ProductCard]
    marquee_fonts: List[ProductCard]
    logotype_preview: List[LogotypePreviewFont]
    latest_posts: List[PostCard]
    trusted_by: List[BrandView]
    font_in_use: List[GalleryImageView]


class HomepageSectionResponse(BaseModel):
    section_key: str
    product_ids: List[str] = []
    updated_at: Optional[datetime] = None

    @field_validator("product_ids", mode="before")
    @classmethod
    def default_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class HomepageSectionUpdate(BaseModel):
    """Ordered product ids for one curated section."""
    product_ids: List[str] = Field(default_factory=list, max_length=50)
