"""
Admin schemas

Request/response payloads for the admin endpoints. These stay snake_case,
matching the database columns the admin screens edit.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class MessageResponse(BaseModel):
    success: str


class UploadResponse(BaseModel):
    url: str
    key: str


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1, max_length=500)


# ----- Partners -----

class PartnerResponse(BaseModel):
    id: str
    name: str
    slug: str
    logo_url: Optional[str] = None
    subheadline: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PartnerListResponse(BaseModel):
    data: List[PartnerResponse]
    count: int


class PartnerNameItem(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


# ----- Brands -----

class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    logo_url: str = Field(..., min_length=1)


class BrandResponse(BaseModel):
    id: str
    name: str
    logo_url: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ----- Licenses -----

class LicenseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    font_price: float = Field(0, ge=0)
    bundle_price: float = Field(0, ge=0)
    allowed: List[str] = Field(default_factory=list)
    not_allowed: List[str] = Field(default_factory=list)

    @field_validator("allowed", "not_allowed")
    @classmethod
    def drop_blank(cls, v):
        return [s.strip() for s in v if s and s.strip()]


class LicenseUpdate(LicenseCreate):
    pass


class StandardLicenseResponse(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


# ----- Banner slides -----

class BannerSlideCreate(BaseModel):
    image_url: str = Field(..., min_length=1)
    link_href: Optional[str] = None
    alt_text: Optional[str] = None
    sort_order: int = 0


class BannerSlideUpdate(BaseModel):
    link_href: Optional[str] = None
    alt_text: Optional[str] = None
    sort_order: Optional[int] = None
    # Replaces the current image; the old object is removed from storage
    new_image_url: Optional[str] = None


class BannerSlideResponse(BaseModel):
    id: str
    image_url: str
    link_href: Optional[str] = None
    alt_text: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ----- Gallery -----

class GalleryImageCreate(BaseModel):
    image_url: str = Field(..., min_length=1)
    alt_text: Optional[str] = None


class GalleryBulkAddRequest(BaseModel):
    images: List[GalleryImageCreate] = Field(..., min_length=1, max_length=100)


class GalleryImageResponse(BaseModel):
    id: str
    image_url: str
    alt_text: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ----- Site config -----

class SiteConfigResponse(BaseModel):
    meta_pixel_id: Optional[str] = None
    google_analytics_id: Optional[str] = None

    class Config:
        from_attributes = True


class SiteConfigUpdate(BaseModel):
    meta_pixel_id: Optional[str] = None
    google_analytics_id: Optional[str] = None

    @field_validator("meta_pixel_id", "google_analytics_id")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        return v.strip() or None


# ----- Discounts and staff picks -----

class DiscountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    percentage: int = Field(..., ge=0, le=100)


class DiscountResponse(BaseModel):
    id: str
    name: str
    percentage: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DiscountApplyRequest(BaseModel):
    """Set (or clear, with discount_id None) the discount on products; no ids means every product of the type."""
    product_type: Literal["font", "bundle"]
    product_ids: Optional[List[str]] = None
    discount_id: Optional[str] = None


class StaffPickUpdate(BaseModel):
    product_type: Literal["font", "bundle"]
    product_ids: List[str] = Field(..., min_length=1)
    staff_pick: bool


# ----- Fonts and bundles -----

MIN_FONT_PREVIEW_IMAGES = 15
MAX_FONT_PREVIEW_IMAGES = 20


def split_tags(v):
    """Tags arrive as a list or as the editor's comma-separated string."""
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(",")
    return [t.strip() for t in v if t and t.strip()]


class FontFileEntry(BaseModel):
    style: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class ProductFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., ge=0)
    main_description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    purpose_tags: List[str] = Field(default_factory=list)
    preview_image_urls: List[str] = Field(default_factory=list)

    @field_validator("tags", "purpose_tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        return split_tags(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class FontFields(ProductFields):
    category: Optional[str] = None
    partner_id: Optional[str] = None

    @field_validator("partner_id", mode="before")
    @classmethod
    def blank_partner(cls, v):
        # The editor's "no partner" option posts the string "null"
        if v in ("", "null"):
            return None
        return v


class FontCreate(FontFields):
    font_files: List[FontFileEntry] = Field(..., min_length=1)
    preview_image_urls: List[str] = Field(
        ..., min_length=MIN_FONT_PREVIEW_IMAGES, max_length=MAX_FONT_PREVIEW_IMAGES
    )


class FontUpdate(FontFields):
    """Font editor save. slug defaults to one derived from the name."""
    slug: Optional[str] = Field(None, max_length=255)
    staff_pick: bool = False


class BundleCreate(ProductFields):
    font_files: List[FontFileEntry] = Field(default_factory=list)


class BundleUpdate(ProductFields):
    pass


class FontAdminResponse(BaseModel):
    id: str
    name: str
    slug: str
    price: float
    category: Optional[str] = None
    partner_id: Optional[str] = None
    staff_pick: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BundleAdminResponse(BaseModel):
    id: str
    name: str
    slug: str
    price: float
    staff_pick: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ----- Blog posts -----

POST_STATUS_PUBLISHED = "Published"
POST_STATUS_DRAFT = "Draft"


class PostWrite(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    content: Optional[str] = None
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    author_name: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    status: Literal["Published", "Draft"] = POST_STATUS_DRAFT
    show_toc: bool = False

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        return split_tags(v)

    @property
    def is_published(self) -> bool:
        return self.status == POST_STATUS_PUBLISHED
