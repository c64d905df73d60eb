"""
Product schemas

Cards are the formatted view models the storefront renders (camelCase on
the wire, e.g. imageUrl/originalPrice/staffPick). Detail payloads carry
the raw rows alongside.
"""
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, field_validator

from app.schemas.common import CamelModel
from app.schemas.blog import PostCard


class PartnerRef(CamelModel):
    name: str
    slug: str


class ProductCard(CamelModel):
    id: str
    name: str
    slug: str
    image_url: str
    price: float
    original_price: Optional[float] = None
    description: str
    type: Literal["font", "bundle"]
    discount: Optional[str] = None
    staff_pick: bool = False


class FontCard(ProductCard):
    font_files: List[dict] = []
    partner: Optional[PartnerRef] = None


class FontListResponse(CamelModel):
    fonts: List[FontCard]
    total_pages: int


class BundleListResponse(CamelModel):
    bundles: List[ProductCard]
    total_pages: int


class DiscountRef(BaseModel):
    name: str
    percentage: int

    class Config:
        from_attributes = True


class PriceView(CamelModel):
    price: float
    original_price: Optional[float] = None
    discount: Optional[str] = None


class FontRow(BaseModel):
    """Font as stored, with its partner and discount joined."""
    id: str
    name: str
    slug: str
    price: float
    category: Optional[str] = None
    main_description: Optional[str] = None
    preview_image_urls: List[str] = []
    staff_pick: bool = False
    tags: List[str] = []
    purpose_tags: List[str] = []
    font_files: List[dict] = []
    sales_count: int = 0
    created_at: Optional[datetime] = None
    partner: Optional[PartnerRef] = None
    discount: Optional[DiscountRef] = None

    @field_validator("preview_image_urls", "tags", "purpose_tags", "font_files", mode="before")
    @classmethod
    def default_list(cls, v):
        return v or []

    @field_validator("sales_count", mode="before")
    @classmethod
    def default_sales(cls, v):
        return v or 0

    class Config:
        from_attributes = True


class BundleRow(BaseModel):
    id: str
    name: str
    slug: str
    price: float
    main_description: Optional[str] = None
    preview_image_urls: List[str] = []
    staff_pick: bool = False
    tags: List[str] = []
    purpose_tags: List[str] = []
    font_files: List[dict] = []
    created_at: Optional[datetime] = None
    discount: Optional[DiscountRef] = None

    @field_validator("preview_image_urls", "tags", "purpose_tags", "font_files", mode="before")
    @classmethod
    def default_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class LicenseResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    font_price: Optional[float] = None
    bundle_price: Optional[float] = None
    allowed: List[str] = []
    not_allowed: List[str] = []
    created_at: Optional[datetime] = None

    @field_validator("allowed", "not_allowed", mode="before")
    @classmethod
    def default_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class PairingFont(CamelModel):
    id: str
    name: str
    slug: str
    font_files: List[dict] = []

    @field_validator("font_files", mode="before")
    @classmethod
    def default_list(cls, v):
        return v or []


class LogotypePreviewFont(CamelModel):
    id: str
    name: str
    slug: str
    font_family: str
    font_url: Optional[str] = None
    initial_preview_text: str


class ProductPickerItem(CamelModel):
    """Row in the admin product picker and search suggestions."""
    id: str
    name: str
    slug: str
    type: Literal["font", "bundle"]
    image_url: str
    staff_pick: bool = False


class FontDetailResponse(CamelModel):
    font: FontRow
    pricing: PriceView
    licenses: List[LicenseResponse]
    formatted_bundles: List[ProductCard]
    all_fonts_for_pairing: List[PairingFont]
    latest_blog_posts: List[PostCard] = Field(default_factory=list)


class BundleDetailResponse(CamelModel):
    bundle: BundleRow
    pricing: PriceView
    licenses: List[LicenseResponse]
    latest_blog_posts: List[PostCard] = Field(default_factory=list)

