"""
Storefront page payloads

One response per marketing page, each carrying every section the page
renders so the browser makes a single request.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.schemas.blog import PostCard
from app.schemas.common import CamelModel
from app.schemas.homepage import BrandView
from app.schemas.product import FontCard, LogotypePreviewFont, PairingFont, ProductCard
from app.schemas.subscription import PlanResponse


class LicenseDetail(CamelModel):
    title: str
    description: str = ""
    allowed: List[str] = []
    not_allowed: List[str] = []


class LicensePageResponse(CamelModel):
    license_details_data: List[LicenseDetail]


class SubscriptionPageResponse(CamelModel):
    """
    comparison_table_data has one row per allowed feature:
    {"feature": text, <plan name>: [text] or None}
    """
    plans: List[PlanResponse]
    plan_names: List[str]
    comparison_table_data: List[Dict[str, Any]]


class FontPairPageResponse(CamelModel):
    all_fonts_for_pairing: List[PairingFont]
    latest_blog_posts: List[PostCard]
    marquee_fonts: List[ProductCard]


class LogotypePageResponse(CamelModel):
    all_logotype_fonts: List[LogotypePreviewFont]
    latest_blog_posts: List[PostCard]
    marquee_fonts: List[ProductCard]


class PartnerView(CamelModel):
    id: str
    name: str
    slug: str
    logo_url: Optional[str] = None
    subheadline: Optional[str] = None
    created_at: Optional[datetime] = None


class PartnersPageResponse(CamelModel):
    partners: List[PartnerView]
    marquee_fonts: List[ProductCard]


class PartnerPageResponse(CamelModel):
    partner: PartnerView
    brands: List[BrandView]
    fonts: List[FontCard]
    total_pages: int
