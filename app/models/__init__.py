from app.models.product import Discount, Font, Bundle
from app.models.partner import Partner, Brand
from app.models.license import License
from app.models.user import Profile
from app.models.order import Order, OrderItem
from app.models.subscription import SubscriptionPlan, UserSubscription
from app.models.post import Post
from app.models.site_content import BannerSlide, GalleryImage, HomepageSection, SiteConfig

__all__ = [
    "Discount",
    "Font",
    "Bundle",
    "Partner",
    "Brand",
    "License",
    "Profile",
    "Order",
    "OrderItem",
    "SubscriptionPlan",
    "UserSubscription",
    "Post",
    "BannerSlide",
    "GalleryImage",
    "HomepageSection",
    "SiteConfig",
]
