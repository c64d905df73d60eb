"""
Checkout and order schemas
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.cart import CartItemSchema
from app.schemas.common import CamelModel


class CreatePayPalOrderRequest(CamelModel):
    total_amount: float = Field(..., gt=0)


class CapturePayPalOrderRequest(BaseModel):
    order_id: str = Field(..., alias="orderID", min_length=1)

    class Config:
        populate_by_name = True


class BillingAddress(CamelModel):
    street_address: str
    city: str = ""
    country: str = ""
    postal_code: str = ""


class SubscriptionInfo(CamelModel):
    plan_id: str
    billing_cycle: Literal["monthly", "yearly"] = "monthly"
    active_subscription_id: Optional[str] = None


class OrderCreateRequest(CamelModel):
    """Cart contents after a successful capture."""
    items: List[CartItemSchema] = Field(default_factory=list)
    total_amount: float = Field(..., ge=0)
    billing_address: Optional[BillingAddress] = None
    subscription_info: Optional[SubscriptionInfo] = None
    payment_id: Optional[str] = None

    @field_validator("items")
    @classmethod
    def unique_items(cls, v):
        seen = set()
        for item in v:
            key = (item.product_id, item.license.id)
            if key in seen:
                raise ValueError(f"Duplicate cart item: {item.product_id}-{item.license.id}")
            seen.add(key)
        return v


class OrderCreatedResponse(CamelModel):
    success: bool = True
    order_id: str
    duplicate: bool = False


class LibraryGrantRequest(CamelModel):
    product_id: str
    license_id: str
    product_type: Literal["font", "bundle"]


class LibraryGrantResponse(CamelModel):
    success: str
    order_id: str


class OrderSummary(BaseModel):
    id: str
    created_at: Optional[datetime] = None
    total_amount: float
    status: str
    item_count: int = 0


class OrderHistoryResponse(BaseModel):
    orders: List[OrderSummary]


class SubscriptionOrderSummary(OrderSummary):
    plan_name: str = "N/A"


class PurchasedProduct(CamelModel):
    id: str
    name: str
    slug: str
    image_url: str
    description: Optional[str] = None
    type: Literal["font", "bundle"]
    license_name: Optional[str] = None


class AdminOrderRow(OrderSummary):
    customer_name: str = "N/A"
    customer_email: str = "N/A"


class AdminOrderList(BaseModel):
    data: List[AdminOrderRow]
    count: int
