"""
Cart schemas
"""
from typing import Any, List, Literal, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class CartLicenseSchema(CamelModel):
    id: str
    name: str


class CartItemSchema(CamelModel):
    id: Optional[str] = None
    product_id: str
    name: str
    slug: str = ""
    image_url: str = ""
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    license: CartLicenseSchema
    type: Literal["font", "bundle"]
    quantity: int = Field(1, ge=1)


class CartSummaryRequest(CamelModel):
    """Whatever the browser has stored: the current {version, items} shape or a legacy array."""
    cart: Any = None


class CartAddRequest(CamelModel):
    cart: Any = None
    item: CartItemSchema


class CartRemoveRequest(CamelModel):
    cart: Any = None
    item_id: str


class CartSummary(CamelModel):
    version: int
    items: List[CartItemSchema]
    count: int
    total: float
    original_total: float


class CartMutationResponse(CamelModel):
    """Updated cart plus the notice to show for the add/remove."""
    changed: bool
    message: str
    notification: Optional[str] = None
    cart: CartSummary


class LicenseQuoteRequest(CamelModel):
    product_id: str
    type: Literal["font", "bundle"]
    license_id: str
    user_count: int = Field(1, ge=1, le=1000)


class LicenseQuote(CamelModel):
    """Price the cart line will be charged; quantity is the seat count actually priced."""
    price: float
    original_price: Optional[float] = None
    quantity: int
    discount: Optional[str] = None
    license: CartLicenseSchema
