"""
Cart

The shopping cart lives in the browser; this module is its domain model
and storage format, shared by the cart endpoints and checkout.

Rules:
- An item's id is "{productId}-{licenseId}"; the same product/license pair
  can only be in the cart once. Adding it again leaves the cart unchanged
  and returns a notice instead.
- A successful add queues one "added" notification, handed out once by
  pop_notification().
- total is the sum of current (discounted) prices, original_total the sum
  of original prices where present, else current prices.

Storage format (version 2):
    {"version": 2, "items": [{"id": ..., "productId": ..., ...}]}
Version 1 was the bare JSON array of items; it is migrated on load.
"""
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.schemas.cart import CartItemSchema, CartSummary
from app.services.pricing import quantize_money

logger = logging.getLogger(__name__)

CART_SCHEMA_VERSION = 2

PRODUCT_TYPES = ("font", "bundle")

MESSAGE_DUPLICATE = "{name} is already in your cart."
MESSAGE_ADDED = "{name} added to cart!"
MESSAGE_REMOVED = "Item removed from cart."


class CartItemInvalid(ValueError):
    """Stored or submitted cart item is missing required fields."""


@dataclass(frozen=True)
class CartLicense:
    id: str
    name: str


@dataclass(frozen=True)
class CartItem:
    product_id: str
    name: str
    slug: str
    image_url: str
    price: Decimal
    license: CartLicense
    type: str
    original_price: Optional[Decimal] = None
    quantity: int = 1

    @property
    def id(self) -> str:
        return make_item_id(self.product_id, self.license.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "name": self.name,
            "slug": self.slug,
            "imageUrl": self.image_url,
            "price": float(self.price),
            "originalPrice": float(self.original_price) if self.original_price is not None else None,
            "license": {"id": self.license.id, "name": self.license.name},
            "type": self.type,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        """Build from the camelCase storage shape."""
        try:
            license_data = data["license"]
            product_type = data.get("type", "font")
            if product_type not in PRODUCT_TYPES:
                raise CartItemInvalid(f"Unknown product type: {product_type}")
            original = data.get("originalPrice")
            return cls(
                product_id=str(data["productId"]),
                name=data["name"],
                slug=data.get("slug", ""),
                image_url=data.get("imageUrl", ""),
                price=quantize_money(data["price"]),
                license=CartLicense(id=str(license_data["id"]), name=license_data.get("name", "")),
                type=product_type,
                original_price=quantize_money(original) if original is not None else None,
                quantity=int(data.get("quantity") or 1),
            )
        except (KeyError, TypeError, ArithmeticError) as e:
            raise CartItemInvalid(f"Invalid cart item: {e}") from e


def make_item_id(product_id: str, license_id: str) -> str:
    return f"{product_id}-{license_id}"


@dataclass(frozen=True)
class CartEvent:
    """Outcome of an add/remove, with the user-facing notice."""
    changed: bool
    message: str
    item_id: Optional[str] = None


class Cart:
    def __init__(self, items: Optional[List[CartItem]] = None):
        self._items: List[CartItem] = []
        self._pending_notification: Optional[str] = None
        for item in items or []:
            # Keep the first occurrence of any duplicate id
            if not self.contains(item.id):
                self._items.append(item)

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    def contains(self, item_id: str) -> bool:
        return any(i.id == item_id for i in self._items)

    def add(self, item: CartItem) -> CartEvent:
        if self.contains(item.id):
            return CartEvent(changed=False, message=MESSAGE_DUPLICATE.format(name=item.name), item_id=item.id)
        self._items.append(item)
        self._pending_notification = MESSAGE_ADDED.format(name=item.name)
        return CartEvent(changed=True, message=self._pending_notification, item_id=item.id)

    def remove(self, item_id: str) -> CartEvent:
        self._items = [i for i in self._items if i.id != item_id]
        return CartEvent(changed=True, message=MESSAGE_REMOVED, item_id=item_id)

    def clear(self) -> None:
        self._items = []
        self._pending_notification = None

    def pop_notification(self) -> Optional[str]:
        """The pending "added" notification, returned once."""
        message, self._pending_notification = self._pending_notification, None
        return message

    @property
    def count(self) -> int:
        return len(self._items)

    @property
    def total(self) -> Decimal:
        return quantize_money(sum((i.price for i in self._items), Decimal("0")))

    @property
    def original_total(self) -> Decimal:
        return quantize_money(sum(
            (i.original_price if i.original_price is not None else i.price for i in self._items),
            Decimal("0"),
        ))

    @property
    def savings(self) -> Decimal:
        return self.original_total - self.total

    # ----- Storage -----

    def to_storage(self) -> Dict[str, Any]:
        return {"version": CART_SCHEMA_VERSION, "items": [i.to_dict() for i in self._items]}

    def to_json(self) -> str:
        return json.dumps(self.to_storage())

    @classmethod
    def from_storage(cls, raw: Any) -> "Cart":
        """
        Rehydrate from any stored version (JSON text or parsed value).

        Unreadable payloads give an empty cart; individual bad items are dropped.
        """
        if raw is None or raw == "":
            return cls()
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError:
                logger.warning("Discarding unreadable stored cart")
                return cls()

        items_data = migrate_storage(raw)
        if items_data is None:
            return cls()

        items = []
        for data in items_data:
            try:
                items.append(CartItem.from_dict(data))
            except CartItemInvalid as e:
                logger.warning(f"Dropping stored cart item: {e}")
        return cls(items)


def migrate_storage(raw: Any) -> Optional[List[dict]]:
    """Item dicts for the current version, or None if the payload is unusable."""
    # Version 1: bare array
    if isinstance(raw, list):
        return [d for d in raw if isinstance(d, dict)]

    if not isinstance(raw, dict):
        logger.warning(f"Discarding stored cart of type {type(raw).__name__}")
        return None

    version = raw.get("version")
    if version == CART_SCHEMA_VERSION:
        items = raw.get("items") or []
        return [d for d in items if isinstance(d, dict)]

    logger.warning(f"Discarding stored cart with unsupported version {version!r}")
    return None


def item_from_schema(item: CartItemSchema) -> CartItem:
    return CartItem.from_dict(item.model_dump(by_alias=True))


def cart_summary(cart: Cart) -> CartSummary:
    return CartSummary(
        version=CART_SCHEMA_VERSION,
        items=[CartItemSchema.model_validate(i.to_dict()) for i in cart.items],
        count=cart.count,
        total=float(cart.total),
        original_total=float(cart.original_total),
    )
