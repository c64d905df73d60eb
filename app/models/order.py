"""
Order models

An order is written once, after the payment gateway has captured funds
(or for zero-amount subscription grants). Line items snapshot the product
name and the license terms so historical EULAs never change when a
license is later edited.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, ForeignKey, DateTime, Text, Numeric, Index
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.product import _uuid

STATUS_PENDING = "Pending"
STATUS_COMPLETED = "Completed"
STATUS_SUBSCRIPTION_PURCHASE = "Subscription Purchase"
STATUS_SUBSCRIPTION_GRANT = "Subscription Grant"


class Order(Base):
    __tablename__ = "orders"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    user_id = Column(UUID(as_uuid=False), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(50), default=STATUS_PENDING, nullable=False, index=True)

    # Captured PayPal order id; one order per capture
    payment_id = Column(String(255), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    # Relationships
    profile = relationship("Profile", lazy="selectin")
    items = relationship("OrderItem", back_populates="order", lazy="selectin", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_orders_user_id", "user_id"),
    )

    @property
    def is_subscription_order(self) -> bool:
        """Subscription purchases, including legacy completed orders that have no items."""
        if self.status == STATUS_SUBSCRIPTION_PURCHASE:
            return True
        return self.status == STATUS_COMPLETED and not self.items


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    order_id = Column(UUID(as_uuid=False), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    font_id = Column(UUID(as_uuid=False), ForeignKey("fonts.id", ondelete="SET NULL"), nullable=True, index=True)
    bundle_id = Column(UUID(as_uuid=False), ForeignKey("bundles.id", ondelete="SET NULL"), nullable=True, index=True)
    license_id = Column(UUID(as_uuid=False), ForeignKey("licenses.id", ondelete="SET NULL"), nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)

    # Snapshot at time of order (NULL on rows written before snapshots existed)
    product_name = Column(String(500), nullable=True)
    license_name = Column(String(255), nullable=True)
    permitted_use = Column(ARRAY(Text), nullable=True)

    # Relationships
    order = relationship("Order", back_populates="items")
    font = relationship("Font", lazy="selectin")
    bundle = relationship("Bundle", lazy="selectin")
    license = relationship("License", lazy="selectin")
