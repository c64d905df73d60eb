"""
Product models: fonts, bundles and the discounts applied to them.

Prices are stored as list prices only. The discounted price is never
persisted; it is derived at read time from the joined discount.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, Numeric, ForeignKey,
    Index, CheckConstraint
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import relationship

from app.core.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Discount(Base):
    """Named percentage discount shared by any number of fonts and bundles."""
    __tablename__ = "discounts"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    percentage = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="check_discount_percentage"),
    )


class Font(Base):
    __tablename__ = "fonts"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    category = Column(String(100), nullable=True, index=True)
    main_description = Column(Text, nullable=True)

    # Ordered: the first URL is the card/feed image
    preview_image_urls = Column(ARRAY(String), default=lambda: [])

    staff_pick = Column(Boolean, default=False, nullable=False)
    partner_id = Column(UUID(as_uuid=False), ForeignKey("partners.id", ondelete="SET NULL"), nullable=True)
    discount_id = Column(UUID(as_uuid=False), ForeignKey("discounts.id", ondelete="SET NULL"), nullable=True)

    tags = Column(ARRAY(String), default=lambda: [])
    purpose_tags = Column(ARRAY(String), default=lambda: [])

    # [{"style": "Regular", "url": "https://..."}, ...]
    font_files = Column(JSONB, default=lambda: [])

    sales_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    partner = relationship("Partner", back_populates="fonts", lazy="selectin")
    discount = relationship("Discount", lazy="selectin")

    __table_args__ = (
        Index("ix_fonts_tags", "tags", postgresql_using="gin"),
        Index("ix_fonts_purpose_tags", "purpose_tags", postgresql_using="gin"),
    )


class Bundle(Base):
    __tablename__ = "bundles"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    main_description = Column(Text, nullable=True)
    preview_image_urls = Column(ARRAY(String), default=lambda: [])
    staff_pick = Column(Boolean, default=False, nullable=False)
    discount_id = Column(UUID(as_uuid=False), ForeignKey("discounts.id", ondelete="SET NULL"), nullable=True)
    tags = Column(ARRAY(String), default=lambda: [])
    purpose_tags = Column(ARRAY(String), default=lambda: [])
    font_files = Column(JSONB, default=lambda: [])
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    discount = relationship("Discount", lazy="selectin")
