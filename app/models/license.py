"""
License model
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, Numeric
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from app.core.database import Base
from app.models.product import _uuid

STANDARD_LICENSE_NAME = "Standard"


class License(Base):
    """
    Usage terms sold alongside a font or bundle.

    allowed/not_allowed are the human-readable permitted and forbidden uses
    that end up on the customer's EULA.
    """
    __tablename__ = "licenses"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    font_price = Column(Numeric(12, 2), nullable=True)
    bundle_price = Column(Numeric(12, 2), nullable=True)
    allowed = Column(ARRAY(Text), default=lambda: [])
    not_allowed = Column(ARRAY(Text), default=lambda: [])
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def is_standard(self) -> bool:
        return self.name == STANDARD_LICENSE_NAME
