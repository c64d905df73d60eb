"""
Profile model

Accounts live with the hosted auth provider; the profile row shares the
provider's user id and holds the role and billing address.
"""
from sqlalchemy import Column, String, Text
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base

ROLE_ADMIN = "admin"
ROLE_USER = "user"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=False), primary_key=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    role = Column(String(20), default=ROLE_USER, nullable=False)

    # Billing address (updated from checkout)
    street_address = Column(Text, nullable=True)
    city = Column(String(255), nullable=True)
    country = Column(String(255), nullable=True)
    postal_code = Column(String(50), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
