"""
Subscription plan and per-user subscription models
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, Numeric, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.product import _uuid

SUBSCRIPTION_ACTIVE = "active"
SUBSCRIPTION_TRIALING = "trialing"
SUBSCRIPTION_CANCELED = "canceled"

BILLING_MONTHLY = "monthly"
BILLING_YEARLY = "yearly"


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price_monthly = Column(Numeric(12, 2), nullable=False, default=0)
    price_yearly = Column(Numeric(12, 2), nullable=False, default=0)

    # {"allowed": [...], "not_allowed": [...]}
    features = Column(JSONB, default=lambda: {"allowed": [], "not_allowed": []})

    paypal_plan_id_monthly = Column(String(255), nullable=True)
    paypal_plan_id_yearly = Column(String(255), nullable=True)

    @property
    def allowed_features(self) -> list:
        return list((self.features or {}).get("allowed") or [])


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    user_id = Column(UUID(as_uuid=False), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    plan_id = Column(UUID(as_uuid=False), ForeignKey("subscription_plans.id"), nullable=False)
    status = Column(String(20), default=SUBSCRIPTION_ACTIVE, nullable=False)
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    plan = relationship("SubscriptionPlan", lazy="selectin")
    profile = relationship("Profile", lazy="selectin")

    __table_args__ = (
        Index("ix_user_subscriptions_user_period", "user_id", "current_period_start"),
    )
