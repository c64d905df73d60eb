"""
Subscription schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class PlanFeatures(BaseModel):
    allowed: List[str] = Field(default_factory=list)
    not_allowed: List[str] = Field(default_factory=list)

    @field_validator("allowed", "not_allowed")
    @classmethod
    def drop_blank(cls, v):
        return [s.strip() for s in v if s and s.strip()]


class PlanResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price_monthly: float
    price_yearly: float
    features: PlanFeatures = Field(default_factory=PlanFeatures)
    paypal_plan_id_monthly: Optional[str] = None
    paypal_plan_id_yearly: Optional[str] = None

    @field_validator("features", mode="before")
    @classmethod
    def default_features(cls, v):
        return v or {}

    class Config:
        from_attributes = True


class PlanUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price_monthly: float = Field(..., ge=0)
    price_yearly: float = Field(..., ge=0)
    features: PlanFeatures = Field(default_factory=PlanFeatures)
    paypal_plan_id_monthly: Optional[str] = None
    paypal_plan_id_yearly: Optional[str] = None

    @field_validator("paypal_plan_id_monthly", "paypal_plan_id_yearly")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        return v.strip() or None


class ChangePlanRequest(BaseModel):
    new_plan_id: str
    is_downgrade: bool = False


class SubscriptionResponse(BaseModel):
    id: str
    plan_id: str
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    plan: Optional[PlanResponse] = None

    class Config:
        from_attributes = True


class SubscriberRow(BaseModel):
    id: str
    status: str
    current_period_end: Optional[datetime] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    plan_name: Optional[str] = None


class SubscriberList(BaseModel):
    data: List[SubscriberRow]
    count: int
