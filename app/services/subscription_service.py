"""
Subscription Service

Plans, the current user's subscription, plan changes and cancellation.
New subscriptions are created at checkout (see order_service).
"""
import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationFailed
from app.core.utils import add_months, page_offset, utcnow
from app.models import Profile, SubscriptionPlan, UserSubscription
from app.models.subscription import (
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_CANCELED,
    SUBSCRIPTION_TRIALING,
)
from app.schemas.subscription import ChangePlanRequest, PlanUpdate, SubscriberList, SubscriberRow
from app.services.catalog import count_query
from app.services.pricing import quantize_money

logger = logging.getLogger(__name__)

LIVE_STATUSES = (SUBSCRIPTION_ACTIVE, SUBSCRIPTION_TRIALING)

MESSAGE_CANCELED = "Your subscription has been scheduled for cancellation."
MESSAGE_UPDATED = "Subscription updated successfully!"
MESSAGE_DOWNGRADED = "Subscription downgraded successfully!"


async def list_plans(db: AsyncSession) -> List[SubscriptionPlan]:
    result = await db.execute(select(SubscriptionPlan).order_by(SubscriptionPlan.price_monthly.asc()))
    return list(result.scalars().all())


async def get_plan(db: AsyncSession, plan_id: str) -> SubscriptionPlan:
    plan = await db.get(SubscriptionPlan, plan_id)
    if not plan:
        raise NotFoundError("Subscription plan not found", details={"plan_id": plan_id})
    return plan


async def get_live_subscription(db: AsyncSession, user_id: str) -> Optional[UserSubscription]:
    """The user's active or trialing subscription, if any."""
    result = await db.execute(
        select(UserSubscription)
        .where(UserSubscription.user_id == user_id, UserSubscription.status.in_(LIVE_STATUSES))
        .order_by(UserSubscription.current_period_start.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def cancel_subscription(db: AsyncSession, user: Profile, subscription_id: str) -> UserSubscription:
    """Cancel at period end. Only the owner can cancel."""
    result = await db.execute(
        select(UserSubscription).where(
            UserSubscription.id == subscription_id,
            UserSubscription.user_id == user.id,
        )
    )
    subscription = result.scalar_one_or_none()
    if not subscription:
        raise NotFoundError("Subscription not found", details={"subscription_id": subscription_id})

    subscription.status = SUBSCRIPTION_CANCELED
    subscription.cancel_at_period_end = True
    await db.commit()
    logger.info(f"Subscription {subscription_id} canceled by user {user.id}")
    return subscription


async def change_plan(db: AsyncSession, user: Profile, request: ChangePlanRequest) -> str:
    """Move the live subscription to another plan with a fresh one-month period."""
    subscription = await get_live_subscription(db, user.id)
    if not subscription:
        raise ValidationFailed("No active subscription found to update.")

    await get_plan(db, request.new_plan_id)

    start = utcnow()
    subscription.plan_id = request.new_plan_id
    subscription.current_period_start = start
    subscription.current_period_end = add_months(start, 1)
    await db.commit()
    logger.info(f"Subscription {subscription.id} moved to plan {request.new_plan_id}")
    return MESSAGE_DOWNGRADED if request.is_downgrade else MESSAGE_UPDATED


async def update_plan(db: AsyncSession, plan_id: str, data: PlanUpdate) -> SubscriptionPlan:
    plan = await get_plan(db, plan_id)
    plan.name = data.name.strip()
    plan.description = data.description
    plan.price_monthly = quantize_money(data.price_monthly)
    plan.price_yearly = quantize_money(data.price_yearly)
    plan.paypal_plan_id_monthly = data.paypal_plan_id_monthly
    plan.paypal_plan_id_yearly = data.paypal_plan_id_yearly
    plan.features = data.features.model_dump()
    await db.commit()
    await db.refresh(plan)
    return plan


async def list_subscribers(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
) -> SubscriberList:
    query = select(UserSubscription).outerjoin(Profile, UserSubscription.user_id == Profile.id)
    if search:
        term = f"%{search}%"
        query = query.where(or_(Profile.full_name.ilike(term), Profile.email.ilike(term)))

    count = await db.scalar(count_query(query)) or 0
    result = await db.execute(
        query.order_by(UserSubscription.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )
    rows = [
        SubscriberRow(
            id=str(s.id),
            status=s.status,
            current_period_end=s.current_period_end,
            full_name=s.profile.full_name if s.profile else None,
            email=s.profile.email if s.profile else None,
            plan_name=s.plan.name if s.plan else None,
        )
        for s in result.scalars().all()
    ]
    return SubscriberList(data=rows, count=count)
