"""
Subscription routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.database import get_db
from app.models.user import Profile
from app.schemas.admin import MessageResponse
from app.schemas.subscription import ChangePlanRequest, PlanResponse, SubscriptionResponse
from app.services import subscription_service

router = APIRouter()


@router.get("/plans", response_model=List[PlanResponse])
async def list_plans(db: AsyncSession = Depends(get_db)):
    """Plans ordered by monthly price"""
    return await subscription_service.list_plans(db)


@router.get("/me", response_model=Optional[SubscriptionResponse])
async def get_my_subscription(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's active or trialing subscription, or null."""
    return await subscription_service.get_live_subscription(db, current_user.id)


@router.post("/cancel/{subscription_id}", response_model=MessageResponse)
async def cancel_subscription(
    subscription_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await subscription_service.cancel_subscription(db, current_user, subscription_id)
    return MessageResponse(success=subscription_service.MESSAGE_CANCELED)


@router.post("/change", response_model=MessageResponse)
async def change_plan(
    payload: ChangePlanRequest,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await subscription_service.change_plan(db, current_user, payload)
    return MessageResponse(success=message)
