"""
Admin routes for orders and subscriptions
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import PLAN_PATHS
from app.api.deps import get_current_admin
from app.core.audit_log import ACTION_PLAN_UPDATE, audit
from app.core.database import get_db
from app.core.redis_client import invalidate_paths
from app.models.user import Profile
from app.schemas.checkout import AdminOrderList
from app.schemas.subscription import PlanResponse, PlanUpdate, SubscriberList
from app.services import subscription_service
from app.services.order_service import get_order_service

router = APIRouter()


@router.get("/orders", response_model=AdminOrderList)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """All orders, newest first; search matches order id, customer name or email."""
    return await get_order_service().list_orders_for_admin(db, page=page, limit=limit, search=search)


@router.get("/subscription-plans", response_model=List[PlanResponse])
async def list_plans(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await subscription_service.list_plans(db)


@router.put("/subscription-plans/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: str,
    payload: PlanUpdate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    plan = await subscription_service.update_plan(db, plan_id, payload)
    audit(request, admin, ACTION_PLAN_UPDATE, "subscription_plan", plan_id, {"name": plan.name})
    await invalidate_paths(PLAN_PATHS)
    return plan


@router.get("/subscribers", response_model=SubscriberList)
async def list_subscribers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await subscription_service.list_subscribers(db, page=page, limit=limit, search=search)
