"""
Checkout routes

Records the order after the gateway capture succeeded, and grants library
items to subscribers. Sales counts change here, so cached listings that
sort by popularity are dropped.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.caching import CATALOG_PATHS
from app.api.deps import get_current_user
from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import limiter
from app.core.redis_client import invalidate_paths
from app.models.user import Profile
from app.schemas.checkout import (
    LibraryGrantRequest,
    LibraryGrantResponse,
    OrderCreateRequest,
    OrderCreatedResponse,
)
from app.services.order_service import LIBRARY_GRANT_MESSAGE, get_order_service

router = APIRouter()


@router.post(
    "/orders",
    response_model=OrderCreatedResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.RATE_LIMIT_CHECKOUT)
async def create_order(
    request: Request,
    payload: OrderCreateRequest,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Persist the captured cart.

    Send the captured gateway order id as paymentId: a retry with the same
    id returns the order already recorded (duplicate=true).
    """
    result = await get_order_service().create_order_from_cart(db, current_user, payload)
    if not result.duplicate:
        await invalidate_paths(CATALOG_PATHS)
    return OrderCreatedResponse(order_id=str(result.order.id), duplicate=result.duplicate)


@router.post("/library", response_model=LibraryGrantResponse, response_model_by_alias=True)
async def add_to_library(
    payload: LibraryGrantRequest,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await get_order_service().grant_library_item(db, current_user, payload)
    return LibraryGrantResponse(success=LIBRARY_GRANT_MESSAGE, order_id=str(order.id))
