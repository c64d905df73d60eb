"""
Order routes

The signed-in user's order history, purchased library and per-order
documents (EULA and invoice).
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.database import get_db
from app.models.user import Profile
from app.schemas.checkout import OrderHistoryResponse, PurchasedProduct, SubscriptionOrderSummary
from app.schemas.documents import EulaData, InvoiceData
from app.services import documents
from app.services.order_service import get_order_service

router = APIRouter()

DocumentFormat = Optional[Literal["json", "html"]]


def _attachment(html: str, kind: str, order_id: str) -> HTMLResponse:
    filename = documents.document_filename(kind, order_id)
    return HTMLResponse(
        content=html,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-store",
        },
    )


@router.get("", response_model=OrderHistoryResponse)
async def list_orders(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Product purchases, newest first."""
    orders = await get_order_service().get_order_history(db, current_user)
    return OrderHistoryResponse(orders=orders)


@router.get("/subscriptions", response_model=List[SubscriptionOrderSummary])
async def list_subscription_orders(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_order_service().get_subscription_history(db, current_user)


@router.get("/purchased", response_model=List[PurchasedProduct], response_model_by_alias=True)
async def list_purchased_products(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_order_service().get_purchased_products(db, current_user)


@router.get("/{order_id}/eula")
async def get_eula(
    order_id: str,
    format: DocumentFormat = Query(None),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """EULA for the order: printable HTML download, or the data with ?format=json"""
    data: EulaData = await documents.get_eula_data(db, order_id, current_user)
    if format == "json":
        return data.model_dump(by_alias=True, mode="json")
    return _attachment(documents.render_eula(data), "eula", order_id)


@router.get("/{order_id}/invoice")
async def get_invoice(
    order_id: str,
    format: DocumentFormat = Query(None),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data: InvoiceData = await documents.get_invoice_data(db, order_id, current_user)
    if format == "json":
        return data.model_dump(by_alias=True, mode="json")
    return _attachment(documents.render_invoice(data), "invoice", order_id)
