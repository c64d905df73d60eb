"""
License documents

EULA and invoice data for an order, and their printable HTML renditions.

Only the order's owner or an admin may see either document. Subscription
orders list the plan that was active when the order was placed; product
orders list each item with the license terms captured at purchase.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError, PermissionDenied, ValidationFailed
from app.models import Order, OrderItem, Profile, SubscriptionPlan, UserSubscription
from app.schemas.documents import EulaData, EulaItem, InvoiceData, InvoiceLine, Purchaser
from app.services.templates import render

logger = logging.getLogger(__name__)

SUBSCRIPTION_LICENSE_NAME = "Subscription"


def license_number(order_id: str) -> str:
    """Short customer-facing reference: first six characters, upper case."""
    return str(order_id)[:6].upper()


async def _load_order(db: AsyncSession, order_id: str, user: Profile, document: str) -> Order:
    result = await db.execute(select(Order).where(Order.id == order_id))
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found.", details={"order_id": order_id})
    if not user.is_admin and str(order.user_id) != str(user.id):
        logger.warning(f"User {user.id} denied {document} for order {order_id}")
        raise PermissionDenied(f"You do not have permission to view this {document}.")
    return order


async def get_plan_for_order(db: AsyncSession, order: Order) -> Optional[SubscriptionPlan]:
    """Plan of the latest subscription period that started on or before the order."""
    if not order.user_id:
        return None
    result = await db.execute(
        select(UserSubscription)
        .where(
            UserSubscription.user_id == order.user_id,
            UserSubscription.current_period_start <= order.created_at,
        )
        .order_by(UserSubscription.current_period_start.desc())
        .limit(1)
    )
    subscription = result.scalar_one_or_none()
    if not subscription:
        return None
    return subscription.plan


def purchaser_from(profile: Optional[Profile]) -> Purchaser:
    if not profile:
        return Purchaser()
    return Purchaser.model_validate(profile)


def item_product_name(item: OrderItem) -> Optional[str]:
    if item.product_name:
        return item.product_name
    if item.font_id and item.font:
        return item.font.name
    if item.bundle_id and item.bundle:
        return item.bundle.name
    return None


def item_license_terms(item: OrderItem):
    """(license name, permitted use) from the snapshot, else the live license for legacy rows."""
    if item.license_name is not None:
        return item.license_name, list(item.permitted_use or [])
    if item.license:
        return item.license.name, list(item.license.allowed or [])
    return "N/A", []


async def get_eula_data(db: AsyncSession, order_id: str, user: Profile) -> EulaData:
    order = await _load_order(db, order_id, user, "EULA")

    eula_items: List[EulaItem] = []
    if order.is_subscription_order:
        plan = await get_plan_for_order(db, order)
        if plan:
            eula_items.append(EulaItem(
                product_name=plan.name,
                license_name=SUBSCRIPTION_LICENSE_NAME,
                permitted_use=plan.allowed_features,
            ))
    else:
        if not order.items:
            raise ValidationFailed("No items found for this order to generate EULA.")
        for item in order.items:
            name = item_product_name(item)
            if not name:
                continue
            license_name, permitted_use = item_license_terms(item)
            eula_items.append(EulaItem(
                product_name=name,
                license_name=license_name,
                permitted_use=permitted_use,
            ))

    return EulaData(
        order_id=str(order.id),
        created_at=order.created_at,
        status=order.status,
        purchaser=purchaser_from(order.profile),
        eula_items=eula_items,
    )


async def get_invoice_data(db: AsyncSession, order_id: str, user: Profile) -> InvoiceData:
    order = await _load_order(db, order_id, user, "invoice")

    lines: List[InvoiceLine] = []
    plan = await get_plan_for_order(db, order) if order.is_subscription_order else None
    if plan:
        lines.append(InvoiceLine(
            product_name=plan.name,
            license_name=SUBSCRIPTION_LICENSE_NAME,
            price=float(order.total_amount or 0),
            permitted_use=plan.allowed_features,
        ))
    else:
        for item in order.items or []:
            license_name, permitted_use = item_license_terms(item)
            lines.append(InvoiceLine(
                product_name=item_product_name(item) or "N/A",
                license_name=license_name,
                price=float(item.price or 0),
                permitted_use=permitted_use,
            ))

    return InvoiceData(
        order_id=str(order.id),
        created_at=order.created_at,
        status=order.status,
        total_amount=float(order.total_amount or 0),
        purchaser=purchaser_from(order.profile),
        lines=lines,
    )


def _document_context(data) -> dict:
    return {
        "data": data,
        "number": license_number(data.order_id),
        "brand_name": settings.BRAND_NAME,
        "licensor_name": settings.LICENSOR_NAME,
        "licensor_address": [line for line in settings.LICENSOR_ADDRESS.split("\n") if line.strip()],
        "logo_url": f"{settings.site_url}/logo-orange.png",
    }


def render_eula(data: EulaData) -> str:
    return render("eula.html", **_document_context(data))


def render_invoice(data: InvoiceData) -> str:
    return render("invoice.html", **_document_context(data))


def document_filename(kind: str, order_id: str) -> str:
    """eula-ABC123.html / invoice-ABC123.html"""
    return f"{kind}-{license_number(order_id)}.html"
