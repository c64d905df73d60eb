"""
Merchandising

Discounts and staff picks for fonts and bundles. Discounted prices are
never stored: a product only references a Discount and listings derive
the price from it.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models import Bundle, Discount, Font
from app.schemas.admin import DiscountApplyRequest, DiscountCreate, StaffPickUpdate
from app.services.pricing import PRODUCT_FONT

logger = logging.getLogger(__name__)


def product_model(product_type: str):
    return Font if product_type == PRODUCT_FONT else Bundle


async def list_discounts(db: AsyncSession) -> List[Discount]:
    result = await db.execute(select(Discount).order_by(Discount.created_at.desc()))
    return list(result.scalars().all())


async def create_discount(db: AsyncSession, data: DiscountCreate) -> Discount:
    discount = Discount(name=data.name.strip(), percentage=data.percentage)
    db.add(discount)
    await db.commit()
    await db.refresh(discount)
    return discount


async def delete_discount(db: AsyncSession, discount_id: str) -> Discount:
    """Products referencing the discount fall back to full price (FK is SET NULL)."""
    discount = await db.get(Discount, discount_id)
    if not discount:
        raise NotFoundError("Discount not found", details={"discount_id": discount_id})
    await db.delete(discount)
    await db.commit()
    return discount


async def apply_discount_to_products(db: AsyncSession, data: DiscountApplyRequest) -> int:
    """Returns the number of products updated."""
    if data.discount_id:
        discount: Optional[Discount] = await db.get(Discount, data.discount_id)
        if not discount:
            raise NotFoundError("Discount not found", details={"discount_id": data.discount_id})

    model = product_model(data.product_type)
    stmt = update(model).values(discount_id=data.discount_id)
    if data.product_ids is not None:
        if not data.product_ids:
            return 0
        stmt = stmt.where(model.id.in_(data.product_ids))

    result = await db.execute(stmt)
    await db.commit()
    scope = f"{len(data.product_ids)} {data.product_type}s" if data.product_ids is not None else f"all {data.product_type}s"
    logger.info(f"Discount {data.discount_id or 'cleared'} applied to {scope}")
    return result.rowcount or 0


async def set_staff_pick(db: AsyncSession, data: StaffPickUpdate) -> int:
    model = product_model(data.product_type)
    result = await db.execute(
        update(model).where(model.id.in_(data.product_ids)).values(staff_pick=data.staff_pick)
    )
    await db.commit()
    return result.rowcount or 0
