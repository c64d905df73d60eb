"""
License Service

The "Standard" license is the default offered on every product page and
can never be deleted.
"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationFailed
from app.models import License
from app.models.license import STANDARD_LICENSE_NAME
from app.schemas.admin import LicenseCreate, LicenseUpdate
from app.services.pricing import quantize_money

logger = logging.getLogger(__name__)


async def list_licenses(db: AsyncSession) -> List[License]:
    result = await db.execute(select(License).order_by(License.created_at.asc()))
    return list(result.scalars().all())


async def get_license(db: AsyncSession, license_id: str) -> License:
    lic = await db.get(License, license_id)
    if not lic:
        raise NotFoundError("License not found", details={"license_id": license_id})
    return lic


async def get_standard_license(db: AsyncSession) -> License:
    result = await db.execute(select(License).where(License.name == STANDARD_LICENSE_NAME))
    lic = result.scalar_one_or_none()
    if not lic:
        raise NotFoundError("Standard license configuration not found in the database.")
    return lic


def _apply(lic: License, data: LicenseCreate) -> None:
    lic.name = data.name.strip()
    lic.description = data.description
    lic.font_price = quantize_money(data.font_price)
    lic.bundle_price = quantize_money(data.bundle_price)
    lic.allowed = list(data.allowed)
    lic.not_allowed = list(data.not_allowed)


async def create_license(db: AsyncSession, data: LicenseCreate) -> License:
    lic = License()
    _apply(lic, data)
    db.add(lic)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationFailed(f"Failed to save license: a license named {data.name} already exists.")
    await db.refresh(lic)
    logger.info(f"License created: {lic.name}")
    return lic


async def update_license(db: AsyncSession, license_id: str, data: LicenseUpdate) -> License:
    """
    Edit a license. Orders already placed keep the terms they were sold
    under; only future purchases see the change.
    """
    lic = await get_license(db, license_id)
    if lic.is_standard and data.name.strip() != STANDARD_LICENSE_NAME:
        raise ValidationFailed("The Standard License cannot be renamed.")
    _apply(lic, data)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationFailed(f"Failed to update license: a license named {data.name} already exists.")
    await db.refresh(lic)
    return lic


async def delete_license(db: AsyncSession, license_id: str) -> License:
    lic = await get_license(db, license_id)
    if lic.name.lower() == STANDARD_LICENSE_NAME.lower():
        raise ValidationFailed("The Standard License cannot be deleted.")
    await db.delete(lic)
    await db.commit()
    logger.info(f"License deleted: {lic.name}")
    return lic
