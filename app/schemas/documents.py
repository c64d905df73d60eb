"""
License document schemas (EULA and invoice)
"""
from datetime import datetime
from typing import List, Optional

from app.schemas.common import CamelModel


class Purchaser(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class EulaItem(CamelModel):
    product_name: str
    license_name: str
    permitted_use: List[str] = []


class EulaData(CamelModel):
    order_id: str
    created_at: Optional[datetime] = None
    status: str
    purchaser: Purchaser
    eula_items: List[EulaItem]


class InvoiceLine(CamelModel):
    product_name: str
    license_name: str
    price: float
    permitted_use: List[str] = []


class InvoiceData(CamelModel):
    order_id: str
    created_at: Optional[datetime] = None
    status: str
    total_amount: float
    purchaser: Purchaser
    lines: List[InvoiceLine]
