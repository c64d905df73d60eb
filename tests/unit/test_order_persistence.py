"""
Order recording against a real async session (SQLite in memory), where a
rollback expires loaded rows the way it does on postgres.
"""
import uuid

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.core.exceptions import PaymentError
from app.models import Order, Profile
from app.schemas.checkout import OrderCreateRequest
from app.services.order_service import OrderService


def create_tables(sync_conn):
    # No subscription_plans table: the plan lookup fails mid-write
    Base.metadata.create_all(sync_conn, tables=[Profile.__table__, Order.__table__])


@pytest.mark.anyio
async def test_failed_subscription_write_after_rollback_raises_payment_error():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(create_tables)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)

        async with session_factory() as db:
            user = Profile(id=str(uuid.uuid4()), email="reader@example.com", full_name="Ada Reader")
            db.add(user)
            await db.commit()

            request = OrderCreateRequest.model_validate({
                "totalAmount": 12,
                "paymentId": "PAY-SUB-1",
                "subscriptionInfo": {"planId": str(uuid.uuid4()), "billingCycle": "monthly"},
            })
            with pytest.raises(PaymentError) as exc_info:
                await OrderService().create_order_from_cart(db, user, request)

        assert exc_info.value.details == {"payment_id": "PAY-SUB-1"}
        assert exc_info.value.message.startswith("Failed to process purchase")
    finally:
        await engine.dispose()
