"""
Order Service

Turns a captured cart into persisted orders, grants subscription library
items, and serves order history.

Flow after the buyer approves payment:
1. /api/paypal/capture-order captures funds at the gateway
2. /api/checkout/orders calls create_order_from_cart() with the cart and
   the captured gateway order id (payment_id)
3. A repeated call with the same payment_id returns the first order

Every line item snapshots the product name, license name and permitted
use at purchase time; EULAs and invoices read the snapshot.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import String, cast, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, PaymentError, ValidationFailed
from app.core.utils import add_months, page_offset, utcnow
from app.models import Bundle, Font, License, Order, OrderItem, Profile, SubscriptionPlan, UserSubscription
from app.models.order import (
    STATUS_COMPLETED,
    STATUS_SUBSCRIPTION_GRANT,
    STATUS_SUBSCRIPTION_PURCHASE,
)
from app.models.subscription import BILLING_YEARLY, SUBSCRIPTION_ACTIVE
from app.schemas.checkout import (
    AdminOrderList,
    AdminOrderRow,
    BillingAddress,
    LibraryGrantRequest,
    OrderCreateRequest,
    OrderSummary,
    PurchasedProduct,
    SubscriptionInfo,
    SubscriptionOrderSummary,
)
from app.services.catalog import count_query
from app.services.pricing import (
    PRODUCT_BUNDLE,
    PRODUCT_FONT,
    first_image,
    price_matches,
    quantize_money,
    quote_license,
)

logger = logging.getLogger(__name__)

LIBRARY_GRANT_MESSAGE = "Product added to your library!"

# Subscription rows are written within moments of their order
SUBSCRIPTION_MATCH_WINDOW = timedelta(seconds=60)


@dataclass
class OrderResult:
    order: Order
    duplicate: bool = False


def subscription_period_end(start: datetime, billing_cycle: str) -> datetime:
    """One year ahead for yearly billing, otherwise one month."""
    if billing_cycle == BILLING_YEARLY:
        return add_months(start, 12)
    return add_months(start, 1)


def address_changed(profile: Profile, address: BillingAddress) -> bool:
    return (
        not profile.street_address
        or profile.street_address != address.street_address
        or profile.city != address.city
        or profile.country != address.country
        or profile.postal_code != address.postal_code
    )


def _order_summary(order: Order) -> OrderSummary:
    return OrderSummary(
        id=str(order.id),
        created_at=order.created_at,
        total_amount=float(order.total_amount or 0),
        status=order.status,
        item_count=len(order.items or []),
    )


class OrderService:
    async def check_existing_order(self, db: AsyncSession, payment_id: Optional[str]) -> Optional[Order]:
        """Order already written for this captured gateway order, if any."""
        if not payment_id:
            return None
        result = await db.execute(select(Order).where(Order.payment_id == payment_id))
        return result.scalar_one_or_none()

    async def _load_products(self, db: AsyncSession, model, ids: List[str]) -> Dict[str, object]:
        if not ids:
            return {}
        result = await db.execute(select(model).where(model.id.in_(ids)))
        return {str(row.id): row for row in result.scalars().all()}

    async def _load_licenses(self, db: AsyncSession, ids: List[str]) -> Dict[str, License]:
        if not ids:
            return {}
        result = await db.execute(select(License).where(License.id.in_(ids)))
        return {str(lic.id): lic for lic in result.scalars().all()}

    async def _upsert_subscription(
        self,
        db: AsyncSession,
        user_id: str,
        info: SubscriptionInfo,
        start: datetime,
    ) -> UserSubscription:
        plan = await db.get(SubscriptionPlan, info.plan_id)
        if not plan:
            raise NotFoundError("Subscription plan not found", details={"plan_id": info.plan_id})

        end = subscription_period_end(start, info.billing_cycle)
        subscription = None
        if info.active_subscription_id:
            subscription = await db.get(UserSubscription, info.active_subscription_id)
            if subscription and str(subscription.user_id) != str(user_id):
                raise ValidationFailed("Subscription does not belong to this account")

        if subscription:
            subscription.plan_id = info.plan_id
            subscription.status = SUBSCRIPTION_ACTIVE
            subscription.current_period_start = start
            subscription.current_period_end = end
            subscription.cancel_at_period_end = False
        else:
            subscription = UserSubscription(
                user_id=user_id,
                plan_id=info.plan_id,
                status=SUBSCRIPTION_ACTIVE,
                current_period_start=start,
                current_period_end=end,
            )
            db.add(subscription)
        return subscription

    async def _build_items(self, db: AsyncSession, request: OrderCreateRequest) -> List[OrderItem]:
        """
        Line items with purchase-time snapshots.

        Each line is re-priced from the product and license rows; unknown
        products or licenses and lines whose price disagrees with the quote
        are rejected.
        """
        font_ids = [i.product_id for i in request.items if i.type == PRODUCT_FONT]
        bundle_ids = [i.product_id for i in request.items if i.type == PRODUCT_BUNDLE]
        fonts = await self._load_products(db, Font, font_ids)
        bundles = await self._load_products(db, Bundle, bundle_ids)
        licenses = await self._load_licenses(db, list({i.license.id for i in request.items}))

        items = []
        for cart_item in request.items:
            product = (fonts if cart_item.type == PRODUCT_FONT else bundles).get(cart_item.product_id)
            if product is None:
                raise ValidationFailed(
                    f"{cart_item.name} is no longer available",
                    details={"product_id": cart_item.product_id, "type": cart_item.type},
                )
            lic = licenses.get(cart_item.license.id)
            if lic is None:
                raise ValidationFailed(
                    f"License {cart_item.license.name} is no longer available",
                    details={"license_id": cart_item.license.id},
                )
            try:
                quote = quote_license(product, lic, cart_item.type, cart_item.quantity)
            except ValueError as e:
                raise ValidationFailed(str(e), details={"license_id": cart_item.license.id})
            if not price_matches(cart_item.price, quote.price):
                logger.warning(
                    f"Price mismatch for {cart_item.type} {cart_item.product_id} under {lic.name}: "
                    f"submitted {cart_item.price}, quoted {quote.price}"
                )
                raise ValidationFailed(
                    f"The price of {cart_item.name} has changed. Please review your cart.",
                    details={
                        "product_id": cart_item.product_id,
                        "license_id": cart_item.license.id,
                        "expected": float(quote.price),
                        "submitted": cart_item.price,
                    },
                )
            items.append(OrderItem(
                font_id=cart_item.product_id if cart_item.type == PRODUCT_FONT else None,
                bundle_id=cart_item.product_id if cart_item.type == PRODUCT_BUNDLE else None,
                license_id=cart_item.license.id,
                price=quote.price,
                product_name=product.name,
                license_name=lic.name,
                permitted_use=list(lic.allowed or []),
            ))
        return items

    async def create_order_from_cart(
        self,
        db: AsyncSession,
        user: Profile,
        request: OrderCreateRequest,
    ) -> OrderResult:
        """
        Persist a paid cart (or subscription purchase) for user.

        Raises:
            ValidationFailed: empty cart, unknown product/license, price
                that disagrees with the license quote
            NotFoundError: unknown subscription plan
            PaymentError: the database write failed after payment
        """
        start_time = time.time()

        existing = await self.check_existing_order(db, request.payment_id)
        if existing:
            logger.warning(f"Order {existing.id} already recorded for payment {request.payment_id}")
            return OrderResult(order=existing, duplicate=True)

        if not request.subscription_info and not request.items:
            raise ValidationFailed("Cannot create an order from an empty cart")

        user_id = user.id
        now = utcnow()
        try:
            if request.billing_address and request.billing_address.street_address:
                if address_changed(user, request.billing_address):
                    user.street_address = request.billing_address.street_address
                    user.city = request.billing_address.city
                    user.country = request.billing_address.country
                    user.postal_code = request.billing_address.postal_code

            order = Order(
                user_id=user_id,
                total_amount=quantize_money(request.total_amount),
                status=STATUS_SUBSCRIPTION_PURCHASE if request.subscription_info else STATUS_COMPLETED,
                payment_id=request.payment_id,
                created_at=now,
            )

            if request.subscription_info:
                await self._upsert_subscription(db, user_id, request.subscription_info, now)
            else:
                order.items = await self._build_items(db, request)
                items_total = sum((item.price for item in order.items), quantize_money(0))
                if not price_matches(request.total_amount, items_total):
                    raise ValidationFailed(
                        "Order total does not match its items",
                        details={"expected": float(items_total), "submitted": request.total_amount},
                    )

            db.add(order)

            font_ids = [i.product_id for i in request.items if i.type == PRODUCT_FONT]
            if font_ids and not request.subscription_info:
                await db.execute(
                    update(Font)
                    .where(Font.id.in_(font_ids))
                    .values(sales_count=Font.sales_count + 1)
                )

            await db.commit()
        except IntegrityError:
            # Concurrent submit for the same capture won the unique payment_id
            await db.rollback()
            existing = await self.check_existing_order(db, request.payment_id)
            if existing:
                return OrderResult(order=existing, duplicate=True)
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Order write failed for user {user_id} payment {request.payment_id}: {e}")
            raise PaymentError(
                f"Failed to process purchase: {e}",
                details={"payment_id": request.payment_id},
            )

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"CHECKOUT_METRIC: order_created "
            f"user_id={user_id} "
            f"order_id={order.id} "
            f"status={order.status} "
            f"amount={order.total_amount} "
            f"item_count={len(request.items)} "
            f"duration_ms={duration_ms:.2f}"
        )
        return OrderResult(order=order)

    async def grant_library_item(self, db: AsyncSession, user: Profile, request: LibraryGrantRequest) -> Order:
        """Zero-amount order giving a subscriber one product under one license."""
        model = Font if request.product_type == PRODUCT_FONT else Bundle
        product = await db.get(model, request.product_id)
        if not product:
            raise NotFoundError(
                f"{request.product_type.capitalize()} not found",
                details={"product_id": request.product_id},
            )
        lic = await db.get(License, request.license_id)
        if not lic:
            raise NotFoundError("License not found", details={"license_id": request.license_id})

        order = Order(
            user_id=user.id,
            total_amount=0,
            status=STATUS_SUBSCRIPTION_GRANT,
            created_at=utcnow(),
        )
        order.items = [OrderItem(
            font_id=request.product_id if request.product_type == PRODUCT_FONT else None,
            bundle_id=request.product_id if request.product_type == PRODUCT_BUNDLE else None,
            license_id=request.license_id,
            price=0,
            product_name=product.name,
            license_name=lic.name,
            permitted_use=list(lic.allowed or []),
        )]
        db.add(order)
        await db.commit()
        logger.info(f"Library grant: {request.product_type} {request.product_id} to user {user.id}")
        return order

    async def get_order_history(self, db: AsyncSession, user: Profile) -> List[OrderSummary]:
        """Product purchases only; grants and subscription orders are listed elsewhere."""
        result = await db.execute(
            select(Order).where(Order.user_id == user.id).order_by(Order.created_at.desc())
        )
        orders = []
        for order in result.scalars().all():
            if order.status in (STATUS_SUBSCRIPTION_GRANT, STATUS_SUBSCRIPTION_PURCHASE):
                continue
            if order.is_subscription_order:
                continue
            orders.append(_order_summary(order))
        return orders

    async def get_subscription_history(self, db: AsyncSession, user: Profile) -> List[SubscriptionOrderSummary]:
        """Subscription purchases, each labelled with the plan whose period began with it."""
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user.id, Order.status == STATUS_SUBSCRIPTION_PURCHASE)
            .order_by(Order.created_at.desc())
        )
        orders = result.scalars().all()

        subs = await db.execute(select(UserSubscription).where(UserSubscription.user_id == user.id))
        subscriptions = [s for s in subs.scalars().all() if s.current_period_start]

        history = []
        for order in orders:
            plan_name = "N/A"
            closest = None
            for sub in subscriptions:
                diff = abs(order.created_at - sub.current_period_start)
                if diff < SUBSCRIPTION_MATCH_WINDOW and (closest is None or diff < closest[0]):
                    closest = (diff, sub)
            if closest and closest[1].plan:
                plan_name = closest[1].plan.name or "N/A"
            summary = _order_summary(order)
            history.append(SubscriptionOrderSummary(**summary.model_dump(), plan_name=plan_name))
        return history

    async def get_purchased_products(self, db: AsyncSession, user: Profile) -> List[PurchasedProduct]:
        """Every product the user bought, excluding subscription grants."""
        result = await db.execute(
            select(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .where(Order.user_id == user.id, Order.status != STATUS_SUBSCRIPTION_GRANT)
            .order_by(Order.created_at.desc())
        )
        products = []
        for item in result.scalars().all():
            license_name = item.license_name or (item.license.name if item.license else None)
            if item.font:
                products.append(PurchasedProduct(
                    id=str(item.font.id),
                    name=item.font.name,
                    slug=item.font.slug,
                    image_url=first_image(item.font.preview_image_urls),
                    description=item.font.category,
                    type=PRODUCT_FONT,
                    license_name=license_name,
                ))
            elif item.bundle:
                products.append(PurchasedProduct(
                    id=str(item.bundle.id),
                    name=item.bundle.name,
                    slug=item.bundle.slug,
                    image_url=first_image(item.bundle.preview_image_urls),
                    description="Bundle",
                    type=PRODUCT_BUNDLE,
                    license_name=license_name,
                ))
        return products

    async def list_orders_for_admin(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
    ) -> AdminOrderList:
        query = select(Order).outerjoin(Profile, Order.user_id == Profile.id)
        if search:
            term = f"%{search}%"
            query = query.where(or_(
                cast(Order.id, String).ilike(term),
                Profile.full_name.ilike(term),
                Profile.email.ilike(term),
            ))

        count = await db.scalar(count_query(query)) or 0
        result = await db.execute(
            query.order_by(Order.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )

        rows = []
        for order in result.scalars().all():
            summary = _order_summary(order)
            rows.append(AdminOrderRow(
                **summary.model_dump(),
                customer_name=(order.profile.full_name if order.profile else None) or "N/A",
                customer_email=(order.profile.email if order.profile else None) or "N/A",
            ))
        return AdminOrderList(data=rows, count=count)


_service: Optional[OrderService] = None


def get_order_service() -> OrderService:
    global _service
    if _service is None:
        _service = OrderService()
    return _service
