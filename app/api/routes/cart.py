"""
Cart routes

The cart lives in browser storage; these endpoints apply the cart rules
(one line per product+license, totals, storage migration) to whatever the
browser sends and hand back the updated cart to store.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.cart import (
    CartAddRequest,
    CartMutationResponse,
    CartRemoveRequest,
    CartSummary,
    CartSummaryRequest,
    LicenseQuote,
    LicenseQuoteRequest,
)
from app.services import product_detail
from app.services.cart import Cart, cart_summary, item_from_schema

router = APIRouter()


@router.post("/summary", response_model=CartSummary, response_model_by_alias=True)
async def summarize_cart(payload: CartSummaryRequest):
    """Migrated cart with count, total and originalTotal."""
    return cart_summary(Cart.from_storage(payload.cart))


@router.post("/add", response_model=CartMutationResponse, response_model_by_alias=True)
async def add_to_cart(payload: CartAddRequest):
    cart = Cart.from_storage(payload.cart)
    event = cart.add(item_from_schema(payload.item))
    return CartMutationResponse(
        changed=event.changed,
        message=event.message,
        notification=cart.pop_notification(),
        cart=cart_summary(cart),
    )


@router.post("/remove", response_model=CartMutationResponse, response_model_by_alias=True)
async def remove_from_cart(payload: CartRemoveRequest):
    cart = Cart.from_storage(payload.cart)
    event = cart.remove(payload.item_id)
    return CartMutationResponse(
        changed=event.changed,
        message=event.message,
        cart=cart_summary(cart),
    )


@router.post("/quote", response_model=LicenseQuote, response_model_by_alias=True)
async def quote_license(payload: LicenseQuoteRequest, db: AsyncSession = Depends(get_db)):
    """
    Price of a product under a license for a number of seats.

    The license picker adds the returned price, originalPrice and quantity to
    the cart; checkout rejects lines that disagree with this quote.
    """
    return await product_detail.quote_product_license(db, payload)
