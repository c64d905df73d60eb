import json
from decimal import Decimal

import pytest

from app.services.cart import (
    Cart,
    CartItem,
    CartItemInvalid,
    CartLicense,
    cart_summary,
    migrate_storage,
)

STANDARD = CartLicense(id="lic-std", name="Standard")
EXTENDED = CartLicense(id="lic-ext", name="Extended")


def make_item(product_id="font-1", name="Marlowe", price="40.00", original_price=None, license=STANDARD):
    return CartItem(
        product_id=product_id,
        name=name,
        slug=name.lower(),
        image_url=f"https://cdn.example.com/{product_id}.jpg",
        price=Decimal(price),
        original_price=Decimal(original_price) if original_price else None,
        license=license,
        type="font",
    )


def test_item_id_combines_product_and_license():
    assert make_item().id == "font-1-lic-std"


def test_add_queues_notification_once():
    cart = Cart()
    event = cart.add(make_item())

    assert event.changed is True
    assert event.message == "Marlowe added to cart!"
    assert cart.pop_notification() == "Marlowe added to cart!"
    assert cart.pop_notification() is None


def test_duplicate_product_license_is_rejected():
    cart = Cart()
    cart.add(make_item())
    cart.pop_notification()

    event = cart.add(make_item(price="10.00"))

    assert event.changed is False
    assert event.message == "Marlowe is already in your cart."
    assert cart.count == 1
    assert cart.total == Decimal("40.00")
    assert cart.pop_notification() is None


def test_same_product_under_another_license_is_a_new_line():
    cart = Cart()
    cart.add(make_item())
    cart.add(make_item(license=EXTENDED, price="120.00"))
    assert cart.count == 2
    assert cart.total == Decimal("160.00")


def test_add_two_remove_one_leaves_remaining_total():
    cart = Cart()
    cart.add(make_item(product_id="font-1", name="Marlowe", price="40.00"))
    cart.add(make_item(product_id="font-2", name="Vesper", price="25.50"))

    event = cart.remove("font-1-lic-std")

    assert event.message == "Item removed from cart."
    assert cart.count == 1
    assert cart.total == Decimal("25.50")


def test_remove_unknown_id_still_reports_success():
    cart = Cart([make_item()])
    event = cart.remove("missing-id")
    assert event.changed is True
    assert cart.count == 1


def test_original_total_uses_price_when_no_original():
    cart = Cart([
        make_item(product_id="a", price="40.00", original_price="50.00"),
        make_item(product_id="b", price="10.00"),
    ])
    assert cart.total == Decimal("50.00")
    assert cart.original_total == Decimal("60.00")
    assert cart.savings == Decimal("10.00")


def test_clear_empties_cart():
    cart = Cart([make_item()])
    cart.clear()
    assert cart.count == 0
    assert cart.total == Decimal("0.00")


def test_constructor_keeps_first_of_duplicate_ids():
    cart = Cart([make_item(price="40.00"), make_item(price="1.00")])
    assert cart.count == 1
    assert cart.items[0].price == Decimal("40.00")


def test_storage_is_versioned():
    stored = Cart([make_item(original_price="50.00")]).to_storage()

    assert stored["version"] == 2
    assert stored["items"][0]["id"] == "font-1-lic-std"
    assert stored["items"][0]["productId"] == "font-1"
    assert stored["items"][0]["originalPrice"] == 50.0


def test_version_one_array_is_migrated():
    legacy = json.dumps([
        {
            "id": "font-1-lic-std",
            "productId": "font-1",
            "name": "Marlowe",
            "slug": "marlowe",
            "imageUrl": "https://cdn.example.com/font-1.jpg",
            "price": 40,
            "originalPrice": 50,
            "license": {"id": "lic-std", "name": "Standard"},
            "type": "font",
            "quantity": 1,
        }
    ])

    cart = Cart.from_storage(legacy)

    assert cart.count == 1
    assert cart.items[0].id == "font-1-lic-std"
    assert cart.original_total == Decimal("50.00")


def test_storage_round_trip_through_json():
    cart = Cart([make_item(), make_item(product_id="b", name="Vesper", price="9.99")])
    restored = Cart.from_storage(cart.to_json())
    assert [i.id for i in restored.items] == [i.id for i in cart.items]
    assert restored.total == Decimal("49.99")


@pytest.mark.parametrize("raw", ["not json{", "42", '{"version": 9, "items": []}', None, ""])
def test_unreadable_storage_gives_empty_cart(raw):
    assert Cart.from_storage(raw).count == 0


def test_bad_items_are_dropped_and_good_ones_kept():
    stored = {
        "version": 2,
        "items": [
            {"productId": "x", "price": 5},
            "garbage",
            make_item().to_dict(),
        ],
    }
    cart = Cart.from_storage(stored)
    assert [i.id for i in cart.items] == ["font-1-lic-std"]


def test_migrate_storage_rejects_non_container():
    assert migrate_storage("string") is None
    assert migrate_storage({"items": []}) is None


@pytest.mark.parametrize(
    "data",
    [
        {"productId": "x", "name": "X", "price": 1, "license": {"id": "l"}, "type": "poster"},
        {"productId": "x", "name": "X", "price": "abc", "license": {"id": "l"}},
        {"productId": "x", "name": "X", "price": 1},
    ],
)
def test_from_dict_rejects_invalid_items(data):
    with pytest.raises(CartItemInvalid):
        CartItem.from_dict(data)


def test_cart_summary_counts_and_totals():
    cart = Cart([make_item(price="40.00", original_price="50.00")])
    summary = cart_summary(cart).model_dump(by_alias=True)

    assert summary["version"] == 2
    assert summary["count"] == 1
    assert summary["total"] == 40.0
    assert summary["originalTotal"] == 50.0
    assert summary["items"][0]["license"] == {"id": "lic-std", "name": "Standard"}
