from decimal import Decimal

import pytest

from app.core.config import settings
from app.models import Discount, License, Partner
from app.services.pricing import (
    apply_discount,
    first_image,
    format_bundle,
    format_font,
    format_money,
    price_matches,
    quantize_money,
    quote_license,
    sort_licenses,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (19.99, "19.99"),
        (19.989999999, "19.99"),
        (19.990000001, "19.99"),
        ("5", "5.00"),
        (None, "0.00"),
        (Decimal("0.005"), "0.01"),
    ],
)
def test_format_money_two_decimals(value, expected):
    assert format_money(value) == expected


def test_twenty_percent_off_fifty():
    pricing = apply_discount(Decimal("50.00"), {"percentage": 20})
    assert pricing.price == Decimal("40.00")
    assert pricing.original_price == Decimal("50.00")
    assert pricing.discount_label == "20% OFF"


def test_discount_rounds_half_up_to_cents():
    # 9.99 * 0.85 = 8.4915
    assert apply_discount("9.99", {"percentage": 15}).price == Decimal("8.49")
    # 0.10 * 0.75 = 0.075
    assert apply_discount("0.10", {"percentage": 25}).price == Decimal("0.08")


@pytest.mark.parametrize("discount", [None, {"percentage": 0}, {"percentage": None}])
def test_zero_or_missing_discount_is_full_price(discount):
    pricing = apply_discount(Decimal("30"), discount)
    assert pricing.price == Decimal("30.00")
    assert pricing.original_price is None
    assert pricing.discount_label is None
    assert not pricing.is_discounted


def test_hundred_percent_discount_is_free():
    pricing = apply_discount(Decimal("12.50"), {"percentage": 100})
    assert pricing.price == Decimal("0.00")
    assert pricing.original_price == Decimal("12.50")


def test_quantize_money_from_float_uses_shortest_repr():
    assert quantize_money(0.1 + 0.2) == Decimal("0.30")


def test_first_image_falls_back_to_placeholder():
    assert first_image([]) == settings.PLACEHOLDER_IMAGE_URL
    assert first_image(None) == settings.PLACEHOLDER_IMAGE_URL
    assert first_image(["a.jpg", "b.jpg"]) == "a.jpg"


def test_font_card_carries_discounted_price_and_partner(make_font):
    font = make_font(
        discount=Discount(name="Spring", percentage=20),
        partner=Partner(name="North Foundry", slug="north-foundry"),
    )
    card = format_font(font).model_dump(by_alias=True)

    assert card["price"] == 40.0
    assert card["originalPrice"] == 50.0
    assert card["discount"] == "20% OFF"
    assert card["description"] == "Serif"
    assert card["type"] == "font"
    assert card["partner"] == {"name": "North Foundry", "slug": "north-foundry"}
    assert card["fontFiles"][0]["style"] == "Regular"


def test_bundle_card_uses_placeholder_and_bundle_description(make_bundle):
    card = format_bundle(make_bundle()).model_dump(by_alias=True)
    assert card["imageUrl"] == settings.PLACEHOLDER_IMAGE_URL
    assert card["description"] == "Bundle"
    assert card["originalPrice"] is None
    assert card["staffPick"] is True


def web_license(**overrides) -> License:
    data = {"name": "Web", "font_price": Decimal("30.00"), "bundle_price": Decimal("80.00")}
    data.update(overrides)
    return License(**data)


def test_standard_license_costs_the_list_price_less_discount(make_font):
    font = make_font(discount=Discount(name="Spring", percentage=20))

    quote = quote_license(font, License(name="standard"), "font")

    assert quote.price == Decimal("40.00")
    assert quote.original_price == Decimal("50.00")
    assert quote.discount_label == "20% OFF"


def test_other_licenses_cost_their_own_price_per_seat(make_font, make_bundle):
    font_quote = quote_license(make_font(), web_license(), "font", user_count=3)
    bundle_quote = quote_license(make_bundle(), web_license(), "bundle", user_count=2)

    assert font_quote.price == Decimal("90.00")
    assert font_quote.original_price is None
    assert font_quote.user_count == 3
    assert bundle_quote.price == Decimal("160.00")


def test_discount_applies_to_every_seat(make_font):
    font = make_font(discount=Discount(name="Spring", percentage=15))

    quote = quote_license(font, web_license(font_price=Decimal("9.99")), "font", user_count=2)

    assert quote.original_price == Decimal("19.98")
    assert quote.price == Decimal("16.98")


@pytest.mark.parametrize("name", ["Corporate", "exclusive"])
def test_single_seat_licenses_ignore_user_count(make_font, name):
    quote = quote_license(make_font(), web_license(name=name, font_price=Decimal("500")), "font", user_count=4)

    assert quote.user_count == 1
    assert quote.price == Decimal("500.00")


def test_missing_license_price_is_free(make_font):
    assert quote_license(make_font(), web_license(font_price=None), "font").price == Decimal("0.00")


@pytest.mark.parametrize("name", ["Trademark", "studio", "Extended", "Corporate", "Exclusive"])
def test_enterprise_licenses_are_not_sold_with_bundles(make_bundle, name):
    with pytest.raises(ValueError):
        quote_license(make_bundle(), web_license(name=name), "bundle")


def test_standard_license_sorts_first():
    licenses = [web_license(name="Web"), web_license(name="Standard"), web_license(name="App")]
    assert [lic.name for lic in sort_licenses(licenses)] == ["Standard", "Web", "App"]


def test_price_matches_within_a_cent():
    assert price_matches(39.99, Decimal("40.00"))
    assert price_matches(40, Decimal("40.00"))
    assert not price_matches(1, Decimal("40.00"))
