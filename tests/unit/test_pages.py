from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import NotFoundError
from app.models import Brand, License, Partner, SubscriptionPlan
from app.services import pages


def rows(items) -> MagicMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(items)
    result.scalar_one_or_none.return_value = items[0] if items else None
    return result


def plan(name, allowed, monthly) -> SubscriptionPlan:
    return SubscriptionPlan(
        id=f"plan-{name.lower()}",
        name=name,
        price_monthly=Decimal(monthly),
        price_yearly=Decimal(monthly) * 10,
        features={"allowed": allowed, "not_allowed": []},
    )


def test_comparison_table_rows_follow_first_seen_features():
    plans = [
        plan("Basic", ["Desktop use", "Web use"], "9"),
        plan("Pro", ["Desktop use", "App embedding"], "19"),
    ]

    table = pages.comparison_table(plans)

    assert [row["feature"] for row in table] == ["Desktop use", "Web use", "App embedding"]
    assert table[0] == {"feature": "Desktop use", "Basic": ["Desktop use"], "Pro": ["Desktop use"]}
    assert table[1]["Pro"] is None
    assert table[2]["Basic"] is None


def test_comparison_table_without_plans_is_empty():
    assert pages.comparison_table([]) == []


@pytest.mark.anyio
async def test_subscription_page_lists_plan_names(mock_db):
    mock_db.execute.return_value = rows([plan("Basic", ["Web use"], "9"), plan("Pro", ["Web use"], "19")])

    page = (await pages.get_subscription_page(mock_db)).model_dump(by_alias=True)

    assert page["planNames"] == ["Basic", "Pro"]
    assert page["plans"][1]["price_monthly"] == 19.0
    assert page["comparisonTableData"] == [{"feature": "Web use", "Basic": ["Web use"], "Pro": ["Web use"]}]


@pytest.mark.anyio
async def test_license_page_puts_standard_first(mock_db):
    mock_db.execute.return_value = rows([
        License(name="Extended", description=None, allowed=["Merch"], not_allowed=None),
        License(name="Standard", description="Desktop", allowed=["Print"], not_allowed=["Resale"]),
    ])

    page = (await pages.get_license_page(mock_db)).model_dump(by_alias=True)

    details = page["licenseDetailsData"]
    assert [d["title"] for d in details] == ["Standard", "Extended"]
    assert details[0]["notAllowed"] == ["Resale"]
    assert details[1]["description"] == ""
    assert details[1]["notAllowed"] == []


@pytest.mark.anyio
async def test_logotype_page_skips_fonts_without_files(mock_db, make_font):
    with_file = make_font()
    without = make_font(id="font-2", slug="bare", font_files=[])
    mock_db.execute.side_effect = [rows([with_file, without]), rows([]), rows([])]

    page = (await pages.get_logotype_page(mock_db)).model_dump(by_alias=True)

    assert [f["slug"] for f in page["allLogotypeFonts"]] == ["marlowe-serif"]
    assert page["allLogotypeFonts"][0]["fontUrl"] == "https://cdn.example.com/marlowe.otf"
    assert page["latestBlogPosts"] == []
    assert page["marqueeFonts"] == []


@pytest.mark.anyio
async def test_partner_page_lists_partner_fonts_and_brands(mock_db, make_font):
    partner = Partner(id="p-1", name="North Foundry", slug="north-foundry", logo_url=None)
    brand = Brand(id="b-1", name="Acme", logo_url="https://cdn.example.com/acme.png",
                  created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    mock_db.scalar.return_value = 1
    mock_db.execute.side_effect = [rows([partner]), rows([brand]), rows([make_font(partner=partner)])]

    page = (await pages.get_partner_page(mock_db, "north-foundry")).model_dump(by_alias=True)

    assert page["partner"]["slug"] == "north-foundry"
    assert page["brands"] == [{"id": "b-1", "name": "Acme", "logoUrl": "https://cdn.example.com/acme.png"}]
    assert page["fonts"][0]["partner"] == {"name": "North Foundry", "slug": "north-foundry"}
    assert page["totalPages"] == 1


@pytest.mark.anyio
async def test_unknown_partner_is_not_found(mock_db):
    mock_db.execute.return_value = rows([])

    with pytest.raises(NotFoundError):
        await pages.get_partner_page(mock_db, "nobody")
