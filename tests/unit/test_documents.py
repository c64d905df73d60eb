from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import NotFoundError, PermissionDenied, ValidationFailed
from app.models import Order
from app.services import documents

ORDER_ID = "ab12cd34-0000-4000-8000-000000000000"
CREATED = datetime(2024, 5, 17, 12, 0, tzinfo=timezone.utc)


def one_result(row) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    return result


def make_item(**overrides):
    data = {
        "product_name": "Marlowe Serif",
        "license_name": "Standard",
        "permitted_use": ["Print up to 10,000 copies"],
        "license": SimpleNamespace(name="Standard", allowed=["Edited later"]),
        "font_id": "font-1",
        "font": SimpleNamespace(name="Marlowe Serif"),
        "bundle_id": None,
        "bundle": None,
        "price": Decimal("40.00"),
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def make_order(profile, **overrides):
    data = {
        "id": ORDER_ID,
        "user_id": profile.id,
        "created_at": CREATED,
        "status": "Completed",
        "total_amount": Decimal("40.00"),
        "profile": profile,
        "items": [make_item()],
        "is_subscription_order": False,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def test_license_number_is_first_six_upper():
    assert documents.license_number(ORDER_ID) == "AB12CD"


def test_completed_order_without_items_counts_as_subscription():
    assert Order(status="Completed").is_subscription_order is True
    assert Order(status="Subscription Purchase").is_subscription_order is True
    assert Order(status="Subscription Grant").is_subscription_order is False


def test_snapshot_terms_win_over_live_license():
    name, uses = documents.item_license_terms(make_item())
    assert name == "Standard"
    assert uses == ["Print up to 10,000 copies"]


def test_legacy_items_fall_back_to_live_license():
    name, uses = documents.item_license_terms(make_item(license_name=None, permitted_use=None))
    assert name == "Standard"
    assert uses == ["Edited later"]


def test_items_without_any_license_are_marked_na():
    assert documents.item_license_terms(make_item(license_name=None, license=None)) == ("N/A", [])


def test_product_name_falls_back_to_bundle():
    item = make_item(product_name=None, font_id=None, font=None, bundle_id="b-1",
                     bundle=SimpleNamespace(name="Display Bundle"))
    assert documents.item_product_name(item) == "Display Bundle"


@pytest.mark.anyio
async def test_eula_lists_each_item_with_snapshot_terms(mock_db, profile):
    mock_db.execute.return_value = one_result(make_order(profile))

    data = await documents.get_eula_data(mock_db, ORDER_ID, profile)

    assert data.order_id == ORDER_ID
    assert data.purchaser.full_name == "Ada Reader"
    assert len(data.eula_items) == 1
    assert data.eula_items[0].product_name == "Marlowe Serif"
    assert data.eula_items[0].permitted_use == ["Print up to 10,000 copies"]


@pytest.mark.anyio
async def test_unknown_order_is_not_found(mock_db, profile):
    mock_db.execute.return_value = one_result(None)
    with pytest.raises(NotFoundError):
        await documents.get_eula_data(mock_db, ORDER_ID, profile)


@pytest.mark.anyio
async def test_other_users_order_is_forbidden(mock_db, profile):
    stranger = SimpleNamespace(id="user-2", is_admin=False)
    mock_db.execute.return_value = one_result(make_order(profile))

    with pytest.raises(PermissionDenied) as exc_info:
        await documents.get_invoice_data(mock_db, ORDER_ID, stranger)
    assert exc_info.value.message == "You do not have permission to view this invoice."


@pytest.mark.anyio
async def test_admin_can_read_any_order(mock_db, profile, admin_profile):
    mock_db.execute.return_value = one_result(make_order(profile))
    data = await documents.get_invoice_data(mock_db, ORDER_ID, admin_profile)
    assert data.total_amount == 40.0
    assert data.lines[0].price == 40.0


@pytest.mark.anyio
async def test_product_order_with_no_items_cannot_produce_eula(mock_db, profile):
    order = make_order(profile, status="Subscription Grant", items=[])
    mock_db.execute.return_value = one_result(order)

    with pytest.raises(ValidationFailed) as exc_info:
        await documents.get_eula_data(mock_db, ORDER_ID, profile)
    assert exc_info.value.message == "No items found for this order to generate EULA."


@pytest.mark.anyio
async def test_subscription_eula_lists_plan_features(mock_db, profile):
    plan = SimpleNamespace(name="Pro", allowed_features=["All fonts", "Commercial use"])
    subscription = SimpleNamespace(plan=plan)
    order = make_order(profile, status="Subscription Purchase", items=[], is_subscription_order=True)
    mock_db.execute.side_effect = [one_result(order), one_result(subscription)]

    data = await documents.get_eula_data(mock_db, ORDER_ID, profile)

    assert len(data.eula_items) == 1
    assert data.eula_items[0].product_name == "Pro"
    assert data.eula_items[0].license_name == "Subscription"
    assert data.eula_items[0].permitted_use == ["All fonts", "Commercial use"]


def test_rendered_eula_contains_terms_and_escapes_html(profile):
    from app.schemas.documents import EulaData, EulaItem, Purchaser

    data = EulaData(
        order_id=ORDER_ID,
        created_at=CREATED,
        status="Completed",
        purchaser=Purchaser(full_name="<Ada>", country="PT", postal_code="1000-001"),
        eula_items=[EulaItem(product_name="Marlowe Serif", license_name="Standard",
                             permitted_use=["Web & app embedding"])],
    )
    html = documents.render_eula(data)

    assert "End User License Agreement" in html
    assert "#AB12CD" in html
    assert "May 17, 2024" in html
    assert "Marlowe Serif - Standard License" in html
    assert "Web &amp; app embedding" in html
    assert "&lt;Ada&gt;" in html
    assert "PT, 1000-001" in html


def test_rendered_invoice_shows_total(profile):
    from app.schemas.documents import InvoiceData, InvoiceLine, Purchaser

    data = InvoiceData(
        order_id=ORDER_ID,
        created_at=CREATED,
        status="Completed",
        total_amount=65.5,
        purchaser=Purchaser(full_name="Ada Reader"),
        lines=[
            InvoiceLine(product_name="Marlowe Serif", license_name="Standard", price=40),
            InvoiceLine(product_name="Vesper", license_name="Extended", price=25.5),
        ],
    )
    html = documents.render_invoice(data)

    assert "INVOICE" in html
    assert "65.50" in html
    assert "25.50" in html


def test_document_filename():
    assert documents.document_filename("eula", ORDER_ID) == "eula-AB12CD.html"
