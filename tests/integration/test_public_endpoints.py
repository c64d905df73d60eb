"""
Public API endpoints through the ASGI app, with the database session and
payment gateway replaced by test doubles.
"""
from decimal import Decimal
from unittest.mock import MagicMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_current_user
from app.core.database import get_db
from app.main import app
from app.models import Discount, License
from app.services.paypal_client import PayPalClient, get_paypal_client


@pytest.fixture
def override(mock_db):
    app.dependency_overrides[get_db] = lambda: mock_db
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def paypal_client(handler) -> PayPalClient:
    return PayPalClient(
        client_id="client",
        secret="secret",
        base_url="https://api-m.sandbox.paypal.test",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.anyio
async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Stylish Type API"


@pytest.mark.anyio
async def test_config_without_row_is_empty(client, override, mock_db):
    mock_db.get.return_value = None

    response = await client.get("/api/config")

    assert response.status_code == 200
    assert response.json() == {"meta_pixel_id": None, "google_analytics_id": None}


@pytest.mark.anyio
async def test_font_listing_applies_discount_and_cache_headers(client, override, mock_db, make_font):
    mock_db.scalar.return_value = 1
    result = MagicMock()
    result.scalars.return_value.all.return_value = [
        make_font(price=Decimal("50.00"), discount=Discount(name="Spring", percentage=20)),
    ]
    mock_db.execute.return_value = result

    response = await client.get("/api/fonts", params={"page": 1, "sort": "Newest"})

    assert response.status_code == 200
    assert response.headers["cache-control"] == "s-maxage=600, stale-while-revalidate=3000"
    body = response.json()
    assert body["totalPages"] == 1
    assert body["fonts"][0]["price"] == 40.0
    assert body["fonts"][0]["originalPrice"] == 50.0


@pytest.mark.anyio
async def test_blank_search_returns_no_results(client, override):
    response = await client.get("/api/search", params={"q": "  "})
    assert response.json() == {"results": []}


@pytest.mark.anyio
async def test_robots_txt(client):
    response = await client.get("/robots.txt")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "Disallow: /admin/" in response.text


@pytest.mark.anyio
async def test_cart_summary_migrates_legacy_array(client):
    legacy = [{
        "id": "font-1-lic-std",
        "productId": "font-1",
        "name": "Marlowe",
        "price": 40,
        "originalPrice": 50,
        "license": {"id": "lic-std", "name": "Standard"},
        "type": "font",
    }]

    response = await client.post("/api/cart/summary", json={"cart": legacy})

    assert response.status_code == 200
    body = response.json()
    assert body["version"] == 2
    assert body["count"] == 1
    assert body["total"] == 40.0
    assert body["originalTotal"] == 50.0


@pytest.mark.anyio
async def test_cart_add_rejects_duplicate(client):
    item = {
        "productId": "font-1",
        "name": "Marlowe",
        "price": 40,
        "license": {"id": "lic-std", "name": "Standard"},
        "type": "font",
    }
    first = (await client.post("/api/cart/add", json={"cart": None, "item": item})).json()
    assert first["notification"] == "Marlowe added to cart!"

    second = (await client.post("/api/cart/add", json={"cart": first["cart"], "item": item})).json()
    assert second["changed"] is False
    assert second["message"] == "Marlowe is already in your cart."
    assert second["cart"]["count"] == 1


@pytest.mark.anyio
async def test_paypal_create_order_sends_two_decimal_value(client, override):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/oauth2/token":
            return httpx.Response(200, json={"access_token": "t", "expires_in": 3600})
        seen["body"] = request.content
        return httpx.Response(201, json={"id": "ORDER-1", "status": "CREATED"})

    gateway = paypal_client(handler)
    override[get_paypal_client] = lambda: gateway

    response = await client.post("/api/paypal/create-order", json={"totalAmount": 19.989999})
    await gateway.close()

    assert response.status_code == 200
    assert response.json()["id"] == "ORDER-1"
    assert b'"value": "19.99"' in seen["body"] or b'"value":"19.99"' in seen["body"]


@pytest.mark.anyio
async def test_paypal_failure_is_500_with_gateway_message(client, override):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/oauth2/token":
            return httpx.Response(200, json={"access_token": "t", "expires_in": 3600})
        return httpx.Response(422, json={"message": "Currency not supported"})

    gateway = paypal_client(handler)
    override[get_paypal_client] = lambda: gateway

    response = await client.post("/api/paypal/capture-order", json={"orderID": "ORDER-1"})
    await gateway.close()

    assert response.status_code == 500
    assert response.json() == {"error": "Currency not supported"}


@pytest.mark.anyio
async def test_orders_require_authentication(client, override):
    response = await client.get("/api/orders")
    assert response.status_code == 401


@pytest.mark.anyio
async def test_unknown_order_eula_is_404(client, override, mock_db, profile):
    override[get_current_user] = lambda: profile
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    mock_db.execute.return_value = result

    response = await client.get("/api/orders/ab12cd34-0000-4000-8000-000000000000/eula")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.anyio
async def test_admin_routes_reject_customers(client, override, profile):
    override[get_current_user] = lambda: profile
    response = await client.get("/api/admin/licenses")
    assert response.status_code == 403


@pytest.mark.anyio
async def test_license_page_is_cached_and_standard_first(client, override, mock_db):
    result = MagicMock()
    result.scalars.return_value.all.return_value = [
        License(name="Web", allowed=["Websites"], not_allowed=[]),
        License(name="Standard", description="Desktop use", allowed=["Print"], not_allowed=["Resale"]),
    ]
    mock_db.execute.return_value = result

    response = await client.get("/api/license-page")

    assert response.status_code == 200
    assert response.headers["cache-control"] == "s-maxage=3600, stale-while-revalidate"
    details = response.json()["licenseDetailsData"]
    assert details[0] == {
        "title": "Standard",
        "description": "Desktop use",
        "allowed": ["Print"],
        "notAllowed": ["Resale"],
    }


@pytest.mark.anyio
async def test_unknown_partner_page_is_404(client, override, mock_db):
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    mock_db.execute.return_value = result

    response = await client.get("/api/partners/nobody")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.anyio
async def test_license_quote_prices_seats_with_discount(client, override, mock_db, make_font):
    font = make_font(discount=Discount(name="Spring", percentage=20))
    web = License(id="lic-web", name="Web", font_price=Decimal("25.00"), bundle_price=Decimal("60.00"))
    mock_db.get.side_effect = [font, web]

    response = await client.post("/api/cart/quote", json={
        "productId": "font-1", "type": "font", "licenseId": "lic-web", "userCount": 2,
    })

    assert response.status_code == 200
    assert response.json() == {
        "price": 40.0,
        "originalPrice": 50.0,
        "quantity": 2,
        "discount": "20% OFF",
        "license": {"id": "lic-web", "name": "Web"},
    }


@pytest.mark.anyio
async def test_license_quote_rejects_enterprise_license_for_bundle(client, override, mock_db, make_bundle):
    mock_db.get.side_effect = [make_bundle(), License(id="lic-corp", name="Corporate", bundle_price=Decimal("900"))]

    response = await client.post("/api/cart/quote", json={
        "productId": "bundle-1", "type": "bundle", "licenseId": "lic-corp",
    })

    assert response.status_code == 400
    assert response.json()["details"] == {"license_id": "lic-corp"}
