"""
Admin product and post endpoints through the ASGI app with an admin
caller and a mocked session.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_current_user
from app.core.database import get_db
from app.main import app
from app.services.storage import get_storage

PREVIEWS = [f"https://cdn.example.com/stylish-type/product_images/202405/p{i}.jpg" for i in range(15)]


@pytest.fixture
def override(mock_db):
    app.dependency_overrides[get_db] = lambda: mock_db
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def assign_row_defaults(row):
    row.id = row.id or "new-1"
    row.created_at = datetime(2024, 5, 1, tzinfo=timezone.utc)


def font_body() -> dict:
    return {
        "name": "Marlowe Serif",
        "price": 40,
        "preview_image_urls": PREVIEWS,
        "font_files": [{"style": "Regular", "url": "https://cdn.example.com/stylish-type/font_files/m.otf"}],
    }


@pytest.mark.anyio
async def test_font_create_rejects_customers(client, override, mock_db, profile):
    override[get_current_user] = lambda: profile

    response = await client.post("/api/admin/fonts", json=font_body())

    assert response.status_code == 403
    mock_db.add.assert_not_called()


@pytest.mark.anyio
async def test_admin_creates_font(client, override, mock_db, admin_profile):
    override[get_current_user] = lambda: admin_profile
    mock_db.scalar.return_value = None
    mock_db.refresh.side_effect = assign_row_defaults

    response = await client.post("/api/admin/fonts", json=font_body())

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "new-1"
    assert body["slug"] == "marlowe-serif"
    assert body["price"] == 40.0


@pytest.mark.anyio
async def test_font_with_too_few_previews_is_422(client, override, admin_profile):
    override[get_current_user] = lambda: admin_profile

    response = await client.post("/api/admin/fonts", json={**font_body(), "preview_image_urls": PREVIEWS[:3]})

    assert response.status_code == 422


@pytest.mark.anyio
async def test_taken_bundle_slug_is_400(client, override, mock_db, admin_profile):
    override[get_current_user] = lambda: admin_profile
    mock_db.scalar.return_value = "bundle-7"

    response = await client.post("/api/admin/bundles", json={"name": "Display Bundle", "price": 99})

    assert response.status_code == 400
    assert response.json()["details"] == {"slug": "display-bundle"}


@pytest.mark.anyio
async def test_font_file_upload_is_not_treated_as_image_folder(client, override, admin_profile):
    storage = AsyncMock()
    storage.is_configured = lambda: True
    storage.upload_font_file.return_value.success = False
    storage.upload_font_file.return_value.error = "Unsupported font file a.zip; use OTF, TTF, WOFF or WOFF2"
    override[get_current_user] = lambda: admin_profile
    override[get_storage] = lambda: storage

    response = await client.post("/api/admin/uploads/font-files", files={"file": ("a.zip", b"PK", "application/zip")})

    assert response.status_code == 400
    storage.upload_font_file.assert_awaited_once_with(b"PK", "a.zip")


@pytest.mark.anyio
async def test_admin_publishes_post(client, override, mock_db, admin_profile):
    override[get_current_user] = lambda: admin_profile
    mock_db.refresh.side_effect = assign_row_defaults

    response = await client.post(
        "/api/admin/posts", json={"title": "Pairing Serifs", "status": "Published", "tags": "pairing"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["slug"] == "pairing-serifs"
    assert body["is_published"] is True
    assert body["tags"] == ["pairing"]
