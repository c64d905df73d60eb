from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import NotFoundError, ValidationFailed
from app.models import Post
from app.schemas.admin import BundleCreate, FontCreate, FontUpdate, PostWrite
from app.services import blog_service, product_admin

PREVIEWS = [f"https://cdn.example.com/stylish-type/product_images/202405/p{i}.jpg" for i in range(15)]
OTF = "https://cdn.example.com/stylish-type/font_files/202405/abc-marlowe.otf"


def font_payload(**overrides) -> dict:
    data = {
        "name": "  Marlowe Serif ",
        "price": 49.999,
        "category": "Serif",
        "partner_id": "null",
        "tags": "elegant, , bookish",
        "purpose_tags": ["Editorial"],
        "preview_image_urls": PREVIEWS,
        "font_files": [{"style": "Regular", "url": OTF}],
    }
    data.update(overrides)
    return data


@pytest.fixture
def storage() -> AsyncMock:
    return AsyncMock()


def test_font_create_needs_fifteen_previews_and_a_file():
    with pytest.raises(ValidationError):
        FontCreate(**font_payload(preview_image_urls=PREVIEWS[:14]))
    with pytest.raises(ValidationError):
        FontCreate(**font_payload(font_files=[]))


def test_font_form_fields_are_normalised():
    data = FontCreate(**font_payload())
    assert data.name == "Marlowe Serif"
    assert data.partner_id is None
    assert data.tags == ["elegant", "bookish"]


@pytest.mark.anyio
async def test_create_font_slugs_name_and_rounds_price(mock_db):
    mock_db.scalar.return_value = None

    font = await product_admin.create_font(mock_db, FontCreate(**font_payload()))

    assert font.slug == "marlowe-serif"
    assert font.price == Decimal("50.00")
    assert font.font_files == [{"style": "Regular", "url": OTF}]
    assert font.staff_pick is False
    mock_db.add.assert_called_once_with(font)
    mock_db.commit.assert_awaited_once()


@pytest.mark.anyio
async def test_create_font_rejects_taken_slug(mock_db):
    mock_db.scalar.return_value = "font-9"

    with pytest.raises(ValidationFailed) as exc:
        await product_admin.create_font(mock_db, FontCreate(**font_payload()))

    assert exc.value.details == {"slug": "marlowe-serif"}
    mock_db.add.assert_not_called()


@pytest.mark.anyio
async def test_create_font_rejects_unknown_partner(mock_db):
    mock_db.scalar.return_value = None
    mock_db.get.return_value = None

    with pytest.raises(ValidationFailed) as exc:
        await product_admin.create_font(mock_db, FontCreate(**font_payload(partner_id="p-404")))

    assert exc.value.details == {"partner_id": "p-404"}


@pytest.mark.anyio
async def test_commit_conflict_becomes_validation_error(mock_db):
    mock_db.scalar.return_value = None
    mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

    with pytest.raises(ValidationFailed):
        await product_admin.create_font(mock_db, FontCreate(**font_payload()))

    mock_db.rollback.assert_awaited_once()


@pytest.mark.anyio
async def test_update_font_keeps_files_and_honours_edited_slug(mock_db, make_font):
    font = make_font()
    mock_db.get.return_value = font
    mock_db.scalar.return_value = None
    data = FontUpdate(name="Marlowe", price=30, slug="Marlowe Text", staff_pick=True, preview_image_urls=PREVIEWS)

    await product_admin.update_font(mock_db, "font-1", data)

    assert font.slug == "marlowe-text"
    assert font.staff_pick is True
    assert font.font_files == [{"style": "Regular", "url": "https://cdn.example.com/marlowe.otf"}]


@pytest.mark.anyio
async def test_delete_font_removes_stored_files_after_commit(mock_db, storage, make_font):
    font = make_font(preview_image_urls=PREVIEWS[:2], font_files=[{"style": "Regular", "url": OTF}])
    mock_db.get.return_value = font
    calls = []
    mock_db.commit.side_effect = lambda: calls.append("commit")
    storage.delete_by_url.side_effect = lambda url: calls.append(url)

    await product_admin.delete_font(mock_db, storage, "font-1")

    mock_db.delete.assert_awaited_once_with(font)
    assert calls == ["commit", PREVIEWS[0], PREVIEWS[1], OTF]


@pytest.mark.anyio
async def test_delete_unknown_font_is_not_found(mock_db, storage):
    mock_db.get.return_value = None

    with pytest.raises(NotFoundError):
        await product_admin.delete_font(mock_db, storage, "font-404")

    storage.delete_by_url.assert_not_awaited()


@pytest.mark.anyio
async def test_bulk_delete_counts_only_existing_fonts(mock_db, storage, make_font):
    found = MagicMock()
    found.scalars.return_value.all.return_value = [make_font(), make_font(id="font-2", slug="other")]
    mock_db.execute.side_effect = [found, MagicMock()]

    deleted = await product_admin.bulk_delete_fonts(mock_db, storage, ["font-1", "font-2", "font-404"])

    assert deleted == 2
    assert storage.delete_by_url.await_count == 4


@pytest.mark.anyio
async def test_bulk_delete_with_nothing_found_does_not_commit(mock_db, storage):
    empty = MagicMock()
    empty.scalars.return_value.all.return_value = []
    mock_db.execute.return_value = empty

    assert await product_admin.bulk_delete_bundles(mock_db, storage, ["b-404"]) == 0
    mock_db.commit.assert_not_awaited()


@pytest.mark.anyio
async def test_create_bundle_without_files(mock_db):
    mock_db.scalar.return_value = None

    bundle = await product_admin.create_bundle(
        mock_db, BundleCreate(name="Display Bundle", price=99, main_description="<p>Six faces.</p>")
    )

    assert bundle.slug == "display-bundle"
    assert bundle.font_files == []
    assert bundle.main_description == "<p>Six faces.</p>"


@pytest.mark.anyio
async def test_punctuation_only_name_is_rejected(mock_db):
    with pytest.raises(ValidationFailed):
        await product_admin.create_bundle(mock_db, BundleCreate(name="!!!", price=10))


# ----- Blog posts -----

@pytest.mark.anyio
async def test_create_post_publishes_by_status(mock_db):
    post = await blog_service.create_post(
        mock_db, PostWrite(title="Pairing Serifs", tags="pairing, serif", status="Published", show_toc=True)
    )

    assert post.slug == "pairing-serifs"
    assert post.is_published is True
    assert post.show_toc is True
    assert post.tags == ["pairing", "serif"]


@pytest.mark.anyio
async def test_draft_is_not_published(mock_db):
    post = await blog_service.create_post(mock_db, PostWrite(title="Notes"))
    assert post.is_published is False


@pytest.mark.anyio
async def test_duplicate_post_slug_is_rejected(mock_db):
    mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

    with pytest.raises(ValidationFailed) as exc:
        await blog_service.create_post(mock_db, PostWrite(title="Pairing Serifs"))

    assert exc.value.details == {"slug": "pairing-serifs"}


@pytest.mark.anyio
async def test_delete_post_removes_its_image(mock_db, storage):
    image = "https://cdn.example.com/stylish-type/blog_images/202405/cover.jpg"
    mock_db.get.return_value = Post(id="post-1", slug="pairing-serifs", title="Pairing Serifs", image_url=image)

    post = await blog_service.delete_post(mock_db, storage, "post-1")

    assert post.slug == "pairing-serifs"
    storage.delete_by_url.assert_awaited_once_with(image)
