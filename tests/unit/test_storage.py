import pytest

from app.services.storage import StorageService, font_problem, image_problem, key_from_url, object_key

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def test_key_from_url_finds_folder_marker():
    url = "https://cdn.example.com/stylish-type/brand_logos/202405/abc-logo.png?v=2"
    assert key_from_url(url) == "brand_logos/202405/abc-logo.png"


@pytest.mark.parametrize("url", [None, "", "https://elsewhere.example.com/logo.png"])
def test_foreign_or_empty_urls_have_no_key(url):
    assert key_from_url(url) is None


def test_object_key_layout():
    key = object_key("partner_logos", "North Foundry Logo.PNG")
    folder, month, name = key.split("/")
    assert folder == "partner_logos"
    assert len(month) == 6 and month.isdigit()
    assert name.endswith("-north-foundry-logo.png")


def test_image_checks():
    assert image_problem(PNG, "image/png") is None
    assert "Unsupported" in image_problem(PNG, "application/pdf")
    assert image_problem(b"", "image/png") == "Empty file"
    assert image_problem(b"not a png", "image/png") == "File content does not match image/png"
    assert "limit is 5MB" in image_problem(b"\x89PNG" + b"0" * (5 * 1024 * 1024), "image/png")


@pytest.mark.anyio
async def test_unknown_folder_is_rejected_before_upload():
    result = await StorageService().upload_image("fonts", PNG, "a.png", "image/png")
    assert result.success is False
    assert result.error == "Unknown image folder: fonts"


def test_font_files_have_keys_too():
    url = "https://cdn.example.com/stylish-type/font_files/202405/abc-marlowe.otf"
    assert key_from_url(url) == "font_files/202405/abc-marlowe.otf"


def test_font_checks():
    assert font_problem(b"OTTO", "Marlowe-Regular.OTF") is None
    assert "Unsupported" in font_problem(b"OTTO", "marlowe.zip")
    assert font_problem(b"", "marlowe.woff2") == "Empty file"


@pytest.mark.anyio
async def test_font_upload_rejects_non_font_before_storing():
    result = await StorageService().upload_font_file(PNG, "logo.png")
    assert result.success is False
    assert result.error.startswith("Unsupported font file")
