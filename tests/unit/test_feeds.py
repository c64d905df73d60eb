import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.core.config import settings
from app.services import feeds

G = "{http://base.google.com/ns/1.0}"


def rows_result(rows) -> MagicMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(rows)
    result.all.return_value = list(rows)
    return result


def test_strip_html():
    assert feeds.strip_html("<p>Bold <b>serif</b></p>") == "Bold serif"


def test_feed_description_falls_back_and_truncates():
    assert feeds.feed_description(None, "Premium font X") == "Premium font X"
    assert len(feeds.feed_description("a" * 6000, "x")) == 5000


def test_font_item_fields(make_font):
    item = feeds.font_feed_item(make_font(price=Decimal("19.9")), "https://stylishtype.co")

    assert item.id == "font_font-1"
    assert item.link == "https://stylishtype.co/product/marlowe-serif"
    assert item.image_link == "https://cdn.example.com/marlowe.jpg"
    assert item.price == "19.90 USD"
    assert item.description == "A sturdy serif."
    assert item.custom_label_0 == "font"


def test_bundle_item_uses_og_image_and_fallback_description(make_bundle):
    item = feeds.bundle_feed_item(make_bundle(), "https://stylishtype.co")

    assert item.id == "bundle_bundle-1"
    assert item.link == "https://stylishtype.co/bundles/display-bundle"
    assert item.image_link == "https://stylishtype.co/og-image.png"
    assert item.description == "Premium font bundle Display Bundle"
    assert item.price == "99.00 USD"


def test_bundle_item_strips_its_main_description(make_bundle):
    bundle = make_bundle(main_description="<p>Six <b>display</b> faces.</p>")

    item = feeds.bundle_feed_item(bundle, "https://stylishtype.co")

    assert item.description == "Six display faces."


@pytest.mark.anyio
async def test_merchant_feed_is_valid_rss_with_escaped_text(mock_db, make_font, make_bundle):
    font = make_font(name="Fish & Chips Sans", main_description="<p>Tasty <i>&</i> bold</p>")
    mock_db.execute.side_effect = [rows_result([font]), rows_result([make_bundle()])]

    xml = await feeds.build_merchant_feed(mock_db)
    root = ET.fromstring(xml)

    assert root.tag == "rss"
    channel = root.find("channel")
    assert channel.findtext("title") == "Stylish Type Catalog"
    items = channel.findall("item")
    assert [i.findtext(f"{G}custom_label_0") for i in items] == ["font", "bundle"]
    first = items[0]
    assert first.findtext(f"{G}title") == "Fish & Chips Sans"
    assert first.findtext(f"{G}condition") == "new"
    assert first.findtext(f"{G}availability") == "in stock"
    assert first.findtext(f"{G}price") == "50.00 USD"
    assert first.findtext(f"{G}google_product_category") == "Software > Digital Goods > Fonts"


@pytest.mark.anyio
async def test_sitemap_priorities(mock_db):
    created = datetime(2024, 1, 2, tzinfo=timezone.utc)
    mock_db.execute.side_effect = [
        rows_result([("marlowe", created)]),
        rows_result([("display-bundle", created)]),
        rows_result([("hello-world", created)]),
        rows_result([("north-foundry", created)]),
    ]

    entries = await feeds.build_sitemap_entries(mock_db)
    by_loc = {e.loc: e for e in entries}
    base = settings.site_url

    assert by_loc[base].priority == 1.0
    assert by_loc[f"{base}/about"].priority == 0.5
    assert by_loc[f"{base}/product/marlowe"].priority == 0.8
    assert by_loc[f"{base}/product/marlowe"].changefreq == "weekly"
    assert by_loc[f"{base}/bundles/display-bundle"].priority == 0.8
    assert by_loc[f"{base}/blog/hello-world"].priority == 0.7
    assert by_loc[f"{base}/partners/north-foundry"].priority == 0.6
    assert len(entries) == len(feeds.STATIC_ROUTES) + 4


def test_robots_txt():
    body = feeds.build_robots()
    lines = [line for line in body.splitlines() if line]

    assert lines[0] == "User-Agent: *"
    assert "Allow: /" in lines
    for path in ("/admin/", "/account/", "/checkout/", "/auth/", "/api/"):
        assert f"Disallow: {path}" in lines
    assert f"Sitemap: {settings.site_url}/sitemap.xml" in lines
