"""
Catalog query building, checked against the SQL the postgres dialect emits.
"""
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from app.models import Discount
from app.services.catalog import (
    CatalogFilters,
    build_bundle_query,
    build_font_query,
    list_fonts,
    logotype_preview,
    paginate,
    preview_text_from_name,
)


def compile_sql(query):
    compiled = query.compile(dialect=postgresql.dialect())
    return str(compiled), compiled.params


def test_search_is_case_insensitive_substring():
    sql, params = compile_sql(build_font_query(CatalogFilters(search="Serif")))
    assert "fonts.name ILIKE" in sql
    assert "%Serif%" in params.values()


def test_category_all_means_no_category_filter():
    sql, _ = compile_sql(build_font_query(CatalogFilters(category="All")))
    assert "fonts.category =" not in sql

    sql, params = compile_sql(build_font_query(CatalogFilters(category="Script")))
    assert "fonts.category =" in sql
    assert "Script" in params.values()


def test_house_partner_slug_selects_fonts_without_partner():
    sql, _ = compile_sql(build_font_query(CatalogFilters(partner_slug="stylishtype")))
    assert "fonts.partner_id IS NULL" in sql


def test_partner_id_wins_over_slug():
    sql, params = compile_sql(build_font_query(CatalogFilters(partner_id="p-1", partner_slug="stylishtype")))
    assert "fonts.partner_id =" in sql
    assert "IS NULL" not in sql
    assert "p-1" in params.values()


def test_tag_matches_either_tag_column():
    sql, _ = compile_sql(build_font_query(CatalogFilters(tag="vintage")))
    assert "fonts.tags @>" in sql
    assert "fonts.purpose_tags @>" in sql
    assert " OR " in sql


def test_staff_pick_sort_filters_and_orders_newest():
    sql, _ = compile_sql(build_font_query(CatalogFilters(sort="Staff Pick")))
    assert "fonts.staff_pick IS true" in sql
    assert "ORDER BY fonts.created_at DESC" in sql


@pytest.mark.parametrize(
    "sort, order_by",
    [
        ("Popular", "ORDER BY fonts.sales_count DESC"),
        ("Newest", "ORDER BY fonts.created_at DESC"),
        ("Oldest", "ORDER BY fonts.created_at ASC"),
        ("A to Z", "ORDER BY fonts.name ASC"),
        ("Z to A", "ORDER BY fonts.name DESC"),
        ("Cheapest", "ORDER BY fonts.created_at DESC"),
    ],
)
def test_font_sort_mapping(sort, order_by):
    sql, _ = compile_sql(build_font_query(CatalogFilters(sort=sort)))
    assert order_by in sql


def test_popular_bundles_fall_back_to_newest():
    sql, _ = compile_sql(build_bundle_query(CatalogFilters(sort="Popular")))
    assert "ORDER BY bundles.created_at DESC" in sql


@pytest.mark.parametrize("page, offset", [(1, 0), (3, 64), (0, 0), (-2, 0)])
def test_pagination_slices_by_32(page, offset):
    sql, params = compile_sql(paginate(build_font_query(CatalogFilters()), page))
    assert "LIMIT" in sql and "OFFSET" in sql
    values = list(params.values())
    assert 32 in values
    assert offset in values


@pytest.mark.anyio
async def test_list_fonts_total_pages_and_cards(mock_db, make_font):
    mock_db.scalar.return_value = 33
    result = MagicMock()
    result.scalars.return_value.all.return_value = [make_font(discount=Discount(name="Spring", percentage=20))]
    mock_db.execute.return_value = result

    response = await list_fonts(mock_db, CatalogFilters(page=1))
    body = response.model_dump(by_alias=True)

    assert body["totalPages"] == 2
    assert body["fonts"][0]["price"] == 40.0
    assert body["fonts"][0]["originalPrice"] == 50.0


@pytest.mark.anyio
async def test_list_fonts_past_last_page_is_empty(mock_db):
    mock_db.scalar.return_value = 10

    response = await list_fonts(mock_db, CatalogFilters(page=5))

    assert response.fonts == []
    assert response.total_pages == 1
    mock_db.execute.assert_not_called()


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Marlowe Serif - Regular", "Marlowe Serif"),
        ("The Quick Brown Fox Sans", "The Quick Brown"),
        ("Solo", "Solo"),
    ],
)
def test_preview_text_from_name(name, expected):
    assert preview_text_from_name(name) == expected


def test_logotype_preview_prefers_regular_file(make_font):
    font = make_font(font_files=[
        {"style": "Bold", "url": "bold.otf"},
        {"style": "regular", "url": "regular.otf"},
    ])
    preview = logotype_preview(font)
    assert preview.font_url == "regular.otf"
    assert preview.initial_preview_text == "Marlowe Serif"


def test_logotype_preview_skips_fonts_without_files(make_font):
    assert logotype_preview(make_font(font_files=[])) is None
    assert logotype_preview(make_font(price=Decimal("1"), font_files=None)) is None
