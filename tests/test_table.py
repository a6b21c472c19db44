"""Listing table view-model."""
import asyncio

from catalog.listing_store import ListingStore
from catalog.models import Product, SortSpec
from catalog.table import (
    COLUMNS,
    build_table,
    column_sort,
    format_price,
    format_row,
    sort_from_columns,
)


def test_sort_indicator_only_on_matching_sortable_column():
    sort = SortSpec(field="sku", order="asc")
    sku = next(c for c in COLUMNS if c.field == "sku")
    assert column_sort(sku, sort) is None

    rating = next(c for c in COLUMNS if c.field == "rating")
    assert column_sort(rating, SortSpec(field="rating", order="desc")) == "desc"
    assert column_sort(rating, None) is None


def test_sort_from_columns_picks_first_sorted_column():
    state = [{"colId": "title"}, {"colId": "price", "sort": "desc"}, {"colId": "rating", "sort": "asc"}]
    assert sort_from_columns(state) == SortSpec(field="price", order="desc")
    assert sort_from_columns([{"colId": "title", "sort": None}]) is None


def test_format_row_uses_placeholders():
    row = format_row(Product(id=7))
    assert row["title"] == "Untitled"
    assert row["category"] == "No category"
    assert row["brand"] == "No vendor"
    assert row["sku"] == "No SKU"
    assert row["rating"] == "No rating"
    assert row["rating_low"] is False
    assert row["price"] == "No price"


def test_format_row_flags_low_rating():
    row = format_row(Product(id=1, rating=2.56, price=1234.5))
    assert row["rating"] == "2.6/5"
    assert row["rating_low"] is True
    assert row["price"] == "1,234.50"
    assert format_price(0) == "0.00"


def test_footer_reports_range_and_window(source, prefs):
    store = ListingStore(source, prefs)
    asyncio.run(store.set_page(5))

    footer = build_table(store)["footer"]
    assert footer["label"] == "Showing 81-95 of 95"
    assert footer["pages"] == [1, 2, 3, 4, 5]
    assert footer["has_next"] is False
    assert footer["has_prev"] is True


def test_footer_hidden_without_results(source, prefs):
    source.catalog = []
    store = ListingStore(source, prefs)
    asyncio.run(store.set_search("nothing"))

    table = build_table(store)
    assert table["footer"] is None
    assert table["rows"] == []
    assert table["error"] is None
