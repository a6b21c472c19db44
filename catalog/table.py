"""Listing table view-model: columns, formatted rows and the pagination footer."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from .listing_store import ListingStore
from .models import Product, SortSpec

LOW_RATING = 3


@dataclass(frozen=True)
class Column:
    field: str
    header: str
    sortable: bool = True


COLUMNS: tuple[Column, ...] = (
    Column("title", "Title"),
    Column("brand", "Vendor"),
    Column("sku", "SKU", sortable=False),
    Column("rating", "Rating"),
    Column("price", "Price, $"),
)


def column_sort(column: Column, sort: SortSpec | None) -> str | None:
    if sort is None or not column.sortable:
        return None
    return sort.order if sort.field == column.field else None


def sort_from_columns(column_state: Iterable[Mapping[str, Any]]) -> SortSpec | None:
    """Map grid column state (``colId``/``sort`` pairs) to a sort spec.

    The first column carrying a direction wins; no direction clears sorting.
    """
    for state in column_state:
        order = state.get("sort")
        if order:
            return SortSpec(field=state.get("colId") or state.get("field"), order=order)
    return None


def format_price(value: float | None) -> str:
    if value is None:
        return "No price"
    return f"{value:,.2f}"


def format_rating(value: float | None) -> str:
    if value is None:
        return "No rating"
    return f"{value:.1f}/5"


def format_row(product: Product) -> Dict[str, Any]:
    return {
        "id": product.id,
        "title": product.title or "Untitled",
        "category": product.category or "No category",
        "thumbnail": product.thumbnail,
        "brand": product.brand or "No vendor",
        "sku": product.sku or "No SKU",
        "rating": format_rating(product.rating),
        "rating_low": product.rating is not None and product.rating < LOW_RATING,
        "price": format_price(product.price),
    }


def build_footer(store: ListingStore) -> Dict[str, Any] | None:
    if store.total <= 0:
        return None
    start, end = store.bounds
    return {
        "label": f"Showing {start}-{end} of {store.total}",
        "from": start,
        "to": end,
        "total": store.total,
        "page": store.page,
        "total_pages": store.total_pages,
        "pages": store.pages,
        "has_prev": store.page > 1,
        "has_next": store.page < store.total_pages,
    }


def build_table(store: ListingStore) -> Dict[str, Any]:
    columns: List[Dict[str, Any]] = [
        {
            "field": column.field,
            "header": column.header,
            "sortable": column.sortable,
            "sort": column_sort(column, store.sort),
        }
        for column in COLUMNS
    ]
    return {
        "columns": columns,
        "rows": [format_row(product) for product in store.products],
        "footer": build_footer(store),
        "is_loading": store.is_loading,
        "error": store.error,
    }
