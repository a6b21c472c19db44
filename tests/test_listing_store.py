"""Listing store: query state mutators and fetch reconciliation."""
import asyncio

import pytest

from catalog.api_client import ProductSourceError
from catalog.listing_store import ListingStore
from catalog.models import Product, SortSpec
from catalog.table import build_table


def _run(coro):
    return asyncio.run(coro)


@pytest.mark.parametrize(
    "text, mode",
    [("", "list"), ("   ", "list"), ("\t\n", "list"), ("phone", "search"), ("  phone ", "search")],
)
def test_fetch_mode_follows_trimmed_search_text(source, prefs, text, mode):
    store = ListingStore(source, prefs)
    _run(store.set_search(text))

    called_mode, query, _ = source.calls[-1]
    assert called_mode == mode
    assert query == (text.strip() or None)
    assert store.search == text  # raw text kept for the search box


def test_set_search_resets_page(source, prefs):
    store = ListingStore(source, prefs)
    _run(store.set_page(4))
    assert store.page == 4

    _run(store.set_search("lipstick"))
    assert store.page == 1
    assert source.calls[-1][2].skip == 0


def test_set_page_computes_skip(source, prefs):
    store = ListingStore(source, prefs)
    _run(store.set_page(3))

    params = source.calls[-1][2]
    assert (params.limit, params.skip) == (20, 40)
    assert [p.id for p in store.products] == list(range(41, 61))
    assert store.total == 95


def test_each_mutator_issues_exactly_one_fetch(source, prefs):
    store = ListingStore(source, prefs)

    async def scenario():
        await store.load_products()
        await store.set_page(2)
        await store.set_search("phone")
        await store.set_sort(SortSpec(field="price", order="asc"))

    _run(scenario())
    assert len(source.calls) == 4


def test_set_sort_keeps_page(source, prefs):
    store = ListingStore(source, prefs)
    _run(store.set_page(2))
    _run(store.set_sort(SortSpec(field="title", order="asc")))

    assert store.page == 2
    params = source.calls[-1][2]
    assert (params.sort_by, params.order, params.skip) == ("title", "asc", 20)


def test_failure_keeps_previous_listing(source, prefs):
    store = ListingStore(source, prefs)
    _run(store.load_products())
    before = list(store.products)

    source.error = ProductSourceError("Failed to load products")
    _run(store.set_page(2))

    assert store.error == "Failed to load products"
    assert store.products == before
    assert store.total == 95
    assert store.is_loading is False

    source.error = None
    _run(store.load_products())
    assert store.error is None
    assert [p.id for p in store.products] == list(range(21, 41))


def test_unexpected_failure_uses_generic_message(source, prefs):
    store = ListingStore(source, prefs)
    source.error = RuntimeError("boom")
    _run(store.load_products())

    assert store.error == "Unknown error"


def test_empty_error_message_falls_back(source, prefs):
    store = ListingStore(source, prefs)
    source.error = ProductSourceError()
    _run(store.load_products())

    assert store.error == "Unknown error"


def test_stale_response_is_discarded(source, prefs):
    """A slow earlier fetch must not overwrite a faster later one."""

    store = ListingStore(source, prefs)
    source.delays = [0.05, 0]

    async def scenario():
        slow = asyncio.create_task(store.set_page(2))
        await asyncio.sleep(0)
        await store.set_page(3)
        await slow

    _run(scenario())
    assert store.page == 3
    assert [p.id for p in store.products] == list(range(41, 61))
    assert store.is_loading is False


def test_stale_failure_does_not_surface(source, prefs):
    store = ListingStore(source, prefs)
    source.delays = [0.05, 0]

    async def scenario():
        slow = asyncio.create_task(store.load_products())
        await asyncio.sleep(0)
        source.error = None
        await store.set_page(2)
        source.error = ProductSourceError("Failed to load products")
        await slow

    _run(scenario())
    assert store.error is None
    assert store.products[0].id == 21


def test_sort_desc_end_to_end(source, prefs):
    store = ListingStore(source, prefs)

    async def scenario():
        await store.set_sort(SortSpec(field="price", order="desc"))
        await store.load_products()

    _run(scenario())
    prices = [p.price for p in store.products]
    assert prices == sorted(prices, reverse=True)
    assert prices[0] == max(p.price for p in source.catalog)

    columns = {c["field"]: c["sort"] for c in build_table(store)["columns"]}
    assert columns["price"] == "desc"
    assert columns["title"] is None
    assert store.sort == SortSpec(field="price", order="desc")


def test_add_product_locally_prepends(source, prefs):
    store = ListingStore(source, prefs)
    _run(store.load_products())

    store.add_product_locally(Product(id=999, title="Draft", price=10.0, brand="Acme", sku="D-1"))
    assert store.products[0].id == 999
    assert store.total == 96
    assert len(source.calls) == 1

    _run(store.load_products())
    assert all(p.id != 999 for p in store.products)
    assert store.total == 95


def test_snapshot_is_plain_data(source, prefs):
    store = ListingStore(source, prefs)
    _run(store.set_sort(SortSpec(field="rating", order="asc")))

    snap = store.snapshot()
    assert snap["sort"] == {"field": "rating", "order": "asc"}
    assert snap["page"] == 1 and snap["page_size"] == 20
    assert len(snap["products"]) == 20
