"""Product listing state: query parameters, fetch orchestration, reconciliation.

``ListingStore`` is the single owner of the listing query (page, page size,
search text, sort) and of the last listing result. Every mutator leaves the
query consistent and then awaits exactly one reload.

Reloads may overlap (two quick page clicks, a sort change during a search).
Each reload takes a ticket from a monotonically increasing counter and only
the holder of the newest ticket is allowed to write its outcome back, so a
slow earlier response can never overwrite a faster later one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Dict, List

from .api_client import ProductSource, ProductSourceError
from .config import settings
from .models import FetchParams, Product, ProductsResponse, SortSpec
from .pagination import page_window, total_pages, window_bounds
from .preferences import PreferenceBackend, load_sort, save_sort

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


@dataclass
class QueryState:
    page: int = 1
    page_size: int = 20
    search: str = ""
    sort: SortSpec | None = None

    @property
    def query_text(self) -> str:
        return self.search.strip()

    @property
    def mode(self) -> str:
        return "search" if self.query_text else "list"

    def fetch_params(self) -> FetchParams:
        return FetchParams(
            limit=self.page_size,
            skip=(self.page - 1) * self.page_size,
            sort_by=self.sort.field if self.sort else None,
            order=self.sort.order if self.sort else None,
        )


@dataclass
class ListingResult:
    products: List[Product] = field(default_factory=list)
    total: int = 0


class ListingStore:
    def __init__(
        self,
        source: ProductSource,
        preferences: PreferenceBackend,
        page_size: int | None = None,
        window: int | None = None,
    ) -> None:
        self.source = source
        self.preferences = preferences
        self.query = QueryState(
            page_size=page_size or settings.page_size,
            sort=load_sort(preferences),
        )
        self.result = ListingResult()
        self.window = window or settings.page_window
        self.is_loading = False
        self.error: str | None = None
        self._issued = 0

    # -- read side -----------------------------------------------------

    @property
    def products(self) -> List[Product]:
        return self.result.products

    @property
    def total(self) -> int:
        return self.result.total

    @property
    def page(self) -> int:
        return self.query.page

    @property
    def page_size(self) -> int:
        return self.query.page_size

    @property
    def search(self) -> str:
        return self.query.search

    @property
    def sort(self) -> SortSpec | None:
        return self.query.sort

    @property
    def has_loaded(self) -> bool:
        return self._issued > 0

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.page_size)

    @property
    def bounds(self) -> tuple[int, int]:
        return window_bounds(self.page, self.page_size, self.total)

    @property
    def pages(self) -> List[int]:
        return page_window(self.page, self.total_pages, self.window)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "search": self.search,
            "sort": self.sort.model_dump() if self.sort else None,
            "products": [p.model_dump() for p in self.products],
            "total": self.total,
            "is_loading": self.is_loading,
            "error": self.error,
        }

    # -- mutators ------------------------------------------------------

    async def set_page(self, page: int) -> None:
        self.query.page = page
        await self.load_products()

    async def set_search(self, text: str) -> None:
        self.query.search = text
        self.query.page = 1
        await self.load_products()

    async def set_sort(self, sort: SortSpec | None) -> None:
        save_sort(self.preferences, sort)
        self.query.sort = sort
        await self.load_products()

    def add_product_locally(self, product: Product) -> None:
        self.result = ListingResult(
            products=[product, *self.result.products],
            total=self.result.total + 1,
        )

    # -- orchestration -------------------------------------------------

    async def load_products(self) -> None:
        self._issued += 1
        ticket = self._issued
        self.is_loading = True
        self.error = None

        query = self.query.query_text
        params = self.query.fetch_params()
        started = perf_counter()
        try:
            if query:
                data = await self.source.search_products(query, params)
            else:
                data = await self.source.fetch_products(params)
        except ProductSourceError as exc:
            self._fail(ticket, str(exc) or UNKNOWN_ERROR)
            return
        except Exception:
            logger.exception("Unexpected failure while loading products")
            self._fail(ticket, UNKNOWN_ERROR)
            return
        self._apply(ticket, data, query, params, (perf_counter() - started) * 1000)

    def _is_stale(self, ticket: int) -> bool:
        if ticket != self._issued:
            logger.debug("Discarding stale listing response #%s (latest #%s)", ticket, self._issued)
            return True
        return False

    def _apply(self, ticket: int, data: ProductsResponse, query: str, params: FetchParams, took_ms: float) -> None:
        if self._is_stale(ticket):
            return
        self.result = ListingResult(products=list(data.products), total=data.total)
        self.is_loading = False
        logger.info(
            "listing mode=%s q=%r skip=%s limit=%s sort=%s:%s items=%s total=%s took=%.2fms",
            "search" if query else "list",
            query,
            params.skip,
            params.limit,
            params.sort_by,
            params.order,
            len(data.products),
            data.total,
            took_ms,
        )

    def _fail(self, ticket: int, message: str) -> None:
        if self._is_stale(ticket):
            return
        self.error = message
        self.is_loading = False
        logger.warning("listing failed: %s", message)
