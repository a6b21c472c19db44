"""Shared fixtures: an in-process stand-in for the remote catalog."""
from __future__ import annotations

import asyncio
import os

os.environ.setdefault("CATALOG_PREFS_BACKEND", "memory")
os.environ.setdefault("CATALOG_SEARCH_DEBOUNCE_MS", "50")

import pytest  # noqa: E402

from catalog.api_client import AuthError, ProductSourceError  # noqa: E402
from catalog.models import FetchParams, LoginResponse, Product, ProductsResponse  # noqa: E402
from catalog.preferences import InMemoryPreferences  # noqa: E402

BRANDS = ["Essence", "Glamour Beauty", "Velvet Touch", "Chic Cosmetics", ""]


def make_products(count: int) -> list[Product]:
    return [
        Product(
            id=i,
            title=f"Phone {i}" if i % 3 == 0 else f"Lipstick {i}",
            category="smartphones" if i % 3 == 0 else "beauty",
            price=float((i * 37) % 101 + 1),
            rating=round(1 + (i % 40) / 10, 1),
            brand=BRANDS[i % len(BRANDS)] or None,
            sku=f"SKU-{i:04d}",
            stock=i % 7,
            thumbnail=f"https://cdn.example/{i}.webp",
        )
        for i in range(1, count + 1)
    ]


class StubSource:
    """Serves pages out of a fixed product list the way the remote catalog does."""

    def __init__(self, products: list[Product] | None = None) -> None:
        self.catalog = products if products is not None else make_products(95)
        self.calls: list[tuple[str, str | None, FetchParams]] = []
        self.delays: list[float] = []
        self.error: Exception | None = None

    async def fetch_products(self, params: FetchParams) -> ProductsResponse:
        return await self._serve("list", None, params)

    async def search_products(self, query: str, params: FetchParams) -> ProductsResponse:
        return await self._serve("search", query, params)

    async def _serve(self, mode: str, query: str | None, params: FetchParams) -> ProductsResponse:
        self.calls.append((mode, query, params))
        delay = self.delays.pop(0) if self.delays else 0
        await asyncio.sleep(delay)
        if self.error is not None:
            raise self.error
        items = self.catalog
        if query:
            items = [p for p in items if query.lower() in (p.title or "").lower()]
        if params.sort_by:
            items = sorted(items, key=lambda p: getattr(p, params.sort_by), reverse=params.order == "desc")
        page = items[params.skip : params.skip + params.limit]
        return ProductsResponse(products=page, total=len(items), skip=params.skip, limit=params.limit)


class StubClient(StubSource):
    USERS = {"emilys": "emilyspass"}

    async def login(self, username: str, password: str) -> LoginResponse:
        if self.USERS.get(username) != password:
            raise AuthError("Invalid credentials")
        return LoginResponse.model_validate(
            {"id": 1, "username": username, "firstName": "Emily", "accessToken": f"tok-{username}"}
        )


@pytest.fixture
def source() -> StubSource:
    return StubSource()


@pytest.fixture
def client_stub() -> StubClient:
    return StubClient()


@pytest.fixture
def prefs() -> InMemoryPreferences:
    return InMemoryPreferences()


@pytest.fixture
def failing_error() -> ProductSourceError:
    return ProductSourceError("Failed to load products")
