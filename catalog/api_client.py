"""HTTP client for the remote product catalog (DummyJSON).

Calls go through a blocking ``requests`` session. Async callers should use the
``fetch_products``/``search_products``/``login`` coroutines, which hand the
blocking work to ``asyncio.to_thread``.
"""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Protocol

import requests
from pydantic import ValidationError

from .config import settings
from .models import FetchParams, LoginResponse, ProductsResponse

logger = logging.getLogger(__name__)

SELECT_FIELDS = "id,title,category,price,rating,brand,sku,stock,thumbnail"
LIST_ERROR = "Failed to load products"
SEARCH_ERROR = "Failed to search products"
AUTH_ERROR = "Authorization failed"


class ProductSourceError(Exception):
    """Raised when the remote catalog cannot serve a listing."""


class AuthError(Exception):
    """Raised when the remote catalog rejects a login."""


class ProductSource(Protocol):
    async def fetch_products(self, params: FetchParams) -> ProductsResponse: ...

    async def search_products(self, query: str, params: FetchParams) -> ProductsResponse: ...


def build_query(params: FetchParams, query: str | None = None) -> Dict[str, str]:
    """Translate fetch parameters into the catalog's query string."""
    payload: Dict[str, str] = {}
    if query is not None:
        payload["q"] = query
    payload["limit"] = str(params.limit)
    payload["skip"] = str(params.skip)
    payload["select"] = SELECT_FIELDS
    if params.sort_by:
        payload["sortBy"] = params.sort_by
        payload["order"] = params.order or "asc"
    return payload


class DummyJsonClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.session = session or requests.Session()

    def _get_listing(self, path: str, query: Dict[str, str], error_message: str) -> ProductsResponse:
        url = f"{self.base_url}{path}"
        started = perf_counter()
        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("GET %s failed: %s", url, exc)
            raise ProductSourceError(error_message) from exc
        if not response.ok:
            logger.warning("GET %s returned HTTP %s", url, response.status_code)
            raise ProductSourceError(error_message)
        try:
            result = ProductsResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("GET %s returned an unreadable body: %s", url, exc)
            raise ProductSourceError(error_message) from exc
        logger.debug(
            "GET %s params=%s items=%s total=%s took=%.2fms",
            url,
            query,
            len(result.products),
            result.total,
            (perf_counter() - started) * 1000,
        )
        return result

    def list_products(self, params: FetchParams) -> ProductsResponse:
        return self._get_listing("/products", build_query(params), LIST_ERROR)

    def find_products(self, query: str, params: FetchParams) -> ProductsResponse:
        return self._get_listing("/products/search", build_query(params, query), SEARCH_ERROR)

    def authenticate(self, username: str, password: str) -> LoginResponse:
        url = f"{self.base_url}/auth/login"
        try:
            response = self.session.post(
                url,
                json={"username": username, "password": password},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("POST %s failed: %s", url, exc)
            raise AuthError(AUTH_ERROR) from exc
        body = _json_or_empty(response)
        if not response.ok:
            message = body.get("message") if isinstance(body, dict) else None
            logger.info("Login rejected for %r: HTTP %s", username, response.status_code)
            raise AuthError(message or AUTH_ERROR)
        try:
            return LoginResponse.model_validate(body)
        except ValidationError as exc:
            raise AuthError(AUTH_ERROR) from exc

    async def fetch_products(self, params: FetchParams) -> ProductsResponse:
        return await asyncio.to_thread(self.list_products, params)

    async def search_products(self, query: str, params: FetchParams) -> ProductsResponse:
        return await asyncio.to_thread(self.find_products, query, params)

    async def login(self, username: str, password: str) -> LoginResponse:
        return await asyncio.to_thread(self.authenticate, username, password)


def _json_or_empty(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}
