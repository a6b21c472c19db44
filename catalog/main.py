"""FastAPI page shell around the catalog listing and login stores."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field

from .api_client import DummyJsonClient
from .auth_store import AuthStore
from .config import settings
from .debounce import SearchInput
from .forms import AddProductForm, LoginForm, validate_form
from .listing_store import ListingStore
from .models import Product, SortOrder, SortSpec
from .preferences import PreferenceBackend, get_preferences
from .table import build_table

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Replace uvicorn's default handlers so store and client logs share one format.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "urllib3"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)


class PageRequest(BaseModel):
    page: int = Field(..., ge=1)


class SearchRequest(BaseModel):
    text: str = ""


class SortRequest(BaseModel):
    field: str | None = None
    order: SortOrder | None = None


def get_auth(request: Request) -> AuthStore:
    return request.app.state.auth


def require_listing(request: Request) -> ListingStore:
    if not request.app.state.auth.is_authenticated:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return request.app.state.listing


def get_search_input(request: Request, store: ListingStore = Depends(require_listing)) -> SearchInput:
    return request.app.state.search_input


def listing_payload(store: ListingStore) -> Dict[str, Any]:
    return {"state": store.snapshot(), "table": build_table(store)}


def create_app(
    client: DummyJsonClient | None = None,
    preferences: PreferenceBackend | None = None,
    session_storage: PreferenceBackend | None = None,
) -> FastAPI:
    client = client or DummyJsonClient()
    preferences = preferences if preferences is not None else get_preferences()

    app = FastAPI(title="Product Catalog Admin")
    app.state.auth = AuthStore(client, preferences, session_storage)
    app.state.listing = ListingStore(client, preferences)
    app.state.search_input = SearchInput(app.state.listing.set_search, settings.search_debounce_ms)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        app.state.search_input.close()

    @app.get("/health")
    async def health() -> dict:
        return {
            "api_url": settings.api_url,
            "page_size": settings.page_size,
            "prefs_backend": type(preferences).__name__,
            "authenticated": app.state.auth.is_authenticated,
        }

    @app.get("/", include_in_schema=False)
    async def root(auth: AuthStore = Depends(get_auth)) -> RedirectResponse:
        target = "/api/products" if auth.is_authenticated else "/api/auth/me"
        return RedirectResponse(target)

    @app.get("/api/auth/me")
    async def me(auth: AuthStore = Depends(get_auth)) -> dict:
        user = auth.user.model_dump(by_alias=True, exclude={"access_token", "refresh_token"}) if auth.user else None
        return {"authenticated": auth.is_authenticated, "user": user, "error": auth.error}

    @app.post("/api/auth/login")
    async def login(payload: Dict[str, Any] = Body(...), auth: AuthStore = Depends(get_auth)) -> Any:
        form, errors = validate_form(LoginForm, payload)
        if form is None:
            return JSONResponse(status_code=422, content={"detail": "Invalid form", "fields": errors})
        auth.clear_error()
        await auth.login(form.username, form.password, form.remember)
        if not auth.is_authenticated or auth.error:
            raise HTTPException(status_code=401, detail=auth.error)
        return {"token": auth.token, "username": auth.user.username if auth.user else form.username}

    @app.post("/api/auth/logout")
    async def logout(auth: AuthStore = Depends(get_auth)) -> dict:
        auth.logout()
        return {"authenticated": False}

    @app.get("/api/products")
    async def products(store: ListingStore = Depends(require_listing)) -> dict:
        if not store.has_loaded:
            await store.load_products()
        return listing_payload(store)

    @app.post("/api/products/refresh")
    async def refresh(store: ListingStore = Depends(require_listing)) -> dict:
        await store.load_products()
        return listing_payload(store)

    @app.put("/api/products/page")
    async def set_page(body: PageRequest, store: ListingStore = Depends(require_listing)) -> dict:
        await store.set_page(body.page)
        return listing_payload(store)

    @app.put("/api/products/search")
    async def set_search(body: SearchRequest, store: ListingStore = Depends(require_listing)) -> dict:
        await store.set_search(body.text)
        return listing_payload(store)

    @app.put("/api/products/search-input", status_code=202)
    async def search_input(body: SearchRequest, search: SearchInput = Depends(get_search_input)) -> dict:
        search.change(body.text)
        return {"value": search.value, "pending": search.pending}

    @app.put("/api/products/sort")
    async def set_sort(body: SortRequest, store: ListingStore = Depends(require_listing)) -> dict:
        if body.field and body.order is None:
            raise HTTPException(status_code=422, detail="Sort order is required")
        sort = SortSpec(field=body.field, order=body.order) if body.field else None
        await store.set_sort(sort)
        return listing_payload(store)

    @app.post("/api/products", status_code=201)
    async def add_product(payload: Dict[str, Any] = Body(...), store: ListingStore = Depends(require_listing)) -> Any:
        form, errors = validate_form(AddProductForm, payload)
        if form is None:
            return JSONResponse(status_code=422, content={"detail": "Invalid form", "fields": errors})
        product = Product(
            id=max((p.id for p in store.products), default=0) + 1,
            title=form.title,
            price=form.price,
            brand=form.brand,
            sku=form.sku,
        )
        store.add_product_locally(product)
        logger.info("Added product %r locally (not persisted)", product.title)
        return {"message": "Product added", "product": product.model_dump(), **listing_payload(store)}

    return app


app = create_app()
