"""Pydantic models for remote payloads and listing state."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SortOrder = Literal["asc", "desc"]


class Product(BaseModel):
    """Product payload as returned by the remote catalog.

    The list call selects a subset of fields, so everything but ``id`` is
    optional.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    title: str | None = None
    description: str | None = None
    category: str | None = None
    price: float | None = None
    rating: float | None = None
    brand: str | None = None
    sku: str | None = None
    stock: int | None = None
    thumbnail: str | None = None
    images: list[str] = Field(default_factory=list)


class ProductsResponse(BaseModel):
    products: list[Product] = Field(default_factory=list)
    total: int = Field(0, ge=0)
    skip: int = 0
    limit: int = 0


class SortSpec(BaseModel):
    field: str = Field(..., min_length=1)
    order: SortOrder


class FetchParams(BaseModel):
    limit: int
    skip: int
    sort_by: str | None = None
    order: SortOrder | None = None


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = None
    username: str | None = None
    email: str | None = None
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")
    access_token: str = Field(..., alias="accessToken")
    refresh_token: str | None = Field(None, alias="refreshToken")
