"""Form validation for the login and add-product forms.

Each failed field yields one message meant to be shown next to the input.
Nothing here talks to the network.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

FormT = TypeVar("FormT", bound=BaseModel)


def _require_text(value: Any, message: str) -> str:
    if value is None or not str(value).strip():
        raise PydanticCustomError("required", message)
    return str(value)


class LoginForm(BaseModel):
    model_config = ConfigDict(validate_default=True)

    username: str = ""
    password: str = ""
    remember: bool = False

    @field_validator("username", mode="before")
    @classmethod
    def _username(cls, value: Any) -> str:
        return _require_text(value, "Enter login").strip()

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, value: Any) -> str:
        if value is None or value == "":
            raise PydanticCustomError("required", "Enter password")
        return str(value)


class AddProductForm(BaseModel):
    model_config = ConfigDict(validate_default=True)

    title: str = ""
    price: float | None = None
    brand: str = ""
    sku: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        return _require_text(value, "Enter title").strip()

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, value: Any) -> float:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise PydanticCustomError("required", "Enter price")
        try:
            price = float(value)
        except (TypeError, ValueError):
            raise PydanticCustomError("invalid_price", "Enter a valid price") from None
        if not price > 0:
            raise PydanticCustomError("invalid_price", "Enter a valid price")
        return price

    @field_validator("brand", mode="before")
    @classmethod
    def _brand(cls, value: Any) -> str:
        return _require_text(value, "Enter vendor").strip()

    @field_validator("sku", mode="before")
    @classmethod
    def _sku(cls, value: Any) -> str:
        return _require_text(value, "Enter SKU").strip()


def validate_form(model: Type[FormT], data: Mapping[str, Any]) -> Tuple[FormT | None, Dict[str, str]]:
    """Validate ``data`` against ``model``; return the form or per-field messages."""
    try:
        return model.model_validate(dict(data)), {}
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            name = str(error["loc"][0]) if error["loc"] else "__all__"
            errors.setdefault(name, error["msg"])
        return None, errors
