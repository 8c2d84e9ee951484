"""Product Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.core.currency import normalize_currency


ProductCategory = Literal["soap", "oil"]


def _clean_prices(prices: dict[str, int] | None) -> dict[str, int] | None:
    if prices is None:
        return None
    cleaned: dict[str, int] = {}
    for code, amount in prices.items():
        key = normalize_currency(code)
        if len(key) != 3 or not key.isalpha():
            raise ValueError(f"Invalid currency code in prices: {code!r}")
        if amount < 0:
            raise ValueError(f"prices.{key} must be non-negative")
        cleaned[key] = amount
    return cleaned


class ProductBase(BaseModel):
    """Base product fields shared across schemas."""

    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    image_src: str | None = Field(default=None, description="Product image URL or path")
    description: str | None = Field(default=None, description="Product description")
    category: ProductCategory = Field(..., description="Product category")
    price_cents: int | None = Field(default=None, ge=0, description="Canonical price in minor units")
    prices: dict[str, int] | None = Field(default=None, description="Per-currency minor-unit prices, e.g. {'JPY': 1200}")
    price: Decimal | None = Field(default=None, ge=0, description="Legacy price in major units")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""

    @field_validator("prices")
    @classmethod
    def normalize_prices(cls, value: dict[str, int] | None) -> dict[str, int] | None:
        return _clean_prices(value) or None

    @model_validator(mode="after")
    def require_price(self) -> "ProductCreate":
        """At least one price representation is required."""
        if self.price_cents is None and self.price is None and not self.prices:
            raise ValueError("Provide price, price_cents, or per-currency prices")
        return self


class ProductUpdate(BaseModel):
    """Schema for a partial product update.

    Only fields sent by the client are written; sending null clears a price column.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    image_src: str | None = None
    description: str | None = None
    category: ProductCategory | None = None
    price_cents: int | None = Field(default=None, ge=0)
    prices: dict[str, int] | None = None
    price: Decimal | None = Field(default=None, ge=0)

    @field_validator("prices")
    @classmethod
    def normalize_prices(cls, value: dict[str, int] | None) -> dict[str, int] | None:
        return _clean_prices(value)


class ProductResponse(ProductBase):
    """Schema for product API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Product unique identifier")
    category: str = Field(description="Product category")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")


class ProductListResponse(BaseModel):
    """Schema for paginated product list response."""

    model_config = ConfigDict(from_attributes=True)

    items: list[ProductResponse] = Field(description="List of products")
    total: int = Field(description="Total matching products")
    page: int = Field(description="Current page")
    page_size: int = Field(description="Page size")
    pages: int = Field(description="Total pages")
