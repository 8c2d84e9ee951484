"""Product model type definitions for database operations."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, TypedDict

from src.models.money import (
    PRICE_PRECEDENCE,
    CanonicalMinorUnits,
    LegacyMajorUnits,
    PerCurrencyTable,
    PriceRepresentation,
)


class ProductCategory(str, Enum):
    """Product category values."""

    SOAP = "soap"
    OIL = "oil"


class Product(TypedDict):
    """Product table row representation.

    `prices` is a JSONB map of ISO code to minor units; `price_cents` is the
    canonical minor-unit amount; `price` is the legacy major-unit column.
    """

    id: str
    name: str
    image_src: str | None
    description: str | None
    category: str
    price_cents: int | None
    prices: dict[str, int] | None
    price: float | None
    created_at: datetime
    updated_at: datetime


class ProductCreate(TypedDict, total=False):
    """Data required to create a new product."""

    name: str
    image_src: str | None
    description: str | None
    category: str
    price_cents: int | None
    prices: dict[str, int] | None
    price: float | None


class ProductUpdate(TypedDict, total=False):
    """Data that can be updated on a product."""

    name: str
    image_src: str | None
    description: str | None
    category: str
    price_cents: int | None
    prices: dict[str, int] | None
    price: float | None


@dataclass(frozen=True)
class CatalogItem:
    """Read-only view of a product as seen by checkout.

    `pricing` holds every representation present on the record, ordered by
    resolution precedence. It may be empty; pricing then fails for every currency.
    """

    id: str
    name: str
    image_src: str | None
    pricing: tuple[PriceRepresentation, ...]

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.pricing, key=lambda rep: PRICE_PRECEDENCE[rep.kind]))
        object.__setattr__(self, "pricing", ordered)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CatalogItem":
        """Build a catalog item from a `products` row.

        Raises:
            ValueError: If a stored amount is negative or not a whole number of minor units.
        """
        pricing: list[PriceRepresentation] = []
        if row.get("prices"):
            pricing.append(PerCurrencyTable(dict(row["prices"])))
        if row.get("price_cents") is not None:
            pricing.append(CanonicalMinorUnits(row["price_cents"]))
        if row.get("price") is not None:
            pricing.append(LegacyMajorUnits(row["price"]))
        return cls(
            id=str(row["id"]),
            name=row["name"],
            image_src=row.get("image_src"),
            pricing=tuple(pricing),
        )
