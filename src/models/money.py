"""Money value object and the catalog pricing representations."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal, Union

from src.core.currency import normalize_currency, to_major_units


def _check_minor_amount(value: object, what: str) -> int:
    # JSONB numbers can come back as 1200.0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    # bool is an int subclass; a price of True is a bug, not 1 yen.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer number of minor units, got {value!r}")
    if value < 0:
        raise ValueError(f"{what} must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class Money:
    """An integer amount of minor units in an ISO 4217 currency."""

    amount: int
    currency: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _check_minor_amount(self.amount, "Money.amount"))
        code = normalize_currency(self.currency)
        if len(code) != 3:
            raise ValueError(f"Currency code must have 3 letters, got {self.currency!r}")
        object.__setattr__(self, "currency", code)

    def times(self, quantity: int) -> "Money":
        """Multiply by a positive quantity."""
        if quantity < 1:
            raise ValueError(f"Quantity must be positive, got {quantity}")
        return Money(self.amount * quantity, self.currency)

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        if other.currency != self.currency:
            raise ValueError(f"Cannot add {other.currency} to {self.currency}")
        return Money(self.amount + other.amount, self.currency)

    @property
    def major(self) -> Decimal:
        """Major-unit value for display; never stored."""
        return to_major_units(self.amount, self.currency)

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(0, currency)


@dataclass(frozen=True)
class PerCurrencyTable:
    """Explicit minor-unit amounts keyed by currency code, e.g. {"JPY": 1200, "USD": 799}."""

    amounts: dict[str, int]
    kind: Literal["per_currency"] = field(default="per_currency", init=False)

    def __post_init__(self) -> None:
        cleaned = {}
        for code, value in self.amounts.items():
            cleaned[normalize_currency(code)] = _check_minor_amount(value, f"prices.{code}")
        object.__setattr__(self, "amounts", cleaned)

    def amount_for(self, currency: str) -> int | None:
        return self.amounts.get(normalize_currency(currency))


@dataclass(frozen=True)
class CanonicalMinorUnits:
    """A single minor-unit amount with no currency attached (legacy data, used as-is)."""

    amount: int
    kind: Literal["canonical_minor"] = field(default="canonical_minor", init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _check_minor_amount(self.amount, "price_cents"))


@dataclass(frozen=True)
class LegacyMajorUnits:
    """A decimal price in major units from old product records."""

    amount: Decimal
    kind: Literal["legacy_major"] = field(default="legacy_major", init=False)

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool):
            raise ValueError("price must be a number")
        # str() first so 12.3 becomes Decimal("12.3"), not its binary expansion
        value = self.amount if isinstance(self.amount, Decimal) else Decimal(str(self.amount))
        if not value.is_finite() or value < 0:
            raise ValueError(f"price must be a non-negative number, got {self.amount!r}")
        object.__setattr__(self, "amount", value)


PriceRepresentation = Union[PerCurrencyTable, CanonicalMinorUnits, LegacyMajorUnits]

# Lower rank wins when an item carries several representations.
PRICE_PRECEDENCE: dict[str, int] = {
    "per_currency": 0,
    "canonical_minor": 1,
    "legacy_major": 2,
}
