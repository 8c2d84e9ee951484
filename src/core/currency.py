"""ISO 4217 minor-unit exponents."""

from decimal import Decimal

DEFAULT_EXPONENT = 2

# Codes whose exponent differs from the default, plus the common 2-digit ones
# we sell in so the table documents what the storefront expects.
CURRENCY_EXPONENTS: dict[str, int] = {
    # zero-decimal
    "BIF": 0,
    "CLP": 0,
    "DJF": 0,
    "GNF": 0,
    "ISK": 0,
    "JPY": 0,
    "KMF": 0,
    "KRW": 0,
    "PYG": 0,
    "RWF": 0,
    "UGX": 0,
    "VND": 0,
    "VUV": 0,
    "XAF": 0,
    "XOF": 0,
    "XPF": 0,
    # two-decimal
    "AUD": 2,
    "CAD": 2,
    "CHF": 2,
    "CNY": 2,
    "EUR": 2,
    "GBP": 2,
    "HKD": 2,
    "SGD": 2,
    "USD": 2,
    # three-decimal
    "BHD": 3,
    "IQD": 3,
    "JOD": 3,
    "KWD": 3,
    "LYD": 3,
    "OMR": 3,
    "TND": 3,
}


def normalize_currency(code: str | None) -> str:
    """Return the upper-cased, stripped currency code ('' for None)."""
    return (code or "").strip().upper()


def exponent(code: str | None) -> int:
    """Get the power-of-ten divisor between major and minor units.

    Unknown codes fall back to DEFAULT_EXPONENT instead of raising, since
    codes arriving from provider payloads are not under our control.
    """
    return CURRENCY_EXPONENTS.get(normalize_currency(code), DEFAULT_EXPONENT)


def to_major_units(amount_minor: int, currency: str | None) -> Decimal:
    """Convert an integer minor-unit amount to a Decimal major-unit value.

    Only used for presentation; stored amounts stay in minor units.
    """
    return Decimal(amount_minor).scaleb(-exponent(currency))
