"""Unit price resolution for catalog items."""

from decimal import ROUND_HALF_UP, Decimal

from src.api.middleware.error_handler import NoPriceAvailable
from src.core.currency import exponent, normalize_currency
from src.models.money import CanonicalMinorUnits, LegacyMajorUnits, Money, PerCurrencyTable
from src.models.product import CatalogItem


def major_to_minor(amount: Decimal, currency: str) -> int:
    """Convert a major-unit decimal to integer minor units.

    Rounds half away from zero (Decimal's ROUND_HALF_UP), so 0.125 USD -> 13.
    """
    scaled = Decimal(amount).scaleb(exponent(currency))
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def resolve_unit_amount(item: CatalogItem, currency: str) -> Money:
    """Pick the stored price of `item` that applies to `currency`.

    First match wins: an explicit per-currency amount, then the canonical
    minor-unit amount taken as-is, then the legacy major-unit price scaled by
    the currency exponent. Values are never converted between currencies.

    Raises:
        NoPriceAvailable: If none of the representations applies.
    """
    code = normalize_currency(currency)
    for rep in item.pricing:
        if isinstance(rep, PerCurrencyTable):
            amount = rep.amount_for(code)
            if amount is not None:
                return Money(amount, code)
        elif isinstance(rep, CanonicalMinorUnits):
            return Money(rep.amount, code)
        elif isinstance(rep, LegacyMajorUnits):
            return Money(major_to_minor(rep.amount, code), code)
    raise NoPriceAvailable(item.id, code)
