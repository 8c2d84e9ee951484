"""Checkout domain types: cart lines, resolved line items and sessions."""

from dataclasses import dataclass, field

from src.models.money import Money
from src.models.order import OrderLineItem


@dataclass(frozen=True)
class CartLine:
    """A requested item and quantity. Carries no price by construction."""

    item_id: str
    quantity: int = 1

    def __post_init__(self) -> None:
        if not self.item_id:
            raise ValueError("item_id is required")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError(f"quantity must be a positive integer, got {self.quantity!r}")


@dataclass(frozen=True)
class BuyerInfo:
    """Buyer contact details carried as session metadata."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None

    def as_metadata(self) -> dict[str, str]:
        """Non-empty contact fields as provider metadata (string values only)."""
        return {
            key: value
            for key, value in (
                ("name", self.name),
                ("phone", self.phone),
                ("address", self.address),
            )
            if value
        }


@dataclass(frozen=True)
class LineItem:
    """A cart line priced from current catalog data."""

    item_id: str | None
    name: str
    image_src: str | None
    unit_amount: Money
    quantity: int

    @property
    def total(self) -> Money:
        return self.unit_amount.times(self.quantity)

    def to_record(self) -> OrderLineItem:
        """Snapshot for the order items JSONB column."""
        return OrderLineItem(
            product_id=self.item_id,
            name=self.name,
            image_src=self.image_src,
            price_cents=self.unit_amount.amount,
            quantity=self.quantity,
            line_total_cents=self.total.amount,
        )


def sum_line_totals(items: list[LineItem], currency: str) -> Money:
    """Exact integer sum of line totals."""
    total = Money.zero(currency)
    for item in items:
        total = total + item.total
    return total


@dataclass(frozen=True)
class CheckoutSession:
    """A hosted checkout session minted by the payment provider."""

    session_id: str
    redirect_url: str
    currency: str
    line_items: list[LineItem]
    buyer: BuyerInfo
    success_url: str
    cancel_url: str
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> Money:
        return sum_line_totals(self.line_items, self.currency)
