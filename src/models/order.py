"""Order model type definitions for database operations."""

from datetime import datetime
from typing import Any, Literal, TypedDict


# Order status enum values matching database enum
OrderStatus = Literal["pending", "paid", "fulfilled", "cancelled", "refunded"]

ORDER_STATUSES: tuple[str, ...] = ("pending", "paid", "fulfilled", "cancelled", "refunded")

# Allowed admin transitions. Webhook reconciliation only ever writes
# "pending" or "paid" and goes through the upsert, not this table.
ORDER_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"paid", "cancelled"}),
    "paid": frozenset({"fulfilled", "cancelled", "refunded"}),
    "fulfilled": frozenset(),
    "cancelled": frozenset(),
    "refunded": frozenset(),
}


class OrderLineItem(TypedDict):
    """Structure for a single line item in an order.

    Stored as part of the items JSONB array. Amounts are minor units.
    """

    product_id: str | None
    name: str
    image_src: str | None
    price_cents: int
    quantity: int
    line_total_cents: int


class Order(TypedDict):
    """Order table row representation.

    `stripe_session_id` carries a unique (sparse) index and is the
    reconciliation key for hosted checkouts.
    """

    id: str
    user_id: str | None
    name: str
    email: str
    phone: str | None
    address: str
    currency: str
    items: list[OrderLineItem]
    total_cents: int
    status: OrderStatus
    stripe_session_id: str | None
    payment_intent_id: str | None
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class OrderCreate(TypedDict, total=False):
    """Data required to create a new order."""

    user_id: str | None
    name: str
    email: str
    phone: str | None
    address: str
    currency: str
    items: list[OrderLineItem]
    total_cents: int
    status: OrderStatus
    stripe_session_id: str | None
    metadata: dict[str, Any]


class OrderUpsert(TypedDict, total=False):
    """Fields written by webhook reconciliation (keyed by stripe_session_id)."""

    user_id: str | None
    name: str
    email: str
    phone: str | None
    address: str
    currency: str
    items: list[OrderLineItem]
    total_cents: int
    status: OrderStatus
    payment_intent_id: str | None
    metadata: dict[str, Any]


def can_transition(current: str, new: str) -> bool:
    """Check whether an admin may move an order from `current` to `new`."""
    return new in ORDER_STATUS_TRANSITIONS.get(current, frozenset())
