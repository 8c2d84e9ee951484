"""Checkout Pydantic schemas for API request/response models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.models.checkout import BuyerInfo, CartLine, CheckoutSession, LineItem


def _coerce_quantity(value: Any) -> int:
    """Quantities arrive as ints or numeric strings; anything unusable becomes 1."""
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return value if value >= 1 else 1
    if isinstance(value, float) and value.is_integer():
        return int(value) if value >= 1 else 1
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit() and int(text) >= 1:
            return int(text)
    return 1


class CartLineIn(BaseModel):
    """A requested catalog item and quantity.

    Extra fields are rejected; a cart line can never carry a price.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=128, description="Catalog item id")
    quantity: int = Field(default=1, description="Quantity; non-numeric or non-positive values become 1")

    @field_validator("quantity", mode="before")
    @classmethod
    def normalize_quantity(cls, value: Any) -> int:
        return _coerce_quantity(value)

    def to_cart_line(self) -> CartLine:
        return CartLine(item_id=self.id.strip(), quantity=self.quantity)


class BuyerIn(BaseModel):
    """Buyer contact details."""

    name: str | None = Field(default=None, max_length=100, description="Buyer name")
    email: EmailStr | None = Field(default=None, description="Buyer email, pre-filled on the payment page")
    phone: str | None = Field(default=None, max_length=40, description="Buyer phone")
    address: str | None = Field(default=None, max_length=500, description="Shipping address")

    def to_buyer(self) -> BuyerInfo:
        return BuyerInfo(
            name=(self.name or "").strip() or None,
            email=str(self.email).lower() if self.email else None,
            phone=(self.phone or "").strip() or None,
            address=(self.address or "").strip() or None,
        )


class CheckoutSessionCreate(BaseModel):
    """Schema for creating a checkout session via POST /checkout/session."""

    items: list[CartLineIn] = Field(description="Cart lines (id and quantity only)")
    currency: str | None = Field(default=None, min_length=3, max_length=3, description="ISO 4217 code")
    customer: BuyerIn | None = Field(default=None, description="Buyer contact details")


class LineItemResponse(BaseModel):
    """A priced line as sent to the payment provider."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = Field(description="Catalog item id")
    name: str = Field(description="Item name")
    image_src: str | None = Field(default=None, description="Item image")
    unit_amount: int = Field(description="Unit price in minor units")
    quantity: int = Field(description="Quantity")
    line_total: int = Field(description="unit_amount x quantity, minor units")

    @classmethod
    def from_line_item(cls, item: LineItem) -> "LineItemResponse":
        return cls(
            id=item.item_id,
            name=item.name,
            image_src=item.image_src,
            unit_amount=item.unit_amount.amount,
            quantity=item.quantity,
            line_total=item.total.amount,
        )


class CheckoutSessionResponse(BaseModel):
    """Schema for checkout session creation response."""

    model_config = ConfigDict(from_attributes=True)

    url: str = Field(description="Stripe Checkout URL to redirect to")
    session_id: str = Field(description="Stripe Checkout Session ID")
    currency: str = Field(description="ISO 4217 code the session was priced in")
    line_items: list[LineItemResponse] = Field(description="Priced line items")
    total_cents: int = Field(description="Exact sum of line totals in minor units")

    @classmethod
    def from_session(cls, session: CheckoutSession) -> "CheckoutSessionResponse":
        return cls(
            url=session.redirect_url,
            session_id=session.session_id,
            currency=session.currency,
            line_items=[LineItemResponse.from_line_item(item) for item in session.line_items],
            total_cents=session.total.amount,
        )
