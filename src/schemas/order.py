"""Order Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

from src.core.currency import to_major_units
from src.schemas.checkout import CartLineIn


# Order status literal type for validation
OrderStatus = Literal["pending", "paid", "fulfilled", "cancelled", "refunded"]


class OrderLineItemSchema(BaseModel):
    """Schema for a single line item snapshot in an order."""

    model_config = ConfigDict(from_attributes=True)

    product_id: str | None = Field(default=None, description="Catalog item id, when known")
    name: str = Field(description="Item name at purchase time")
    image_src: str | None = Field(default=None, description="Item image at purchase time")
    price_cents: int = Field(ge=0, description="Unit price in minor units")
    quantity: int = Field(ge=1, description="Quantity ordered")
    line_total_cents: int = Field(ge=0, description="price_cents x quantity")


class OrderCreateRequest(BaseModel):
    """Schema for placing an order directly via POST /orders."""

    name: str = Field(..., min_length=1, max_length=100, description="Buyer name")
    email: EmailStr = Field(..., description="Buyer email")
    phone: str | None = Field(default=None, max_length=40, description="Buyer phone")
    address: str = Field(..., min_length=1, max_length=500, description="Shipping address")
    currency: str | None = Field(default=None, min_length=3, max_length=3, description="ISO 4217 code")
    items: list[CartLineIn] = Field(description="Cart lines (id and quantity only)")


class OrderStatusUpdate(BaseModel):
    """Schema for an admin status change."""

    status: OrderStatus = Field(description="New order status")


class OrderResponse(BaseModel):
    """Schema for order API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Order unique identifier")
    user_id: str | None = Field(default=None, description="Ordering user, if signed in")
    name: str = Field(description="Buyer name")
    email: str = Field(description="Buyer email")
    phone: str | None = Field(default=None, description="Buyer phone")
    address: str = Field(default="", description="Shipping address")
    currency: str = Field(description="ISO 4217 code")
    items: list[OrderLineItemSchema] = Field(default_factory=list, description="Line item snapshots")
    total_cents: int = Field(description="Order total in minor units")
    status: OrderStatus = Field(description="Order status")
    stripe_session_id: str | None = Field(default=None, description="Stripe Checkout Session ID")
    payment_intent_id: str | None = Field(default=None, description="Stripe PaymentIntent ID")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider bookkeeping")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")

    @computed_field
    @property
    def total(self) -> float:
        """Order total in major units, derived from total_cents."""
        return float(to_major_units(self.total_cents, self.currency))


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[OrderResponse] = Field(description="List of orders")
    total: int = Field(description="Total matching orders")
    page: int = Field(description="Current page")
    page_size: int = Field(description="Page size")
    pages: int = Field(description="Total pages")
