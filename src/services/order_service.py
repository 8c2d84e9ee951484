"""Order placement, status transitions and access rules."""

import logging
from typing import Any

from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.core.config import Settings, get_settings
from src.models.checkout import BuyerInfo, CartLine, sum_line_totals
from src.models.order import ORDER_STATUSES, Order, OrderCreate, OrderStatus, can_transition
from src.schemas.auth import UserContext
from src.services.catalog_service import CatalogService
from src.services.checkout_service import price_cart, resolve_currency
from src.services.order_store import OrderStore

logger = logging.getLogger(__name__)


class OrderService:
    """Service for orders placed directly (without hosted checkout) and admin upkeep."""

    def __init__(
        self,
        store: OrderStore,
        catalog: CatalogService,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.settings = settings or get_settings()

    async def create_order(
        self,
        cart_lines: list[CartLine],
        buyer: BuyerInfo,
        currency: str | None = None,
        user_id: str | None = None,
    ) -> Order:
        """Place a pending order priced from the catalog.

        Args:
            cart_lines: Requested items and quantities.
            buyer: Buyer contact details; name, email and address are required.
            currency: ISO code; defaults to the configured default currency.
            user_id: Optional authenticated user placing the order.

        Returns:
            Order: The created order.

        Raises:
            ValidationError: Missing buyer fields, empty cart or unsupported currency.
            UnknownItem: A cart line references a missing item.
            NoPriceAvailable: An item has no usable price.
        """
        missing = [name for name in ("name", "email", "address") if not getattr(buyer, name)]
        if missing:
            raise ValidationError(
                "Missing required customer fields",
                details=[{"loc": ["customer", name], "msg": "Field required", "type": "missing"} for name in missing],
            )

        code = resolve_currency(currency, self.settings)
        line_items = await price_cart(self.catalog, cart_lines, code)

        order = await self.store.insert(
            OrderCreate(
                user_id=user_id,
                name=buyer.name,
                email=buyer.email.lower(),
                phone=buyer.phone,
                address=buyer.address,
                currency=code,
                items=[item.to_record() for item in line_items],
                total_cents=sum_line_totals(line_items, code).amount,
                status="pending",
                metadata={},
            )
        )
        logger.info("Created order %s (%d %s)", order["id"], order["total_cents"], code)
        return order

    async def get_order(self, order_id: str) -> Order:
        """Get an order or raise NotFoundError."""
        order = await self.store.get(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def list_orders_for(
        self,
        user: UserContext,
        status: OrderStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> dict[str, Any]:
        """Admins see every order; everyone else sees their own, paginated the same way."""
        if user.is_admin:
            return await self.store.list_orders(status=status, page=page, page_size=page_size)
        return await self.store.list_orders(status=status, page=page, page_size=page_size, user_id=str(user.user_id))

    async def transition_status(self, order_id: str, new_status: str) -> Order:
        """Move an order along the status state machine.

        Raises:
            NotFoundError: If the order does not exist.
            ValidationError: If the status is unknown or the move is not allowed.
        """
        if new_status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {new_status}")

        order = await self.get_order(order_id)
        current = order["status"]
        if current == new_status:
            return order
        if not can_transition(current, new_status):
            raise ValidationError(
                f"Cannot change order status from {current} to {new_status}",
                details=[{"loc": ["status"], "msg": f"Illegal transition {current} -> {new_status}", "type": "invalid_transition"}],
            )

        updated = await self.store.update_status(order_id, new_status)
        if not updated:
            raise NotFoundError(f"Order {order_id} not found")
        logger.info("Order %s status %s -> %s", order_id, current, new_status)
        return updated


def can_access_order(order: Order, user: UserContext | None) -> bool:
    """Owners and admins may read an order."""
    if user is None:
        return False
    if user.is_admin:
        return True
    return order.get("user_id") is not None and order.get("user_id") == str(user.user_id)
