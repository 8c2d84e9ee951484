"""Persistence for orders in the Supabase `orders` table."""

import logging
import math
from datetime import datetime, timezone
from typing import Any

from supabase import Client

from src.models.order import Order, OrderCreate, OrderStatus, OrderUpsert

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
SESSION_KEY = "stripe_session_id"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class OrderStore:
    """Order persistence.

    `stripe_session_id` has a unique partial index in the database, which is
    what makes upsert_by_session_id safe under concurrent webhook deliveries.
    """

    def __init__(self, client: Client) -> None:
        """Initialize order store.

        Args:
            client: Open Supabase client from the database handle.
        """
        self.client = client

    async def find_by_session_id(self, session_id: str) -> Order | None:
        """Get the order created from a Stripe Checkout Session, if any."""
        response = (
            self.client.table(ORDERS_TABLE)
            .select("*")
            .eq(SESSION_KEY, session_id)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def upsert_by_session_id(self, session_id: str, fields: OrderUpsert) -> Order:
        """Insert or overwrite the order for `session_id` in one statement.

        Runs as INSERT ... ON CONFLICT (stripe_session_id) DO UPDATE, so a
        redelivered event overwrites the row instead of creating a second one.
        `created_at` is left to the column default and survives updates.

        Raises:
            Exception: If the database returns no row.
        """
        row = {**fields, SESSION_KEY: session_id, "updated_at": _now()}
        response = (
            self.client.table(ORDERS_TABLE)
            .upsert(row, on_conflict=SESSION_KEY)
            .execute()
        )
        if not response.data:
            raise Exception(f"Upsert returned no row for session {session_id}")
        return response.data[0]

    async def insert(self, order: OrderCreate) -> Order:
        """Insert a new order.

        Raises:
            Exception: If the database returns no row.
        """
        response = self.client.table(ORDERS_TABLE).insert(dict(order)).execute()
        if not response.data:
            raise Exception("Failed to create order")
        return response.data[0]

    async def get(self, order_id: str) -> Order | None:
        """Get an order by ID."""
        response = (
            self.client.table(ORDERS_TABLE)
            .select("*")
            .eq("id", order_id)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        page: int = 1,
        page_size: int = 20,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Paginated listing, newest first.

        Without `user_id` this spans every order (admin view).
        """
        page = max(1, page)
        page_size = min(100, max(1, page_size))
        start = (page - 1) * page_size

        query = self.client.table(ORDERS_TABLE).select("*", count="exact")
        if user_id:
            query = query.eq("user_id", user_id)
        if status:
            query = query.eq("status", status)
        response = query.order("created_at", desc=True).range(start, start + page_size - 1).execute()

        total = response.count or 0
        return {
            "items": response.data or [],
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": math.ceil(total / page_size) or 1,
        }

    async def update_status(self, order_id: str, status: OrderStatus) -> Order | None:
        """Set the status of an order.

        Returns:
            Order or None if not found.
        """
        response = (
            self.client.table(ORDERS_TABLE)
            .update({"status": status, "updated_at": _now()})
            .eq("id", order_id)
            .execute()
        )
        return response.data[0] if response.data else None
