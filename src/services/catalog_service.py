"""Product catalog service: checkout lookups and admin CRUD."""

import logging
import math
from typing import Any

from supabase import Client

from src.api.middleware.error_handler import ValidationError
from src.models.product import CatalogItem, Product, ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = "products"

ALLOWED_SORT_FIELDS = frozenset({"created_at", "price_cents", "name"})
DEFAULT_SORT = ("created_at", True)
MAX_PAGE_SIZE = 50
PRICE_FIELDS = frozenset({"price_cents", "prices", "price"})


def parse_sort(sort: str | None) -> tuple[str, bool]:
    """Turn `name`, `-created_at` etc. into (field, descending).

    Anything outside the allow-list falls back to newest first.
    """
    value = (sort or "").strip()
    if not value:
        return DEFAULT_SORT
    descending = value.startswith("-")
    field = value[1:] if descending else value
    if field not in ALLOWED_SORT_FIELDS:
        return DEFAULT_SORT
    return field, descending


class CatalogService:
    """Service for reading and maintaining the product catalog."""

    def __init__(self, client: Client) -> None:
        """Initialize catalog service.

        Args:
            client: Open Supabase client from the database handle.
        """
        self.client = client

    async def find_by_ids(self, ids: list[str]) -> list[CatalogItem]:
        """Look up catalog items by id.

        Returns only the items found; callers compare against what they asked for.
        A row with malformed pricing comes back with no prices, so checkout
        reports it as unpriced instead of failing the whole request.
        """
        if not ids:
            return []
        response = (
            self.client.table(PRODUCTS_TABLE)
            .select("id, name, image_src, price_cents, prices, price")
            .in_("id", list(ids))
            .execute()
        )
        return [self._to_catalog_item(row) for row in response.data or []]

    @staticmethod
    def _to_catalog_item(row: dict[str, Any]) -> CatalogItem:
        try:
            return CatalogItem.from_row(row)
        except ValueError as e:
            logger.error("Product %s has malformed pricing: %s", row.get("id"), e)
            return CatalogItem(id=str(row["id"]), name=row["name"], image_src=row.get("image_src"), pricing=())

    async def list_products(
        self,
        category: str | None = None,
        page: int = 1,
        page_size: int = 12,
        sort: str | None = None,
    ) -> dict[str, Any]:
        """List products with optional category filter, sorting and pagination.

        Args:
            category: Optional category filter.
            page: 1-based page number.
            page_size: Items per page, clamped to 1..50.
            sort: Sort expression such as "-created_at" or "price_cents".

        Returns:
            dict: items, total, page, page_size, pages.
        """
        page = max(1, page)
        page_size = min(MAX_PAGE_SIZE, max(1, page_size))
        field, descending = parse_sort(sort)
        start = (page - 1) * page_size

        query = self.client.table(PRODUCTS_TABLE).select("*", count="exact")
        if category:
            query = query.eq("category", category)
        response = query.order(field, desc=descending).range(start, start + page_size - 1).execute()

        total = response.count or 0
        return {
            "items": response.data or [],
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": math.ceil(total / page_size) or 1,
        }

    async def get_product(self, product_id: str) -> Product | None:
        """Get a product by ID.

        Args:
            product_id: Product id.

        Returns:
            Product or None if not found.
        """
        response = (
            self.client.table(PRODUCTS_TABLE)
            .select("*")
            .eq("id", product_id)
            .execute()
        )
        if response.data:
            return response.data[0]
        return None

    async def create_product(self, data: ProductCreate) -> Product:
        """Create a new product.

        Raises:
            Exception: If the insert returns no row.
        """
        result = self.client.table(PRODUCTS_TABLE).insert(dict(data)).execute()
        if not result.data:
            raise Exception("Failed to create product")
        product = result.data[0]
        logger.info("Created product %s", product["id"])
        return product

    async def update_product(self, product_id: str, data: ProductUpdate) -> Product | None:
        """Apply a partial update.

        Keys present in `data` are written as-is, so an explicit None clears a
        column (e.g. removing the per-currency price map).

        Returns:
            Product or None if not found.

        Raises:
            ValidationError: If the update would leave the product without a price.
        """
        if not data:
            return await self.get_product(product_id)

        if PRICE_FIELDS & data.keys():
            current = await self.get_product(product_id)
            if not current:
                return None
            merged = {**current, **data}
            if merged.get("price_cents") is None and merged.get("price") is None and not merged.get("prices"):
                raise ValidationError("A product must keep at least one price")

        result = (
            self.client.table(PRODUCTS_TABLE)
            .update(dict(data))
            .eq("id", product_id)
            .execute()
        )
        if not result.data:
            return None
        logger.info("Updated product %s", product_id)
        return result.data[0]

    async def delete_product(self, product_id: str) -> bool:
        """Delete a product.

        Returns:
            bool: True if a row was deleted.
        """
        result = (
            self.client.table(PRODUCTS_TABLE)
            .delete()
            .eq("id", product_id)
            .execute()
        )
        deleted = bool(result.data)
        if deleted:
            logger.info("Deleted product %s", product_id)
        return deleted
