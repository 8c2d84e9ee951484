"""Unit tests for OrderService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.api.middleware.error_handler import NotFoundError, UnknownItem, ValidationError
from src.models.checkout import BuyerInfo, CartLine
from src.models.order import can_transition
from src.models.product import CatalogItem
from src.schemas.auth import UserContext
from src.services.order_service import OrderService, can_access_order


@pytest.fixture
def mock_settings() -> MagicMock:
    """Create mock settings."""
    settings = MagicMock()
    settings.default_currency = "JPY"
    settings.supported_currencies_list = ["JPY", "USD"]
    return settings


@pytest.fixture
def mock_store() -> MagicMock:
    """Create a mock order store that echoes inserted rows."""
    store = MagicMock()
    store.insert = AsyncMock(side_effect=lambda row: {"id": "order-1", **row})
    store.get = AsyncMock(return_value=None)
    store.update_status = AsyncMock()
    store.list_orders = AsyncMock(return_value={"items": [], "total": 0, "page": 1, "page_size": 20, "pages": 1})
    return store


@pytest.fixture
def mock_catalog() -> MagicMock:
    """Create a mock catalog with one soap priced at 1200 JPY."""
    items = {"soap-1": CatalogItem.from_row({"id": "soap-1", "name": "Lavender Soap", "price_cents": 1200})}
    catalog = MagicMock()
    catalog.find_by_ids = AsyncMock(side_effect=lambda ids: [items[i] for i in ids if i in items])
    return catalog


@pytest.fixture
def service(mock_store: MagicMock, mock_catalog: MagicMock, mock_settings: MagicMock) -> OrderService:
    """Create OrderService with mocked dependencies."""
    return OrderService(mock_store, mock_catalog, settings=mock_settings)


@pytest.fixture
def buyer() -> BuyerInfo:
    """A complete buyer."""
    return BuyerInfo(name="Aiko", email="Aiko@Example.com", phone=None, address="1-2-3 Shibuya")


class TestCreateOrder:
    """Tests for create_order."""

    @pytest.mark.asyncio
    async def test_creates_pending_order_from_catalog_prices(
        self, service: OrderService, mock_store: MagicMock, buyer: BuyerInfo
    ) -> None:
        """Test prices come from the catalog and the order starts pending."""
        order = await service.create_order([CartLine("soap-1", 2)], buyer, user_id="user-1")

        assert order["status"] == "pending"
        assert order["total_cents"] == 2400
        assert order["currency"] == "JPY"
        assert order["email"] == "aiko@example.com"
        assert order["user_id"] == "user-1"
        assert order["items"][0]["price_cents"] == 1200
        assert order["items"][0]["line_total_cents"] == 2400
        mock_store.insert.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_buyer_fields(self, service: OrderService, mock_store: MagicMock) -> None:
        """Test name, email and address are required."""
        with pytest.raises(ValidationError) as exc_info:
            await service.create_order([CartLine("soap-1")], BuyerInfo(name="Aiko"))

        missing = [detail["loc"][1] for detail in exc_info.value.details]
        assert missing == ["email", "address"]
        mock_store.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_item(self, service: OrderService, mock_store: MagicMock, buyer: BuyerInfo) -> None:
        """Test a missing catalog item is rejected before insert."""
        with pytest.raises(UnknownItem):
            await service.create_order([CartLine("ghost")], buyer)

        mock_store.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsupported_currency(self, service: OrderService, buyer: BuyerInfo) -> None:
        """Test currencies outside the configured list are rejected."""
        with pytest.raises(ValidationError):
            await service.create_order([CartLine("soap-1")], buyer, currency="XYZ")


class TestTransitionStatus:
    """Tests for transition_status."""

    @pytest.mark.asyncio
    async def test_legal_transition(self, service: OrderService, mock_store: MagicMock) -> None:
        """Test paid -> fulfilled is written through the store."""
        mock_store.get.return_value = {"id": "order-1", "status": "paid"}
        mock_store.update_status.return_value = {"id": "order-1", "status": "fulfilled"}

        result = await service.transition_status("order-1", "fulfilled")

        assert result["status"] == "fulfilled"
        mock_store.update_status.assert_awaited_once_with("order-1", "fulfilled")

    @pytest.mark.asyncio
    async def test_same_status_is_noop(self, service: OrderService, mock_store: MagicMock) -> None:
        """Test setting the current status writes nothing."""
        mock_store.get.return_value = {"id": "order-1", "status": "paid"}

        result = await service.transition_status("order-1", "paid")

        assert result["status"] == "paid"
        mock_store.update_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_illegal_transition(self, service: OrderService, mock_store: MagicMock) -> None:
        """Test a terminal state cannot be left."""
        mock_store.get.return_value = {"id": "order-1", "status": "refunded"}

        with pytest.raises(ValidationError):
            await service.transition_status("order-1", "paid")

        mock_store.update_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_status(self, service: OrderService, mock_store: MagicMock) -> None:
        """Test unknown statuses are rejected without a lookup."""
        with pytest.raises(ValidationError):
            await service.transition_status("order-1", "shipped")

        mock_store.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_order(self, service: OrderService) -> None:
        """Test a missing order is a 404."""
        with pytest.raises(NotFoundError):
            await service.transition_status("order-x", "paid")

    @pytest.mark.parametrize(
        ("current", "new", "allowed"),
        [
            ("pending", "paid", True),
            ("pending", "cancelled", True),
            ("pending", "fulfilled", False),
            ("paid", "refunded", True),
            ("fulfilled", "cancelled", False),
            ("cancelled", "pending", False),
        ],
    )
    def test_transition_table(self, current: str, new: str, allowed: bool) -> None:
        """Test the admin transition table."""
        assert can_transition(current, new) is allowed


class TestListAndAccess:
    """Tests for listing and access rules."""

    @pytest.mark.asyncio
    async def test_admin_lists_everything(self, service: OrderService, mock_store: MagicMock) -> None:
        """Test admins get the paginated store listing."""
        await service.list_orders_for(UserContext(role="admin"), status="paid", page=2, page_size=10)

        mock_store.list_orders.assert_awaited_once_with(status="paid", page=2, page_size=10)

    @pytest.mark.asyncio
    async def test_customer_lists_own_orders(self, service: OrderService, mock_store: MagicMock) -> None:
        """Test customers get their own orders with the requested page."""
        mock_store.list_orders.return_value = {
            "items": [{"id": "a", "status": "paid", "user_id": "user-1"}],
            "total": 11,
            "page": 2,
            "page_size": 10,
            "pages": 2,
        }

        result = await service.list_orders_for(
            UserContext(user_id="user-1", role="customer"), status="paid", page=2, page_size=10
        )

        mock_store.list_orders.assert_awaited_once_with(status="paid", page=2, page_size=10, user_id="user-1")
        assert [order["id"] for order in result["items"]] == ["a"]
        assert result["page_size"] == 10

    def test_can_access_order(self) -> None:
        """Test owners and admins may read, others may not."""
        order = {"id": "a", "user_id": "user-1"}
        guest_order = {"id": "b", "user_id": None}

        assert can_access_order(order, UserContext(user_id="user-1", role="customer"))
        assert can_access_order(guest_order, UserContext(role="admin"))
        assert not can_access_order(order, UserContext(user_id="user-2", role="customer"))
        assert not can_access_order(guest_order, UserContext(user_id="user-2", role="customer"))
        assert not can_access_order(order, None)
