"""Unit tests for ReconciliationService."""

import copy
from typing import Any
from unittest.mock import MagicMock

import pytest
import stripe

from src.api.middleware.error_handler import InvalidSignature, WebhookMisconfigured
from src.services.payment_provider import StripePaymentProvider
from src.services.reconciliation_service import ReconciliationService, build_order_fields


class InMemoryOrderStore:
    """Order store keyed by stripe_session_id, with upsert semantics."""

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.calls = 0

    async def upsert_by_session_id(self, session_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        self.calls += 1
        existing = self.rows.get(session_id)
        row = {
            "id": existing["id"] if existing else f"order-{len(self.rows) + 1}",
            "created_at": existing["created_at"] if existing else "2026-01-01T00:00:00+00:00",
            **copy.deepcopy(fields),
            "stripe_session_id": session_id,
        }
        self.rows[session_id] = row
        return row


def completed_event(session_id: str = "sess_abc") -> dict[str, Any]:
    return {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {"id": session_id}},
    }


def full_session(**overrides: Any) -> dict[str, Any]:
    """A retrieved session: one line of 2 x 2500 JPY, paid."""
    session = {
        "id": "sess_abc",
        "currency": "jpy",
        "amount_total": 5000,
        "payment_status": "paid",
        "payment_intent": "pi_123",
        "customer_email": None,
        "customer_details": {"email": "Aiko@Example.com", "name": "Aiko T", "phone": "+81-3-0000"},
        "metadata": {"name": "Aiko", "phone": "090-1111", "address": "1-2-3 Shibuya", "user_id": "user-7"},
        "line_items": {
            "data": [
                {
                    "id": "li_1",
                    "description": "Lavender Soap",
                    "quantity": 2,
                    "amount_total": 5000,
                    "amount_subtotal": 5000,
                    "price": {
                        "id": "price_1",
                        "unit_amount": 2500,
                        "product": {
                            "id": "prod_1",
                            "images": ["https://cdn.example.com/soap.jpg"],
                            "metadata": {"product_id": "soap-1"},
                        },
                    },
                }
            ]
        },
    }
    session.update(overrides)
    return session


@pytest.fixture
def mock_settings() -> MagicMock:
    """Create mock settings."""
    settings = MagicMock()
    settings.stripe_webhook_secret = "whsec_test_secret"
    return settings


@pytest.fixture
def mock_stripe() -> MagicMock:
    """Create a mock Stripe module."""
    mock = MagicMock()
    mock.Webhook.construct_event.return_value = completed_event()
    mock.checkout.Session.retrieve.return_value = full_session()
    return mock


@pytest.fixture
def store() -> InMemoryOrderStore:
    """In-memory order store."""
    return InMemoryOrderStore()


@pytest.fixture
def service(store: InMemoryOrderStore, mock_stripe: MagicMock, mock_settings: MagicMock) -> ReconciliationService:
    """Create ReconciliationService with mocked dependencies."""
    return ReconciliationService(store, StripePaymentProvider(stripe_module=mock_stripe), settings=mock_settings)


class TestVerifyEvent:
    """Tests for signature verification."""

    def test_returns_verified_event(self, service: ReconciliationService, mock_stripe: MagicMock) -> None:
        """Test that the raw payload and header are handed to Stripe unchanged."""
        event = service.verify_event(b'{"id": "evt_1"}', "t=1,v1=abc")

        assert event["type"] == "checkout.session.completed"
        mock_stripe.Webhook.construct_event.assert_called_once_with(
            b'{"id": "evt_1"}', "t=1,v1=abc", "whsec_test_secret"
        )

    def test_bad_signature_raises(self, service: ReconciliationService, mock_stripe: MagicMock) -> None:
        """Test that a failed verification raises InvalidSignature."""
        mock_stripe.Webhook.construct_event.side_effect = stripe.SignatureVerificationError("bad", "t=1,v1=abc")

        with pytest.raises(InvalidSignature):
            service.verify_event(b"{}", "t=1,v1=abc")

    def test_missing_header_raises(self, service: ReconciliationService, mock_stripe: MagicMock) -> None:
        """Test that a request without the header never reaches Stripe."""
        with pytest.raises(InvalidSignature):
            service.verify_event(b"{}", None)

        mock_stripe.Webhook.construct_event.assert_not_called()

    def test_missing_secret_is_misconfiguration(
        self, service: ReconciliationService, mock_settings: MagicMock
    ) -> None:
        """Test that a missing signing secret is a server error, not a client one."""
        mock_settings.stripe_webhook_secret = ""

        with pytest.raises(WebhookMisconfigured) as exc_info:
            service.verify_event(b"{}", "t=1,v1=abc")

        assert exc_info.value.status_code == 500


class TestReconcile:
    """Tests for ReconciliationService.reconcile."""

    @pytest.mark.asyncio
    async def test_completed_session_creates_paid_order(
        self, service: ReconciliationService, store: InMemoryOrderStore, mock_stripe: MagicMock
    ) -> None:
        """Test the sess_abc scenario: paid, total 5000, one 2 x 2500 line."""
        result = await service.reconcile(completed_event())

        order = store.rows["sess_abc"]
        assert result.order == order
        assert order["status"] == "paid"
        assert order["total_cents"] == 5000
        assert order["currency"] == "JPY"
        assert order["items"] == [
            {
                "product_id": "soap-1",
                "name": "Lavender Soap",
                "image_src": "https://cdn.example.com/soap.jpg",
                "price_cents": 2500,
                "quantity": 2,
                "line_total_cents": 5000,
            }
        ]
        assert order["name"] == "Aiko"
        assert order["email"] == "aiko@example.com"
        assert order["phone"] == "090-1111"
        assert order["address"] == "1-2-3 Shibuya"
        assert order["user_id"] == "user-7"
        assert order["payment_intent_id"] == "pi_123"
        assert result.warnings == []
        mock_stripe.checkout.Session.retrieve.assert_called_once_with(
            "sess_abc", expand=["line_items", "line_items.data.price.product"]
        )

    @pytest.mark.asyncio
    async def test_redelivery_is_idempotent(self, service: ReconciliationService, store: InMemoryOrderStore) -> None:
        """Test that the same event twice leaves exactly one identical order."""
        first = await service.reconcile(completed_event())
        snapshot = copy.deepcopy(store.rows)
        second = await service.reconcile(completed_event())

        assert len(store.rows) == 1
        assert store.rows == snapshot
        assert first.order["id"] == second.order["id"]

    @pytest.mark.asyncio
    async def test_last_write_wins(
        self, service: ReconciliationService, store: InMemoryOrderStore, mock_stripe: MagicMock
    ) -> None:
        """Test that a later delivery overwrites status and keeps identity."""
        mock_stripe.checkout.Session.retrieve.return_value = full_session(payment_status="unpaid")
        first = await service.reconcile(completed_event())
        assert first.order["status"] == "pending"

        mock_stripe.checkout.Session.retrieve.return_value = full_session()
        second = await service.reconcile(completed_event())

        assert len(store.rows) == 1
        assert second.order["status"] == "paid"
        assert second.order["id"] == first.order["id"]
        assert second.order["created_at"] == first.order["created_at"]

    @pytest.mark.asyncio
    async def test_other_event_types_ignored(
        self, service: ReconciliationService, store: InMemoryOrderStore, mock_stripe: MagicMock
    ) -> None:
        """Test that non-completed events touch neither Stripe nor the store."""
        result = await service.reconcile({"id": "evt_2", "type": "payment_intent.created", "data": {"object": {}}})

        assert result.ignored
        assert store.calls == 0
        mock_stripe.checkout.Session.retrieve.assert_not_called()


class TestBuildOrderFields:
    """Tests for session normalization."""

    def test_unit_amount_derived_from_line_total(self) -> None:
        """Test the fallback to amount_total / quantity, with a warning."""
        session = full_session()
        session["line_items"]["data"][0]["price"]["unit_amount"] = None
        warnings: list = []

        fields = build_order_fields(session, warnings)

        assert fields["items"][0]["price_cents"] == 2500
        assert [w.code for w in warnings] == ["derived_unit_amount"]

    def test_unit_amount_derived_from_subtotal(self) -> None:
        """Test the fallback to amount_subtotal / quantity."""
        session = full_session()
        line = session["line_items"]["data"][0]
        line["price"] = None
        line["amount_total"] = None
        line["amount_subtotal"] = 4999
        warnings: list = []

        fields = build_order_fields(session, warnings)

        # 4999 / 2 = 2499.5 rounds to 2500
        assert fields["items"][0]["price_cents"] == 2500
        assert fields["items"][0]["name"] == "Lavender Soap"

    def test_line_without_any_amount_records_zero(self) -> None:
        """Test that a line with no price data is kept at 0 with a warning."""
        session = full_session(amount_total=0)
        session["line_items"]["data"] = [{"id": "li_x", "quantity": 1}]
        warnings: list = []

        fields = build_order_fields(session, warnings)

        assert fields["items"][0]["price_cents"] == 0
        assert fields["items"][0]["name"] == "Item"
        assert fields["items"][0]["product_id"] is None
        assert [w.code for w in warnings] == ["missing_unit_amount"]

    def test_total_mismatch_keeps_line_sum_and_warns(self) -> None:
        """Test that line sums are canonical and the provider amount is recorded."""
        session = full_session(amount_total=4500)
        warnings: list = []

        fields = build_order_fields(session, warnings)

        assert fields["total_cents"] == 5000
        assert fields["metadata"]["provider_amount_total"] == 4500
        assert [w.code for w in warnings] == ["total_mismatch"]

    def test_buyer_falls_back_to_customer_details(self) -> None:
        """Test that name, phone and address come from Stripe when metadata is empty."""
        session = full_session(metadata={})
        session["customer_details"]["address"] = {
            "line1": "1 Main St",
            "line2": None,
            "city": "Springfield",
            "state": "IL",
            "postal_code": "62701",
            "country": "US",
        }

        fields = build_order_fields(session, [])

        assert fields["name"] == "Aiko T"
        assert fields["phone"] == "+81-3-0000"
        assert fields["address"] == "1 Main St, Springfield, IL, 62701, US"
        assert fields["user_id"] is None

    def test_unpaid_session_is_pending(self) -> None:
        """Test that anything other than payment_status=paid is pending."""
        assert build_order_fields(full_session(payment_status="unpaid"), [])["status"] == "pending"
        assert build_order_fields(full_session(payment_status="no_payment_required"), [])["status"] == "pending"


class TestProcessWebhook:
    """Tests for the webhook entry point."""

    @pytest.mark.asyncio
    async def test_acknowledges_processed_event(self, service: ReconciliationService, store: InMemoryOrderStore) -> None:
        """Test that a good event is acknowledged without a warning."""
        result = await service.process_webhook(b"{}", "t=1,v1=abc")

        assert result.received is True
        assert result.warning is None
        assert len(store.rows) == 1

    @pytest.mark.asyncio
    async def test_bad_signature_never_reaches_store(
        self, service: ReconciliationService, store: InMemoryOrderStore, mock_stripe: MagicMock
    ) -> None:
        """Test that verification failures propagate with zero store calls."""
        mock_stripe.Webhook.construct_event.side_effect = stripe.SignatureVerificationError("bad", "sig")

        with pytest.raises(InvalidSignature):
            await service.process_webhook(b"{}", "sig")

        assert store.calls == 0

    @pytest.mark.asyncio
    async def test_handler_fault_is_acknowledged_with_warning(
        self, service: ReconciliationService, store: InMemoryOrderStore, mock_stripe: MagicMock
    ) -> None:
        """Test that a failure after verification still answers received=True."""
        mock_stripe.checkout.Session.retrieve.side_effect = stripe.APIConnectionError("network down")

        result = await service.process_webhook(b"{}", "t=1,v1=abc")

        assert result.received is True
        assert result.warning == "handler_error"
        assert store.calls == 0
