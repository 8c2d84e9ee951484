"""Stripe webhook verification and order reconciliation."""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe

from src.api.middleware.error_handler import InvalidSignature, WebhookMisconfigured
from src.core.config import Settings, get_settings
from src.core.currency import normalize_currency
from src.models.order import Order, OrderLineItem, OrderStatus, OrderUpsert
from src.services.order_store import OrderStore
from src.services.payment_provider import CHECKOUT_COMPLETED, StripePaymentProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationWarning:
    """A non-fatal gap found while normalizing a Stripe session.

    Logged and returned; reconciliation continues with a best-effort value.
    """

    session_id: str
    code: str
    message: str


@dataclass
class ReconciliationResult:
    """Outcome of reconciling one webhook event."""

    event_type: str
    order: Order | None = None
    warnings: list[ReconciliationWarning] = field(default_factory=list)

    @property
    def ignored(self) -> bool:
        return self.order is None


@dataclass(frozen=True)
class WebhookResult:
    """Acknowledgement returned to Stripe."""

    received: bool = True
    warning: str | None = None


def _divide_rounded(total: int, quantity: int) -> int:
    return int((Decimal(total) / Decimal(quantity)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _format_address(address: dict[str, Any] | None) -> str:
    if not address:
        return ""
    parts = [
        address.get("line1"),
        address.get("line2"),
        address.get("city"),
        address.get("state"),
        address.get("postal_code"),
        address.get("country"),
    ]
    return ", ".join(part for part in parts if part)


def normalize_line_item(
    line: dict[str, Any],
    session_id: str,
    warnings: list[ReconciliationWarning],
) -> OrderLineItem:
    """Turn a Stripe line item into an order line snapshot.

    The unit amount comes from the line's price; failing that it is derived
    from the line total (or subtotal) divided by quantity; failing that it is
    0 and a warning is recorded.
    """
    price = line.get("price") or {}
    product = price.get("product")
    product = product if isinstance(product, dict) else {}
    quantity = line.get("quantity") or 1

    unit_amount = price.get("unit_amount")
    if unit_amount is None:
        for total_key in ("amount_total", "amount_subtotal"):
            if line.get(total_key) is not None:
                unit_amount = _divide_rounded(line[total_key], quantity)
                warnings.append(
                    ReconciliationWarning(
                        session_id=session_id,
                        code="derived_unit_amount",
                        message=f"Line {line.get('id')} has no unit amount; derived from {total_key}",
                    )
                )
                break
    if unit_amount is None:
        unit_amount = 0
        warnings.append(
            ReconciliationWarning(
                session_id=session_id,
                code="missing_unit_amount",
                message=f"Line {line.get('id')} has no price or totals; recorded as 0",
            )
        )

    images = product.get("images") or []
    return OrderLineItem(
        product_id=(product.get("metadata") or {}).get("product_id"),
        name=line.get("description") or price.get("nickname") or price.get("id") or "Item",
        image_src=images[0] if images else None,
        price_cents=unit_amount,
        quantity=quantity,
        line_total_cents=unit_amount * quantity,
    )


def build_order_fields(session: dict[str, Any], warnings: list[ReconciliationWarning]) -> OrderUpsert:
    """Derive the canonical order record from a fully expanded session."""
    session_id = session["id"]
    metadata = session.get("metadata") or {}
    customer = session.get("customer_details") or {}

    items = [
        normalize_line_item(line, session_id, warnings)
        for line in (session.get("line_items") or {}).get("data") or []
    ]

    amount_total = session.get("amount_total")
    if items:
        total_cents = sum(item["line_total_cents"] for item in items)
        if amount_total is not None and amount_total != total_cents:
            warnings.append(
                ReconciliationWarning(
                    session_id=session_id,
                    code="total_mismatch",
                    message=f"Line totals sum to {total_cents} but Stripe reports amount_total={amount_total}",
                )
            )
    else:
        total_cents = amount_total or 0

    status: OrderStatus = "paid" if session.get("payment_status") == "paid" else "pending"

    payment_intent = session.get("payment_intent")
    if isinstance(payment_intent, dict):
        payment_intent = payment_intent.get("id")

    return OrderUpsert(
        user_id=metadata.get("user_id") or None,
        name=metadata.get("name") or customer.get("name") or "",
        email=(customer.get("email") or session.get("customer_email") or "").lower(),
        phone=metadata.get("phone") or customer.get("phone") or None,
        address=metadata.get("address") or _format_address(customer.get("address")),
        currency=normalize_currency(session.get("currency")),
        items=items,
        total_cents=total_cents,
        status=status,
        payment_intent_id=payment_intent,
        metadata={
            "provider_amount_total": amount_total,
            "payment_status": session.get("payment_status"),
        },
    )


class ReconciliationService:
    """Turns verified Stripe webhook events into stored orders."""

    def __init__(
        self,
        store: OrderStore,
        provider: StripePaymentProvider,
        settings: Settings | None = None,
    ) -> None:
        """Initialize reconciliation service.

        Args:
            store: Order persistence.
            provider: Payment provider used to verify events and fetch sessions.
            settings: Optional settings override for testing.
        """
        self.store = store
        self.provider = provider
        self.settings = settings or get_settings()

    def verify_event(self, payload: bytes, sig_header: str | None) -> dict[str, Any]:
        """Verify the Stripe signature on a raw webhook body.

        Args:
            payload: Raw request body, byte-for-byte as received.
            sig_header: Stripe-Signature header value.

        Returns:
            dict: Verified Stripe event.

        Raises:
            WebhookMisconfigured: If no signing secret is configured.
            InvalidSignature: If the header is missing or does not match.
        """
        if not self.settings.stripe_webhook_secret:
            logger.error("Missing STRIPE_WEBHOOK_SECRET; rejecting webhook")
            raise WebhookMisconfigured()
        if not sig_header:
            logger.warning("Webhook request without Stripe-Signature header")
            raise InvalidSignature("Missing Stripe-Signature header")

        try:
            return self.provider.verify_event_signature(payload, sig_header, self.settings.stripe_webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            logger.warning("Webhook signature verification failed: %s", str(e))
            raise InvalidSignature() from e

    async def reconcile(self, event: dict[str, Any]) -> ReconciliationResult:
        """Persist the order described by a verified event.

        Only checkout.session.completed is acted on; every other event type is
        acknowledged and ignored.

        Returns:
            ReconciliationResult: The upserted order (None when ignored) and warnings.
        """
        event_type = event.get("type", "")
        result = ReconciliationResult(event_type=event_type)
        if event_type != CHECKOUT_COMPLETED:
            logger.debug("Ignoring Stripe event type: %s", event_type)
            return result

        session_id = event["data"]["object"]["id"]
        session = await asyncio.to_thread(self.provider.retrieve_session, session_id)

        fields = build_order_fields(session, result.warnings)
        for warning in result.warnings:
            logger.warning("Reconciliation warning for %s [%s]: %s", warning.session_id, warning.code, warning.message)

        result.order = await self.store.upsert_by_session_id(session_id, fields)
        logger.info(
            "Order saved/updated from Stripe session %s (status=%s, total=%d %s)",
            session_id,
            fields["status"],
            fields["total_cents"],
            fields["currency"],
        )
        return result

    async def process_webhook(self, payload: bytes, sig_header: str | None) -> WebhookResult:
        """Verify and reconcile one webhook delivery.

        Signature problems propagate so the route answers 4xx/5xx. Anything
        that fails after verification is logged and still acknowledged, so
        Stripe does not keep redelivering an event we cannot process.
        """
        event = self.verify_event(payload, sig_header)

        try:
            await self.reconcile(event)
        except Exception:
            logger.exception("Webhook handler failed for event %s", event.get("id"))
            return WebhookResult(received=True, warning="handler_error")

        return WebhookResult(received=True)
