"""Stripe-backed payment provider used by checkout and webhook reconciliation."""

import logging
from dataclasses import dataclass
from typing import Any

from src.core.stripe import get_stripe
from src.models.checkout import LineItem

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def _as_dict(obj: Any) -> dict[str, Any]:
    """Plain nested dict for a Stripe object (newer SDKs no longer subclass dict)."""
    return obj if isinstance(obj, dict) else obj.to_dict()


@dataclass(frozen=True)
class ProviderSession:
    """The parts of a freshly created Stripe Checkout Session we hand back."""

    session_id: str
    redirect_url: str


class StripePaymentProvider:
    """Thin wrapper over the Stripe SDK calls this service makes.

    All calls are synchronous SDK calls; callers decide about threads and
    timeouts.
    """

    def __init__(self, stripe_module: Any | None = None) -> None:
        """Initialize with the configured Stripe module.

        Args:
            stripe_module: Optional Stripe module/mock for testing.
        """
        self.stripe = stripe_module or get_stripe()

    @staticmethod
    def build_line_items(line_items: list[LineItem], currency: str) -> list[dict[str, Any]]:
        """Convert priced line items into Checkout `price_data` entries."""
        built = []
        for item in line_items:
            product_data: dict[str, Any] = {"name": item.name}
            # Stripe rejects relative image paths
            if item.image_src and item.image_src.startswith("http"):
                product_data["images"] = [item.image_src]
            if item.item_id:
                product_data["metadata"] = {"product_id": item.item_id}
            built.append(
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "product_data": product_data,
                        "unit_amount": item.unit_amount.amount,
                    },
                    "quantity": item.quantity,
                }
            )
        return built

    def create_checkout_session(
        self,
        line_items: list[LineItem],
        currency: str,
        buyer_email: str | None,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
    ) -> ProviderSession:
        """Create a hosted Checkout Session in payment mode.

        Raises:
            stripe.StripeError: If the Stripe API call fails.
        """
        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": self.build_line_items(line_items, currency),
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if buyer_email:
            params["customer_email"] = buyer_email

        session = self.stripe.checkout.Session.create(**params)
        return ProviderSession(session_id=session.id, redirect_url=session.url)

    def retrieve_session(self, session_id: str) -> dict[str, Any]:
        """Fetch a Checkout Session with its line items and their products expanded."""
        session = self.stripe.checkout.Session.retrieve(
            session_id,
            expand=["line_items", "line_items.data.price.product"],
        )
        return _as_dict(session)

    def verify_event_signature(self, payload: bytes, sig_header: str, secret: str) -> dict[str, Any]:
        """Verify a webhook payload against its Stripe-Signature header.

        Args:
            payload: Raw, unparsed request body.
            sig_header: Stripe-Signature header value.
            secret: Endpoint signing secret.

        Returns:
            dict: The verified Stripe event.

        Raises:
            stripe.SignatureVerificationError: If the signature does not match.
            ValueError: If the payload is not valid JSON.
        """
        return _as_dict(self.stripe.Webhook.construct_event(payload, sig_header, secret))
