"""Checkout session creation against Stripe hosted Checkout."""

import asyncio
import logging

import stripe

from src.api.middleware.error_handler import SessionCreationFailed, UnknownItem, ValidationError
from src.core.config import Settings, get_settings
from src.core.currency import normalize_currency
from src.models.checkout import BuyerInfo, CartLine, CheckoutSession, LineItem
from src.services.catalog_service import CatalogService
from src.services.payment_provider import StripePaymentProvider
from src.services.pricing import resolve_unit_amount

logger = logging.getLogger(__name__)


def resolve_currency(currency: str | None, settings: Settings) -> str:
    """Apply the default currency and check it against the allow-list.

    Raises:
        ValidationError: If the currency is not supported.
    """
    code = normalize_currency(currency) or settings.default_currency
    if code not in settings.supported_currencies_list:
        raise ValidationError(
            f"Unsupported currency: {code}",
            details=[
                {
                    "loc": ["currency"],
                    "msg": f"Supported currencies: {', '.join(settings.supported_currencies_list)}",
                    "type": "unsupported_currency",
                }
            ],
        )
    return code


async def price_cart(
    catalog: CatalogService,
    cart_lines: list[CartLine],
    currency: str,
) -> list[LineItem]:
    """Price every cart line from current catalog data.

    Raises:
        ValidationError: If the cart is empty.
        UnknownItem: If any referenced item is missing; nothing is priced.
        NoPriceAvailable: If an item has no price for the currency.
    """
    if not cart_lines:
        raise ValidationError("Cart is empty", details=[{"loc": ["items"], "msg": "At least one item is required", "type": "empty_cart"}])

    requested_ids = list(dict.fromkeys(line.item_id for line in cart_lines))
    items = {item.id: item for item in await catalog.find_by_ids(requested_ids)}

    missing = [item_id for item_id in requested_ids if item_id not in items]
    if missing:
        raise UnknownItem(missing)

    line_items = []
    for line in cart_lines:
        item = items[line.item_id]
        line_items.append(
            LineItem(
                item_id=item.id,
                name=item.name,
                image_src=item.image_src,
                unit_amount=resolve_unit_amount(item, currency),
                quantity=line.quantity,
            )
        )
    return line_items


class CheckoutService:
    """Service that turns a cart into a Stripe hosted checkout session."""

    def __init__(
        self,
        catalog: CatalogService,
        provider: StripePaymentProvider,
        settings: Settings | None = None,
    ) -> None:
        """Initialize checkout service.

        Args:
            catalog: Catalog lookups for cart items.
            provider: Payment provider that mints sessions.
            settings: Optional settings override for testing.
        """
        self.catalog = catalog
        self.provider = provider
        self.settings = settings or get_settings()

    def redirect_urls(self) -> tuple[str, str]:
        """Success and cancel URLs on the storefront."""
        base = self.settings.client_url.rstrip("/")
        return f"{base}/success?session_id={{CHECKOUT_SESSION_ID}}", f"{base}/checkout"

    async def create_session(
        self,
        cart_lines: list[CartLine],
        currency: str | None = None,
        buyer: BuyerInfo | None = None,
        user_id: str | None = None,
    ) -> CheckoutSession:
        """Create a hosted checkout session for a cart.

        Prices are always recomputed from the catalog; the cart only carries
        item ids and quantities.

        Args:
            cart_lines: Requested items and quantities.
            currency: ISO code; defaults to the configured default currency.
            buyer: Optional buyer contact details.
            user_id: Optional authenticated user placing the order.

        Returns:
            CheckoutSession: Session id, redirect URL and the priced lines.

        Raises:
            ValidationError: Empty cart or unsupported currency.
            UnknownItem: A cart line references a missing item.
            NoPriceAvailable: An item has no usable price.
            SessionCreationFailed: Stripe failed or timed out.
        """
        buyer = buyer or BuyerInfo()
        code = resolve_currency(currency, self.settings)
        line_items = await price_cart(self.catalog, cart_lines, code)

        success_url, cancel_url = self.redirect_urls()
        metadata = buyer.as_metadata()
        if user_id:
            metadata["user_id"] = user_id

        if not self.settings.stripe_secret_key:
            logger.error("Checkout attempted without STRIPE_SECRET_KEY configured")
            raise SessionCreationFailed()

        try:
            provider_session = await asyncio.wait_for(
                asyncio.to_thread(
                    self.provider.create_checkout_session,
                    line_items,
                    code,
                    buyer.email,
                    success_url,
                    cancel_url,
                    metadata,
                ),
                timeout=self.settings.stripe_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error("Stripe checkout session creation timed out after %ss", self.settings.stripe_timeout_seconds)
            raise SessionCreationFailed() from e
        except stripe.StripeError as e:
            logger.error("Stripe error creating checkout session: %s", str(e))
            raise SessionCreationFailed() from e

        session = CheckoutSession(
            session_id=provider_session.session_id,
            redirect_url=provider_session.redirect_url,
            currency=code,
            line_items=line_items,
            buyer=buyer,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
        )
        logger.info(
            "Created checkout session %s: %d line(s), total %d %s",
            session.session_id,
            len(line_items),
            session.total.amount,
            code,
        )
        return session
