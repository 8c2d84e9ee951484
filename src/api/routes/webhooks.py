"""Webhook API routes for external service integrations."""

import logging

from fastapi import APIRouter, Request, status

from src.api.deps import ReconciliationServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/stripe/webhook",
    status_code=status.HTTP_200_OK,
    summary="Handle Stripe webhooks",
    description="Receives Stripe webhook events. Requires a valid Stripe-Signature header.",
    responses={
        400: {"description": "Missing or invalid signature"},
        500: {"description": "Webhook signing secret not configured"},
    },
)
async def stripe_webhook(request: Request, service: ReconciliationServiceDep) -> dict[str, object]:
    """Handle Stripe webhook events.

    The raw body is verified before anything is parsed or stored.
    checkout.session.completed upserts the order for the session; every
    other event type is acknowledged and ignored. Faults after verification
    are acknowledged with a warning so Stripe stops redelivering.

    Args:
        request: FastAPI request object for reading raw body and headers.
        service: Reconciliation service.

    Returns:
        dict: {"received": true} plus an optional "warning".

    Raises:
        InvalidSignature: 400 if the signature is missing or wrong.
        WebhookMisconfigured: 500 if no signing secret is configured.
    """
    # Raw bytes; signature verification fails on a re-serialized body
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    logger.debug("Received Stripe webhook (%d bytes)", len(payload))

    result = await service.process_webhook(payload, sig_header)

    body: dict[str, object] = {"received": result.received}
    if result.warning:
        body["warning"] = result.warning
    return body
