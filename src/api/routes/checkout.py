"""Checkout API routes for Stripe integration."""

from fastapi import APIRouter, status

from src.api.deps import CheckoutServiceDep, OptionalUser
from src.models.checkout import BuyerInfo
from src.schemas.checkout import CheckoutSessionCreate, CheckoutSessionResponse

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "/session",
    response_model=CheckoutSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Stripe Checkout Session",
    description="Prices the cart from the catalog and creates a Stripe hosted Checkout Session.",
    responses={
        404: {"description": "A cart item does not exist"},
        422: {"description": "Empty cart, unsupported currency or unpriceable item"},
        502: {"description": "Stripe could not create the session"},
    },
)
async def create_checkout_session(
    data: CheckoutSessionCreate,
    service: CheckoutServiceDep,
    user: OptionalUser,
) -> CheckoutSessionResponse:
    """Create a Stripe Checkout Session for a cart.

    The frontend should redirect to the returned url. No order is written
    here; the order appears when Stripe reports the completed session.

    Args:
        data: Cart lines, optional currency and buyer details.
        service: Checkout service.
        user: Signed-in user, if any; recorded in session metadata.

    Returns:
        CheckoutSessionResponse: Redirect url, session id and priced lines.
    """
    session = await service.create_session(
        cart_lines=[line.to_cart_line() for line in data.items],
        currency=data.currency,
        buyer=data.customer.to_buyer() if data.customer else BuyerInfo(),
        user_id=user.user_id if user else None,
    )
    return CheckoutSessionResponse.from_session(session)
