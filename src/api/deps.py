"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Header, Request
from supabase import Client

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.api.middleware.error_handler import AuthenticationError, AuthorizationError, RateLimitError
from src.core.config import get_settings
from src.core.rate_limiter import get_rate_limiter
from src.core.supabase import Database
from src.schemas.auth import UserContext
from src.services.auth_service import AuthService
from src.services.catalog_service import CatalogService
from src.services.checkout_service import CheckoutService
from src.services.contact_service import ContactService
from src.services.order_service import OrderService
from src.services.order_store import OrderStore
from src.services.payment_provider import StripePaymentProvider
from src.services.reconciliation_service import ReconciliationService
from src.services.user_store import UserStore

AUTH_COOKIE_NAME = "token"


# Database and services


def get_db(request: Request) -> Database:
    """Database handle opened in the application lifespan."""
    return request.app.state.db


def get_db_client(db: Annotated[Database, Depends(get_db)]) -> Client:
    """Supabase client from the open database handle."""
    return db.client


DbClient = Annotated[Client, Depends(get_db_client)]


def get_catalog_service(client: DbClient) -> CatalogService:
    return CatalogService(client)


def get_order_store(client: DbClient) -> OrderStore:
    return OrderStore(client)


def get_payment_provider() -> StripePaymentProvider:
    return StripePaymentProvider()


def get_checkout_service(
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    provider: Annotated[StripePaymentProvider, Depends(get_payment_provider)],
) -> CheckoutService:
    return CheckoutService(catalog, provider)


def get_reconciliation_service(
    store: Annotated[OrderStore, Depends(get_order_store)],
    provider: Annotated[StripePaymentProvider, Depends(get_payment_provider)],
) -> ReconciliationService:
    return ReconciliationService(store, provider)


def get_order_service(
    store: Annotated[OrderStore, Depends(get_order_store)],
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
) -> OrderService:
    return OrderService(store, catalog)


def get_contact_service(client: DbClient) -> ContactService:
    return ContactService(client)


def get_auth_service(client: DbClient) -> AuthService:
    return AuthService(users=UserStore(client))


CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
CheckoutServiceDep = Annotated[CheckoutService, Depends(get_checkout_service)]
ReconciliationServiceDep = Annotated[ReconciliationService, Depends(get_reconciliation_service)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
ContactServiceDep = Annotated[ContactService, Depends(get_contact_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


# Authentication


def get_token(request: Request, authorization: str | None) -> str | None:
    """Extract the access token from the `token` cookie or a Bearer header.

    Args:
        request: FastAPI request object.
        authorization: Authorization header value.

    Returns:
        str | None: The token or None if not present.

    Raises:
        AuthenticationError: If an Authorization header is present but malformed.
    """
    cookie_token = request.cookies.get(AUTH_COOKIE_NAME)
    if cookie_token:
        return cookie_token

    if not authorization:
        return None

    # Extract the token from "Bearer <token>" format
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid authorization header format. Expected: Bearer <token>")
    return parts[1]


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header(description="Bearer token")] = None,
) -> UserContext:
    """Extract and validate the current user from the cookie or Authorization header.

    Raises:
        AuthenticationError: 401 if token is missing, invalid, or expired.
    """
    token = get_token(request, authorization)
    if not token:
        raise AuthenticationError("Not authenticated")

    try:
        payload = decode_jwt(token)
        return payload.to_user_context()

    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise AuthenticationError("Token has expired") from e
        raise AuthenticationError("Invalid token") from e


async def get_optional_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> UserContext | None:
    """Extract the current user if a valid token is present.

    Missing or invalid tokens are treated as anonymous.
    """
    try:
        return await get_current_user(request, authorization)
    except AuthenticationError:
        return None


async def require_admin(user: Annotated[UserContext, Depends(get_current_user)]) -> UserContext:
    """Require the admin role.

    Raises:
        AuthorizationError: 403 if the user is not an admin.
    """
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[UserContext, Depends(get_current_user)]
OptionalUser = Annotated[UserContext | None, Depends(get_optional_user)]
AdminUser = Annotated[UserContext, Depends(require_admin)]


# Rate limiting


def client_ip(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def check_contact_rate_limit(request: Request) -> None:
    """Per-IP limit on contact form submissions.

    Raises:
        RateLimitError: If the client has exceeded the limit.
    """
    settings = get_settings()
    limiter = get_rate_limiter()

    allowed, _remaining, retry_after = await limiter.check_and_increment(
        f"contact:{client_ip(request)}",
        max_requests=settings.contact_rate_limit_requests,
        window_seconds=settings.contact_rate_limit_window_seconds,
    )
    if not allowed:
        raise RateLimitError(
            message="Too many messages. Please wait before trying again.",
            retry_after=retry_after,
            limit=settings.contact_rate_limit_requests,
        )


ContactRateLimit = Annotated[None, Depends(check_contact_rate_limit)]
