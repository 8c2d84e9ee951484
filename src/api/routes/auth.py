"""Authentication API routes."""

from typing import Any

from fastapi import APIRouter, Response, status

from src.api.deps import AUTH_COOKIE_NAME, AuthServiceDep, CurrentUser
from src.core.config import get_settings
from src.schemas.auth import LoginRequest, LoginResponse, LogoutResponse, SignupRequest, UserInfo
from src.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _cookie_options() -> dict:
    """Auth cookie attributes.

    SameSite=None requires Secure, so it is only used in production.
    """
    settings = get_settings()
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
        "path": "/",
    }


def _signed_in(response: Response, result: dict[str, Any]) -> LoginResponse:
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=result["access_token"],
        max_age=result["expires_in"],
        **_cookie_options(),
    )
    return LoginResponse(**result)


@router.post(
    "/signup",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Customer signup",
    description="Register a customer account and sign it in. Sets an HttpOnly token cookie.",
    responses={409: {"description": "Email or username already in use"}},
)
async def signup(data: SignupRequest, response: Response, service: AuthServiceDep) -> LoginResponse:
    """Create a customer account."""
    result = await service.signup(
        email=str(data.email),
        password=data.password,
        name=data.name,
        username=data.username,
    )
    return _signed_in(response, result)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Log in with an account's email or username. The env admin may also log in here.",
    responses={401: {"description": "Invalid credentials"}},
)
async def login(data: LoginRequest, response: Response, service: AuthServiceDep) -> LoginResponse:
    """Log a customer (or the env admin) in and set the auth cookie."""
    result = await service.login(data.login_id, data.password)
    return _signed_in(response, result)


@router.post(
    "/admin/login",
    response_model=LoginResponse,
    summary="Admin login",
    description="Log in with the environment-configured admin credentials. Sets an HttpOnly token cookie.",
    responses={401: {"description": "Invalid credentials"}},
)
async def admin_login(data: LoginRequest, response: Response) -> LoginResponse:
    """Log the admin in and set the auth cookie.

    Args:
        data: Username or email plus password.
        response: FastAPI response object for setting the cookie.

    Returns:
        LoginResponse: Access token and identity.
    """
    result = await AuthService().login_env_admin(data.login_id, data.password)
    return _signed_in(response, result)


@router.get(
    "/me",
    response_model=UserInfo,
    summary="Current identity",
    responses={401: {"description": "Not authenticated"}},
)
async def me(user: CurrentUser, service: AuthServiceDep) -> UserInfo:
    """Return the identity behind the current token."""
    return UserInfo(**await service.current_identity(user))


@router.post("/logout", response_model=LogoutResponse, summary="Log out")
async def logout(response: Response) -> LogoutResponse:
    """Clear the auth cookie."""
    response.delete_cookie(key=AUTH_COOKIE_NAME, **_cookie_options())
    return LogoutResponse(ok=True)
