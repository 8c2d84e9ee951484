"""Unit tests for JWT handling, customer accounts and the env-admin login."""

import time
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest

from src.api.middleware.auth import AuthError, AuthErrorCode, create_access_token, decode_jwt
from src.api.middleware.error_handler import AuthenticationError, ConflictError
from src.core.config import get_settings
from src.schemas.auth import UserContext
from src.services.auth_service import ENV_ADMIN_TOKEN_SECONDS, AuthService, hash_password, verify_password


def create_test_token(
    sub: str | None = "user-123",
    email: str | None = "test@example.com",
    role: str | None = "customer",
    exp_offset: int = 3600,
    secret: str | None = None,
    include_iat: bool = True,
) -> str:
    """Create a test JWT token.

    Args:
        sub: Subject (user ID).
        email: User email.
        role: User role.
        exp_offset: Seconds from now for expiration (negative for expired).
        secret: Signing secret; defaults to the configured one.
        include_iat: Whether to include the iat claim.

    Returns:
        str: Encoded JWT token.
    """
    now = int(time.time())
    payload: dict = {"role": role, "exp": now + exp_offset}
    if include_iat:
        payload["iat"] = now
    if sub:
        payload["sub"] = sub
    if email:
        payload["email"] = email
    return jwt.encode(payload, secret or get_settings().jwt_secret, algorithm="HS256")


class TestDecodeJWT:
    """Tests for decode_jwt function."""

    def test_decode_jwt_with_valid_token(self) -> None:
        """Test decode_jwt successfully decodes a valid token."""
        payload = decode_jwt(create_test_token())

        assert payload.sub == "user-123"
        assert payload.email == "test@example.com"
        assert payload.role == "customer"

    def test_round_trip_with_create_access_token(self) -> None:
        """Test tokens minted by the service decode to the same claims."""
        token = create_access_token(role="admin", email="admin@example.com")

        context = decode_jwt(token).to_user_context()

        assert context == UserContext(user_id=None, email="admin@example.com", role="admin")
        assert context.is_admin

    def test_expired_token(self) -> None:
        """Test decode_jwt raises TOKEN_EXPIRED for expired tokens."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(exp_offset=-60))

        assert exc_info.value.code == AuthErrorCode.TOKEN_EXPIRED

    def test_wrong_secret(self) -> None:
        """Test decode_jwt raises INVALID_SIGNATURE for a foreign secret."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(secret="some-other-secret-that-is-long-enough"))

        assert exc_info.value.code == AuthErrorCode.INVALID_SIGNATURE

    def test_malformed_token(self) -> None:
        """Test decode_jwt raises INVALID_TOKEN for garbage."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt("not-a-jwt")

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN

    def test_missing_iat_claim(self) -> None:
        """Test decode_jwt requires the iat claim."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(include_iat=False))

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN


@pytest.fixture
def admin_settings() -> MagicMock:
    """Settings with a configured env admin."""
    settings = MagicMock()
    settings.admin_username = "admin"
    settings.admin_email = "Admin@Example.com"
    settings.admin_password = "s3cret"
    settings.jwt_expiry_hours = 168
    return settings


@pytest.fixture
def stored_user() -> dict:
    """A registered customer row."""
    return {
        "id": "user-9",
        "email": "buyer@example.com",
        "username": "buyer",
        "password_hash": hash_password("lavender-fields"),
        "name": "Buyer",
        "role": "customer",
    }


@pytest.fixture
def mock_users() -> MagicMock:
    """A user store with no accounts."""
    users = MagicMock()
    users.find_by_email = AsyncMock(return_value=None)
    users.find_by_username = AsyncMock(return_value=None)
    users.get = AsyncMock(return_value=None)
    users.create = AsyncMock()
    return users


class TestAuthServiceLogin:
    """Tests for AuthService.login."""

    @pytest.mark.asyncio
    async def test_login_with_username(self, admin_settings: MagicMock) -> None:
        """Test login by username returns a 24h admin token."""
        result = await AuthService(admin_settings).login("admin", "s3cret")

        assert result["token_type"] == "bearer"
        assert result["expires_in"] == ENV_ADMIN_TOKEN_SECONDS
        assert result["user"]["role"] == "admin"
        assert result["user"]["id"] is None
        payload = decode_jwt(result["access_token"])
        assert payload.role == "admin"
        assert payload.exp - payload.iat == ENV_ADMIN_TOKEN_SECONDS

    @pytest.mark.asyncio
    async def test_login_with_email_is_case_insensitive(self, admin_settings: MagicMock) -> None:
        """Test login by email ignores case."""
        result = await AuthService(admin_settings).login(" admin@example.COM ", "s3cret")

        assert result["user"]["email"] == "Admin@Example.com"

    @pytest.mark.asyncio
    async def test_wrong_password(self, admin_settings: MagicMock) -> None:
        """Test a wrong password is rejected."""
        with pytest.raises(AuthenticationError) as exc_info:
            await AuthService(admin_settings).login("admin", "nope")

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_identifier(self, admin_settings: MagicMock) -> None:
        """Test an unknown username is rejected with the same message."""
        with pytest.raises(AuthenticationError) as exc_info:
            await AuthService(admin_settings).login("root", "s3cret")

        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_login_disabled_without_password(self, admin_settings: MagicMock) -> None:
        """Test admin login is refused when no password is configured."""
        admin_settings.admin_password = ""

        with pytest.raises(AuthenticationError):
            await AuthService(admin_settings).login("admin", "")


class TestAuthServiceDescribe:
    """Tests for AuthService.describe."""

    def test_env_admin(self, admin_settings: MagicMock) -> None:
        """Test the env admin is described from settings."""
        info = AuthService(admin_settings).describe(UserContext(role="admin", email="Admin@Example.com"))

        assert info["username"] == "admin"
        assert info["name"] == "Env Admin"

    def test_regular_user(self, admin_settings: MagicMock) -> None:
        """Test other users are described from their token."""
        info = AuthService(admin_settings).describe(
            UserContext(user_id="user-123", email="buyer@example.com", role="customer")
        )

        assert info == {
            "id": "user-123",
            "email": "buyer@example.com",
            "username": None,
            "name": None,
            "role": "customer",
        }


class TestPasswordHashing:
    """Tests for bcrypt helpers."""

    def test_hash_and_verify(self) -> None:
        """Test a hash verifies only its own password and never equals it."""
        hashed = hash_password("lavender-fields")

        assert hashed != "lavender-fields"
        assert verify_password("lavender-fields", hashed)
        assert not verify_password("rose-fields", hashed)


class TestAuthServiceSignup:
    """Tests for AuthService.signup."""

    @pytest.mark.asyncio
    async def test_registers_customer(self, admin_settings: MagicMock, mock_users: MagicMock, stored_user: dict) -> None:
        """Test the account is stored normalized and hashed, then signed in."""
        mock_users.create.return_value = stored_user

        result = await AuthService(admin_settings, mock_users).signup(
            " Buyer@Example.com ", "lavender-fields", name=" Buyer ", username="Buyer"
        )

        row = mock_users.create.await_args.args[0]
        assert row["email"] == "buyer@example.com"
        assert row["username"] == "buyer"
        assert row["name"] == "Buyer"
        assert row["role"] == "customer"
        assert verify_password("lavender-fields", row["password_hash"])
        assert result["expires_in"] == 168 * 3600
        assert "password_hash" not in result["user"]
        payload = decode_jwt(result["access_token"])
        assert payload.sub == "user-9"
        assert payload.role == "customer"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, admin_settings: MagicMock, mock_users: MagicMock, stored_user: dict) -> None:
        """Test a taken email is a conflict and nothing is written."""
        mock_users.find_by_email.return_value = stored_user

        with pytest.raises(ConflictError) as exc_info:
            await AuthService(admin_settings, mock_users).signup("buyer@example.com", "lavender-fields")

        assert exc_info.value.status_code == 409
        mock_users.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_username(self, admin_settings: MagicMock, mock_users: MagicMock, stored_user: dict) -> None:
        """Test a taken username is a conflict."""
        mock_users.find_by_username.return_value = stored_user

        with pytest.raises(ConflictError):
            await AuthService(admin_settings, mock_users).signup("new@example.com", "lavender-fields", username="buyer")

        mock_users.find_by_username.assert_awaited_once_with("buyer")


class TestAuthServiceCustomerLogin:
    """Tests for AuthService.login with stored accounts."""

    @pytest.mark.asyncio
    async def test_email_identifier(self, admin_settings: MagicMock, mock_users: MagicMock, stored_user: dict) -> None:
        """Test email-looking identifiers look up by email."""
        mock_users.find_by_email.return_value = stored_user

        result = await AuthService(admin_settings, mock_users).login("buyer@example.com", "lavender-fields")

        assert result["user"]["id"] == "user-9"
        mock_users.find_by_username.assert_not_called()

    @pytest.mark.asyncio
    async def test_username_identifier(self, admin_settings: MagicMock, mock_users: MagicMock, stored_user: dict) -> None:
        """Test other identifiers look up by username."""
        mock_users.find_by_username.return_value = stored_user

        result = await AuthService(admin_settings, mock_users).login("buyer", "lavender-fields")

        assert result["user"]["username"] == "buyer"
        mock_users.find_by_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_password(self, admin_settings: MagicMock, mock_users: MagicMock, stored_user: dict) -> None:
        """Test a stored account with the wrong password never falls through to the env admin."""
        mock_users.find_by_username.return_value = stored_user

        with pytest.raises(AuthenticationError) as exc_info:
            await AuthService(admin_settings, mock_users).login("buyer", "s3cret")

        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_env_admin_fallback(self, admin_settings: MagicMock, mock_users: MagicMock) -> None:
        """Test the env admin logs in when no account matches."""
        result = await AuthService(admin_settings, mock_users).login("admin", "s3cret")

        assert result["user"]["role"] == "admin"
        mock_users.find_by_username.assert_awaited_once_with("admin")

    @pytest.mark.asyncio
    async def test_current_identity_reads_account(
        self, admin_settings: MagicMock, mock_users: MagicMock, stored_user: dict
    ) -> None:
        """Test /me details come from the account row for stored users."""
        mock_users.get.return_value = stored_user

        info = await AuthService(admin_settings, mock_users).current_identity(
            UserContext(user_id="user-9", email="buyer@example.com", role="customer")
        )

        assert info["name"] == "Buyer"
        assert "password_hash" not in info
