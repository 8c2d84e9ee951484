"""Authentication business logic service."""

import asyncio
import logging
import re
import secrets
from typing import Any

import bcrypt

from src.api.middleware.auth import create_access_token
from src.api.middleware.error_handler import AuthenticationError, ConflictError
from src.core.config import Settings, get_settings
from src.models.user import User
from src.schemas.auth import UserContext
from src.services.user_store import UserStore

logger = logging.getLogger(__name__)

ENV_ADMIN_NAME = "Env Admin"
ENV_ADMIN_TOKEN_SECONDS = 24 * 3600
BCRYPT_ROUNDS = 12
EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")


def _matches(candidate: str, expected: str) -> bool:
    return bool(expected) and secrets.compare_digest(candidate.encode(), expected.encode())


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def public_user(user: User) -> dict[str, Any]:
    """Account fields safe to return to the client."""
    return {
        "id": user["id"],
        "email": user["email"],
        "username": user.get("username"),
        "name": user.get("name"),
        "role": user["role"],
    }


class AuthService:
    """Service for customer accounts and the environment-configured admin.

    The env admin has no row in `users`; its identity comes from
    ADMIN_USERNAME / ADMIN_EMAIL / ADMIN_PASSWORD. Without a user store only
    the env admin can log in.
    """

    def __init__(self, settings: Settings | None = None, users: UserStore | None = None) -> None:
        self.settings = settings or get_settings()
        self.users = users

    def env_admin_info(self) -> dict[str, Any]:
        """Public view of the env admin identity."""
        return {
            "id": None,
            "email": self.settings.admin_email or None,
            "username": self.settings.admin_username or None,
            "name": ENV_ADMIN_NAME,
            "role": "admin",
        }

    def _session(self, user: User) -> dict[str, Any]:
        lifetime = self.settings.jwt_expiry_hours * 3600
        token = create_access_token(
            role=user["role"],
            sub=str(user["id"]),
            email=user["email"],
            expires_in_seconds=lifetime,
        )
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": lifetime,
            "user": public_user(user),
        }

    async def signup(
        self,
        email: str,
        password: str,
        name: str | None = None,
        username: str | None = None,
    ) -> dict[str, Any]:
        """Register a customer account and sign it in.

        Returns:
            dict: access_token, token_type, expires_in and user.

        Raises:
            ConflictError: If the email or username is already taken.
        """
        email_norm = email.strip().lower()
        username_norm = (username or "").strip().lower() or None

        if await self.users.find_by_email(email_norm):
            raise ConflictError(
                "Email already in use", details=[{"loc": ["email"], "msg": "Already registered", "type": "conflict"}]
            )
        if username_norm and await self.users.find_by_username(username_norm):
            raise ConflictError(
                "Username already in use", details=[{"loc": ["username"], "msg": "Already registered", "type": "conflict"}]
            )

        password_hash = await asyncio.to_thread(hash_password, password)
        user = await self.users.create(
            {
                "email": email_norm,
                "username": username_norm,
                "password_hash": password_hash,
                "name": (name or "").strip() or None,
                "role": "customer",
            }
        )
        return self._session(user)

    async def login(self, identifier: str, password: str) -> dict[str, Any]:
        """Log a stored account in, falling back to the env admin.

        Identifiers that look like an email are matched against `email`,
        anything else against `username`.

        Raises:
            AuthenticationError: On any credential mismatch; the message never
                says which part was wrong.
        """
        identifier = identifier.strip()
        if self.users is not None:
            if EMAIL_RE.match(identifier):
                user = await self.users.find_by_email(identifier)
            else:
                user = await self.users.find_by_username(identifier)
            if user:
                if not await asyncio.to_thread(verify_password, password, user["password_hash"]):
                    logger.warning("Failed login for user %s", user["id"])
                    raise AuthenticationError("Invalid credentials")
                logger.info("User %s logged in", user["id"])
                return self._session(user)

        return await self.login_env_admin(identifier, password)

    async def login_env_admin(self, identifier: str, password: str) -> dict[str, Any]:
        """Log the env admin in.

        Args:
            identifier: Admin username, or admin email (case-insensitive).
            password: Admin password.

        Returns:
            dict: access_token, token_type, expires_in and user.

        Raises:
            AuthenticationError: If admin login is not configured or the credentials are wrong.
        """
        settings = self.settings
        if not settings.admin_password:
            logger.warning("Admin login attempted but ADMIN_PASSWORD is not configured")
            raise AuthenticationError("Invalid credentials")

        identifier = identifier.strip()
        id_ok = _matches(identifier, settings.admin_username) or _matches(
            identifier.lower(), settings.admin_email.lower()
        )
        password_ok = _matches(password, settings.admin_password)
        if not (id_ok and password_ok):
            logger.warning("Failed admin login for identifier %s", identifier)
            raise AuthenticationError("Invalid credentials")

        token = create_access_token(
            role="admin",
            email=settings.admin_email or None,
            expires_in_seconds=ENV_ADMIN_TOKEN_SECONDS,
        )
        logger.info("Env admin logged in")
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": ENV_ADMIN_TOKEN_SECONDS,
            "user": self.env_admin_info(),
        }

    def describe(self, user: UserContext) -> dict[str, Any]:
        """Identity from token claims alone."""
        if user.user_id is None and user.is_admin:
            return self.env_admin_info()
        return {
            "id": user.user_id,
            "email": user.email,
            "username": None,
            "name": None,
            "role": user.role,
        }

    async def current_identity(self, user: UserContext) -> dict[str, Any]:
        """Identity returned by /auth/me, filled from the account row when there is one."""
        if user.user_id and self.users is not None:
            account = await self.users.get(user.user_id)
            if account:
                return public_user(account)
        return self.describe(user)
