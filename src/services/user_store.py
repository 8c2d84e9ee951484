"""Persistence for customer accounts in the Supabase `users` table."""

import logging

from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import Client

from src.api.middleware.error_handler import ConflictError
from src.models.user import User, UserCreate

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
UNIQUE_VIOLATION = "23505"


class UserStore:
    """Account lookups and registration."""

    def __init__(self, client: Client) -> None:
        self.client = client

    async def _find_one(self, column: str, value: str) -> User | None:
        response = (
            self.client.table(USERS_TABLE)
            .select("*")
            .eq(column, value)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def find_by_email(self, email: str) -> User | None:
        return await self._find_one("email", email.strip().lower())

    async def find_by_username(self, username: str) -> User | None:
        return await self._find_one("username", username.strip().lower())

    async def get(self, user_id: str) -> User | None:
        return await self._find_one("id", user_id)

    async def create(self, data: UserCreate) -> User:
        """Insert a new account.

        Raises:
            ConflictError: If the email or username was registered concurrently.
            Exception: If the insert returns no row.
        """
        try:
            response = self.client.table(USERS_TABLE).insert(dict(data)).execute()
        except PostgrestAPIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError("Email or username already in use") from e
            raise
        if not response.data:
            raise Exception("Failed to create user")
        user = response.data[0]
        logger.info("Registered user %s", user["id"])
        return user
