"""Customer account model type definitions for database operations."""

from datetime import datetime
from typing import Literal, TypedDict

UserRole = Literal["admin", "customer"]


class User(TypedDict):
    """users table row representation.

    `email` and `username` are stored lower-cased; both carry unique indexes
    (username's is partial, since it is optional).
    """

    id: str
    email: str
    username: str | None
    password_hash: str
    name: str | None
    role: UserRole
    created_at: datetime
    updated_at: datetime


class UserCreate(TypedDict, total=False):
    """Data required to register a new account."""

    email: str
    username: str | None
    password_hash: str
    name: str | None
    role: UserRole
