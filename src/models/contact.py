"""Contact message model type definitions for database operations."""

from datetime import datetime
from typing import Literal, TypedDict


ContactStatus = Literal["new", "read", "resolved"]

CONTACT_STATUSES: tuple[str, ...] = ("new", "read", "resolved")


class ContactMessage(TypedDict):
    """contact_messages table row representation."""

    id: str
    name: str
    email: str
    message: str
    status: ContactStatus
    ip: str | None
    user_agent: str | None
    tags: list[str]
    read_at: datetime | None
    responded_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ContactMessageCreate(TypedDict, total=False):
    """Data required to store a new contact message."""

    name: str
    email: str
    message: str
    ip: str | None
    user_agent: str | None
