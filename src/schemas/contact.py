"""Contact form Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactSubmit(BaseModel):
    """Schema for POST /contact.

    `website` is a honeypot field; humans never fill it in.
    """

    name: str = Field(..., min_length=2, max_length=100, description="Sender name")
    email: EmailStr = Field(..., max_length=320, description="Sender email")
    message: str = Field(..., min_length=5, max_length=5000, description="Message body")
    website: str | None = Field(default=None, description="Leave empty")


class ContactSubmitResponse(BaseModel):
    """Response for a contact submission."""

    ok: bool = Field(default=True)
    id: str | None = Field(default=None, description="Stored message id")


class ContactStatusUpdate(BaseModel):
    """Schema for an admin status change."""

    status: Literal["new", "read", "resolved"] = Field(description="New status")


class ContactMessageResponse(BaseModel):
    """Schema for a stored contact message."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Message id")
    name: str = Field(description="Sender name")
    email: str = Field(description="Sender email")
    message: str = Field(description="Message body")
    status: Literal["new", "read", "resolved"] = Field(description="Workflow status")
    ip: str | None = Field(default=None, description="Client IP")
    user_agent: str | None = Field(default=None, description="Client user agent")
    tags: list[str] | None = Field(default=None, description="Tags")
    read_at: datetime | None = Field(default=None, description="When it was marked read")
    responded_at: datetime | None = Field(default=None, description="When it was marked resolved")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")


class ContactMessageListResponse(BaseModel):
    """Paginated contact messages."""

    items: list[ContactMessageResponse] = Field(description="Messages, newest first")
    total: int = Field(description="Total matching messages")
    page: int = Field(description="Current page")
    page_size: int = Field(description="Page size")
    pages: int = Field(description="Total pages")
