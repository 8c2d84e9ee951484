"""Contact form submissions and their admin workflow."""

import logging
import math
from datetime import datetime, timezone
from typing import Any

from supabase import Client

from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.models.contact import CONTACT_STATUSES, ContactMessage, ContactMessageCreate
from src.services.email_service import EmailService

logger = logging.getLogger(__name__)

CONTACT_TABLE = "contact_messages"
MAX_PAGE_SIZE = 100


class ContactService:
    """Service for storing contact messages and notifying the shop."""

    def __init__(self, client: Client, email_service: EmailService | None = None) -> None:
        """Initialize contact service.

        Args:
            client: Open Supabase client from the database handle.
            email_service: Optional email service override for testing.
        """
        self.client = client
        self.email_service = email_service or EmailService()

    async def submit(
        self,
        name: str,
        email: str,
        message: str,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> ContactMessage:
        """Store a contact message, then send the notification email.

        The email is best-effort; a failed send does not fail the submission.

        Raises:
            Exception: If the insert returns no row.
        """
        data = ContactMessageCreate(
            name=name.strip(),
            email=email.strip().lower(),
            message=message.strip(),
            ip=ip,
            user_agent=user_agent,
        )
        result = self.client.table(CONTACT_TABLE).insert(dict(data)).execute()
        if not result.data:
            raise Exception("Failed to store contact message")
        stored = result.data[0]
        logger.info("Stored contact message %s", stored["id"])

        await self.email_service.send_contact_notification(
            name=stored["name"],
            email=stored["email"],
            message=stored["message"],
            message_id=str(stored["id"]),
        )
        return stored

    async def list_messages(
        self,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> dict[str, Any]:
        """Paginated listing, newest first."""
        page = max(1, page)
        page_size = min(MAX_PAGE_SIZE, max(1, page_size))
        start = (page - 1) * page_size

        query = self.client.table(CONTACT_TABLE).select("*", count="exact")
        if status:
            query = query.eq("status", status)
        response = query.order("created_at", desc=True).range(start, start + page_size - 1).execute()

        total = response.count or 0
        return {
            "items": response.data or [],
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": math.ceil(total / page_size) or 1,
        }

    async def update_status(self, message_id: str, status: str) -> ContactMessage:
        """Set the status, stamping read_at or responded_at.

        Raises:
            ValidationError: If the status is unknown.
            NotFoundError: If the message does not exist.
        """
        status = status.strip().lower()
        if status not in CONTACT_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        now = datetime.now(timezone.utc).isoformat()
        updates: dict[str, Any] = {"status": status, "updated_at": now}
        if status == "read":
            updates["read_at"] = now
        elif status == "resolved":
            updates["responded_at"] = now

        result = (
            self.client.table(CONTACT_TABLE)
            .update(updates)
            .eq("id", message_id)
            .execute()
        )
        if not result.data:
            raise NotFoundError("Message not found")
        logger.info("Contact message %s marked %s", message_id, status)
        return result.data[0]
