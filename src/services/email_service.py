"""Email service using Resend for transactional emails."""

import html
import logging
from typing import Any

import resend

from src.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional emails via Resend."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize email service with Resend API key."""
        self.settings = settings or get_settings()
        resend.api_key = self.settings.resend_api_key
        self.from_email = self.settings.email_from_address
        self.contact_to_email = self.settings.contact_to_email

    @property
    def is_configured(self) -> bool:
        """Both an API key and a destination inbox are needed for notifications."""
        return bool(self.settings.resend_api_key and self.contact_to_email)

    async def send_contact_notification(
        self,
        name: str,
        email: str,
        message: str,
        message_id: str,
    ) -> dict[str, Any]:
        """Notify the shop inbox about a new contact form message.

        Best-effort: failures are logged and reported in the result, never raised.

        Args:
            name: Sender's name.
            email: Sender's email (used as reply-to).
            message: Message body.
            message_id: Stored contact message id.

        Returns:
            dict: success flag plus the Resend email id or the error.
        """
        if not self.is_configured:
            logger.debug("Contact notification skipped: Resend not configured")
            return {"success": False, "error": "not_configured"}

        safe_body = html.escape(message).replace("\n", "<br/>")
        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>New contact message</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <p><strong>From:</strong> {html.escape(name)} &lt;{html.escape(email)}&gt;</p>
    <div style="background: #f9fafb; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <p>{safe_body}</p>
    </div>
    <p style="font-size: 12px; color: #9ca3af;">Message ID: <code>{message_id}</code></p>
</body>
</html>
"""

        text_content = f"From: {name} <{email}>\n\n{message}\n\nMessage ID: {message_id}"

        try:
            response = resend.Emails.send({
                "from": self.from_email,
                "to": [self.contact_to_email],
                "reply_to": email,
                "subject": f"New contact message from {name}",
                "html": html_content,
                "text": text_content,
            })

            logger.info("Contact notification sent for message %s, id: %s", message_id, response.get("id"))
            return {"success": True, "email_id": response.get("id")}

        except Exception as e:
            logger.error("Failed to send contact notification for message %s: %s", message_id, str(e))
            return {"success": False, "error": str(e)}
