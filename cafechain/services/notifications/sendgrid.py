"""
SendGrid Notification Service

Production email delivery through the SendGrid v3 API.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - SENDGRID_API_KEY and SENDER_EMAIL must be set
"""

import asyncio
import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from cafechain.core.config import get_settings
from cafechain.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


class SendGridNotificationService(BaseNotificationService):
    """Production notification service using SendGrid."""

    def __init__(self):
        settings = get_settings()

        self.from_email = settings.sender_email
        self.from_name = settings.sender_name

        if settings.sendgrid_api_key:
            self.client = SendGridAPIClient(settings.sendgrid_api_key)
        else:
            self.client = None
            logger.warning("SendGrid credentials not configured")

        if not self.from_email:
            logger.warning("SENDER_EMAIL not configured")

        logger.info("SendGridNotificationService initialized")

    @property
    def provider_name(self) -> str:
        return "sendgrid"

    @property
    def is_configured(self) -> bool:
        return self.client is not None and bool(self.from_email)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send email via SendGrid."""
        if not self.is_configured:
            return NotificationResult(
                success=False,
                error_message="SendGrid not configured",
                provider="sendgrid"
            )

        message = Mail(
            from_email=(self.from_email, self.from_name),
            to_emails=to_email,
            subject=subject,
            html_content=body_html,
            plain_text_content=body_text
        )

        try:
            # The SendGrid client is blocking
            response = await asyncio.to_thread(self.client.send, message)
        except Exception as e:
            logger.error(f"SendGrid error sending to {to_email}: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="sendgrid"
            )

        logger.info(f"Email sent to {to_email}: {response.status_code}")

        return NotificationResult(
            success=response.status_code in (200, 201, 202),
            message_id=response.headers.get("X-Message-Id"),
            error_message=None if response.status_code in (200, 201, 202) else f"HTTP {response.status_code}",
            provider="sendgrid"
        )

    async def health_check(self) -> bool:
        return self.is_configured
