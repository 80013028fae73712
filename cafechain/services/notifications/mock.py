"""
Mock Notification Service

Development and test mailer: nothing leaves the process. Every accepted
message is appended to ``outbox`` so tests can read the OTP back out of it.
"""

import logging
import random
import uuid
from dataclasses import dataclass
from typing import Optional

from cafechain.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    to_email: str
    subject: str
    body_html: str
    body_text: Optional[str]
    message_id: str


class MockNotificationService(BaseNotificationService):
    """
    In-memory mailer.

    Args:
        failure_rate: Share of sends (0.0 - 1.0) that fail on purpose,
            from ``MOCK_FAILURE_RATE``
    """

    def __init__(self, failure_rate: float = 0.0):
        self.failure_rate = failure_rate
        self.outbox: list[SentEmail] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def is_configured(self) -> bool:
        return True

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        if random.random() < self.failure_rate:
            logger.warning(f"Mock email to {to_email} dropped (simulated failure)")
            return NotificationResult(success=False, error_message="Simulated email failure", provider="mock")

        sent = SentEmail(
            to_email=to_email,
            subject=subject,
            body_html=body_html,
            body_text=body_text,
            message_id=f"mock_{uuid.uuid4().hex[:12]}",
        )
        self.outbox.append(sent)
        logger.info(f"📧 Mock email to {to_email}: {subject} ({sent.message_id})")

        return NotificationResult(success=True, message_id=sent.message_id, provider="mock")

    async def health_check(self) -> bool:
        return True
