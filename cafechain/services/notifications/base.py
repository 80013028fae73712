"""
Transactional email interface.

The only mail the backend sends today is the OTP verification code;
``MockNotificationService`` captures it in development and tests,
``SendGridNotificationService`` delivers it in production.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Outcome of one send. ``message_id`` is the provider's id when accepted."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class BaseNotificationService(ABC):

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short name shown in the startup banner and logs."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """False when credentials are missing; ``sendOTP`` answers 503 then."""

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Deliver one message. Provider errors come back as a failed result, never raised."""

    @abstractmethod
    async def health_check(self) -> bool:
        ...
