"""
Notification Service Factory

Returns the Mock or SendGrid notification service based on ENV_MODE.
"""

import logging
from functools import lru_cache

from cafechain.core.config import get_settings
from cafechain.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)
from cafechain.services.notifications.mock import MockNotificationService, SentEmail
from cafechain.services.notifications.sendgrid import SendGridNotificationService

logger = logging.getLogger(__name__)


@lru_cache()
def get_notification_service() -> BaseNotificationService:
    """Get the configured notification service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Notification Service: Using MockNotificationService (development mode)")
        return MockNotificationService(failure_rate=settings.mock_failure_rate)
    else:
        logger.info(f"Notification Service: Using SendGridNotificationService ({settings.env_mode.value} mode)")
        return SendGridNotificationService()


def reset_notification_service() -> None:
    """Clear the cached service instance."""
    get_notification_service.cache_clear()


__all__ = [
    "get_notification_service",
    "reset_notification_service",
    "BaseNotificationService",
    "NotificationResult",
    "MockNotificationService",
    "SendGridNotificationService",
    "SentEmail",
]
