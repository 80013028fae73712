"""
Storage Service Factory

Returns the Mock or Supabase storage service based on ENV_MODE.
"""

import logging
from functools import lru_cache

from cafechain.core.config import get_settings
from cafechain.services.storage.base import (
    BaseStorageService,
    StorageResult,
    make_object_name,
)
from cafechain.services.storage.mock import MockStorageService
from cafechain.services.storage.supabase import SupabaseStorageService

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage_service() -> BaseStorageService:
    """Get the configured storage service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Storage Service: Using MockStorageService (development mode)")
        return MockStorageService(
            bucket=settings.storage_bucket,
            failure_rate=settings.mock_failure_rate,
        )
    else:
        logger.info(f"Storage Service: Using SupabaseStorageService ({settings.env_mode.value} mode)")
        return SupabaseStorageService()


def reset_storage_service() -> None:
    """Clear the cached service instance."""
    get_storage_service.cache_clear()


__all__ = [
    "get_storage_service",
    "reset_storage_service",
    "BaseStorageService",
    "StorageResult",
    "MockStorageService",
    "SupabaseStorageService",
    "make_object_name",
]
