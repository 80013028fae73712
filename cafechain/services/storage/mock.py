"""
Mock Storage Service

Keeps uploaded objects in memory for development and tests and hands
out fake public URLs.
"""

import logging
import random

from cafechain.services.storage.base import BaseStorageService, StorageResult

logger = logging.getLogger(__name__)


class MockStorageService(BaseStorageService):
    """In-memory object store."""

    def __init__(self, bucket: str, failure_rate: float = 0.0):
        self.bucket = bucket
        self.failure_rate = failure_rate
        self.objects: dict[str, bytes] = {}
        logger.info(f"MockStorageService initialized (bucket={bucket})")

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def is_configured(self) -> bool:
        return True

    async def upload(
        self,
        object_name: str,
        content: bytes,
        content_type: str,
    ) -> StorageResult:
        if random.random() < self.failure_rate:
            logger.warning(f"Mock upload failed (simulated) for {object_name}")
            return StorageResult(
                success=False,
                error_message="Simulated storage failure",
                provider="mock",
            )

        self.objects[object_name] = content
        public_url = f"https://storage.mock/{self.bucket}/{object_name}"
        logger.info(f"Mock stored {object_name} ({len(content)} bytes, {content_type})")

        return StorageResult(
            success=True,
            object_name=object_name,
            public_url=public_url,
            provider="mock",
        )

    async def health_check(self) -> bool:
        return True
