"""
Supabase Storage Service

Production image storage using the Supabase Storage REST API.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - SUPABASE_URL and SUPABASE_SERVICE_KEY must be set
    - STORAGE_BUCKET must be a public bucket

API Documentation:
    https://supabase.com/docs/reference/api/storage
"""

import logging

import httpx

from cafechain.core.config import get_settings
from cafechain.services.storage.base import BaseStorageService, StorageResult

logger = logging.getLogger(__name__)


class SupabaseStorageService(BaseStorageService):
    """Supabase Storage over httpx."""

    def __init__(self, timeout: float = 30.0):
        settings = get_settings()

        self.base_url = (settings.supabase_url or "").rstrip("/")
        self.service_key = settings.supabase_service_key
        self.bucket = settings.storage_bucket
        self.timeout = timeout

        if not self.is_configured:
            logger.warning("Supabase storage credentials not configured")

        logger.info(f"SupabaseStorageService initialized (bucket={self.bucket})")

    @property
    def provider_name(self) -> str:
        return "supabase"

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.service_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key or "",
        }

    def public_url(self, object_name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{object_name}"

    async def upload(
        self,
        object_name: str,
        content: bytes,
        content_type: str,
    ) -> StorageResult:
        if not self.is_configured:
            return StorageResult(
                success=False,
                error_message="Supabase storage not configured",
                provider="supabase",
            )

        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{object_name}"
        headers = self._headers()
        headers["Content-Type"] = content_type
        headers["x-upsert"] = "false"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, content=content, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Supabase upload error for {object_name}: {e}")
            return StorageResult(
                success=False,
                error_message=str(e),
                provider="supabase",
            )

        if response.status_code not in (200, 201):
            logger.error(
                f"Supabase upload rejected for {object_name}: "
                f"{response.status_code} {response.text[:200]}"
            )
            return StorageResult(
                success=False,
                error_message=f"Storage returned HTTP {response.status_code}",
                provider="supabase",
            )

        logger.info(f"Uploaded {object_name} to bucket {self.bucket}")

        return StorageResult(
            success=True,
            object_name=object_name,
            public_url=self.public_url(object_name),
            provider="supabase",
        )

    async def health_check(self) -> bool:
        if not self.is_configured:
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(
                    f"{self.base_url}/storage/v1/bucket/{self.bucket}",
                    headers=self._headers(),
                )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Supabase health check failed: {e}")
            return False
