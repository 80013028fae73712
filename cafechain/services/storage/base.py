"""
Object Storage Abstract Base Class

Defines the interface for persisting uploaded menu images and
resolving their public URLs.
"""

import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class StorageResult:
    """Result from storing an object."""
    success: bool
    object_name: Optional[str] = None
    public_url: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def make_object_name(original_filename: Optional[str]) -> str:
    """Unique object name that keeps the upload's file extension."""
    ext = os.path.splitext(original_filename or "")[1].lower()
    stamp = int(datetime.now().timestamp() * 1000)
    return f"{stamp}-{uuid.uuid4().hex[:12]}{ext}"


class BaseStorageService(ABC):
    """Abstract base class for object storage services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        pass

    @abstractmethod
    async def upload(
        self,
        object_name: str,
        content: bytes,
        content_type: str,
    ) -> StorageResult:
        """Store bytes under ``object_name`` and return its public URL."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass
