"""
Core module initialization.
Exports configuration, logging and error types.
"""

from cafechain.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from cafechain.core.exceptions import (
    AppError,
    InvalidInput,
    InvalidCode,
    Unauthorized,
    NotFound,
    Conflict,
    PayloadTooLarge,
    UpstreamError,
    ServiceUnavailable,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "AppError",
    "InvalidInput",
    "InvalidCode",
    "Unauthorized",
    "NotFound",
    "Conflict",
    "PayloadTooLarge",
    "UpstreamError",
    "ServiceUnavailable",
]
