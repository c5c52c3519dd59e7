"""Utility modules for tedee-bridge."""

from utils.errors import (
    AuthenticationError,
    DeviceNotFoundError,
    ErrorCategory,
    StaleDataError,
    classify_exception,
    describe_exception,
)
from utils.retry import retry_async

__all__ = [
    "AuthenticationError",
    "DeviceNotFoundError",
    "ErrorCategory",
    "StaleDataError",
    "classify_exception",
    "describe_exception",
    "retry_async",
]
