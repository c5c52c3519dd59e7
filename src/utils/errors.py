"""Error handling utilities for tedee-bridge.

Provides the error types raised by the API client and a classifier used to
label failures consistently in log output.
"""

import asyncio
import logging
from enum import Enum

import httpx

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for appropriate handling."""

    AUTH_FAILURE = "auth_failure"
    NETWORK = "network"
    TIMEOUT = "timeout"
    DEVICE_NOT_FOUND = "device_not_found"
    STALE_DATA = "stale_data"
    INTERNAL_ERROR = "internal_error"


class AuthenticationError(Exception):
    """Raised when no access token could be obtained from the token endpoint."""

    def __init__(self, attempts: int, last_exception: BaseException | None = None):
        self.attempts = attempts
        self.last_exception = last_exception
        msg = f"Authentication failed after {attempts} attempt(s)"
        if last_exception is not None:
            msg += f": {last_exception}"
        super().__init__(msg)


class DeviceNotFoundError(Exception):
    """Raised when a lock name or ID is not known to the bridge."""

    def __init__(self, device: str | int, message: str | None = None):
        self.device = device
        super().__init__(message or f"Lock {device} not found")


class StaleDataError(Exception):
    """Raised when a vendor payload lacks the fields needed to update a lock."""

    def __init__(self, device_id: int, field: str):
        self.device_id = device_id
        self.field = field
        super().__init__(f"Payload for lock {device_id} has no {field}")


def classify_exception(e: BaseException) -> ErrorCategory:
    """Classify an exception into an error category.

    Args:
        e: The exception to classify

    Returns:
        The matching ErrorCategory
    """
    if isinstance(e, AuthenticationError):
        return ErrorCategory.AUTH_FAILURE
    if isinstance(e, DeviceNotFoundError):
        return ErrorCategory.DEVICE_NOT_FOUND
    if isinstance(e, StaleDataError):
        return ErrorCategory.STALE_DATA
    if isinstance(e, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorCategory.TIMEOUT
    if isinstance(e, httpx.HTTPStatusError):
        if e.response.status_code in (401, 403):
            return ErrorCategory.AUTH_FAILURE
        return ErrorCategory.NETWORK
    if isinstance(e, (httpx.HTTPError, ConnectionError)):
        return ErrorCategory.NETWORK
    return ErrorCategory.INTERNAL_ERROR


def describe_exception(e: BaseException) -> str:
    """Return a short ``category: message`` string for log lines."""
    return f"{classify_exception(e).value}: {e}"
