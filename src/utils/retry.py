"""Retry utilities for handling transient failures."""

import asyncio
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


async def retry_async(
    func: Callable[..., Any],
    *args: Any,
    max_attempts: int = 3,
    delay: float = 5.0,
    retryable_exceptions: tuple[type[BaseException], ...] = (Exception,),
    description: str = "operation",
    **kwargs: Any,
) -> Any:
    """Retry an async function with a fixed delay between attempts.

    Every attempt calls ``func`` from the top, so work done at the start of
    the function (like fetching a token) is repeated on each attempt.

    Args:
        func: Async function to call
        *args: Positional arguments for func
        max_attempts: Total number of attempts, including the first one
        delay: Delay between attempts (seconds)
        retryable_exceptions: Tuple of exception types to retry on
        description: Name of the operation for log messages
        **kwargs: Keyword arguments for func

    Returns:
        Result of the function

    Raises:
        The exception of the last attempt once all attempts have failed.
    """
    attempts = max(1, max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as e:
            if attempt == attempts:
                logger.warning(f"{description} failed after {attempts} attempt(s): {e}")
                raise

            logger.warning(
                f"{description} attempt {attempt}/{attempts} failed: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    # Unreachable, the loop either returns or raises
    raise RuntimeError(f"{description} exhausted retries")
