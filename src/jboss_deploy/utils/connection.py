"""Retry helpers for transport-level failures."""
import logging
from functools import wraps
from typing import Any, Callable, TypeVar

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
    before_sleep_log,
    RetryError,
)

from ..exceptions import ManagementConnectionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Network exceptions worth retrying; server-reported failures never are
RETRYABLE_EXCEPTIONS = (
    ManagementConnectionError,
    httpx.TransportError,
    ConnectionRefusedError,
    ConnectionResetError,
    TimeoutError,
)


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
) -> Callable:
    """Decorator factory for retry logic with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        exceptions: Tuple of exception types to retry on
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception_type(exceptions),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return func(*args, **kwargs)

        return wrapper

    return decorator


def wait_until(
    predicate: Callable[[], bool],
    timeout: float,
    interval: float = 0.1,
) -> bool:
    """Poll a predicate until it returns True or the timeout elapses.

    Returns:
        True if the predicate succeeded, False on timeout
    """
    poll = retry(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda ready: not ready),
    )(predicate)
    try:
        return poll()
    except RetryError:
        return False
