"""Utility modules for retries and logging."""
from .connection import with_retry, wait_until, RETRYABLE_EXCEPTIONS
from .logging_config import (
    setup_logging,
    timed,
    timed_section_sync,
    perf_logger,
)

__all__ = [
    "with_retry",
    "wait_until",
    "RETRYABLE_EXCEPTIONS",
    "setup_logging",
    "timed",
    "timed_section_sync",
    "perf_logger",
]
