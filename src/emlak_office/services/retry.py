"""Retry utilities using tenacity.

Only idempotent reads are retried; writes go out exactly once.
"""
from __future__ import annotations

import logging
from typing import Callable, Type, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from emlak_office.core.exceptions import TransportError
from emlak_office.core.logging_config import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")


def build_retrying(
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    retry_exceptions: tuple[Type[Exception], ...] = (TransportError,),
    max_wait: float = 10,
) -> Retrying:
    """
    Build a tenacity ``Retrying`` controller for read calls.

    Args:
        max_attempts: Total attempts including the first one.
        backoff_seconds: Exponential backoff multiplier; 0 disables waiting.
        retry_exceptions: Exception types that trigger another attempt.
        max_wait: Upper bound on a single wait.

    Returns:
        Retrying that re-raises the last error once attempts run out.
    """
    return Retrying(
        retry=retry_if_exception_type(retry_exceptions),
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=backoff_seconds, min=0, max=max_wait),
        before_sleep=before_sleep_log(LOGGER, log_level=logging.INFO),
        reraise=True,
    )


def call_with_retry(func: Callable[[], T], retrying: Retrying) -> T:
    """Run ``func`` under a fresh copy of ``retrying``."""
    return retrying.copy()(func)


__all__ = [
    "build_retrying",
    "call_with_retry",
]
