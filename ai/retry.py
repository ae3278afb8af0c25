"""
Shared tenacity policy for the provider services.

Attempts default to 1: a failed call is reported, not retried.  Set
VIZAI_MAX_ATTEMPTS to allow retries of transient provider errors with
exponential backoff.
"""

from __future__ import annotations

import logging
import os
from typing import Tuple, Type

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

_MIN_WAIT_SECONDS = 2
_MAX_WAIT_SECONDS = 60


def max_attempts() -> int:
    try:
        return max(1, int(os.getenv("VIZAI_MAX_ATTEMPTS", "1")))
    except ValueError:
        return 1


def _stop_after_configured_attempts(retry_state) -> bool:
    # Read at call time so a .env loaded after import still applies.
    return stop_after_attempt(max_attempts())(retry_state)


def make_retry_decorator(
    retryable: Tuple[Type[BaseException], ...],
    logger: logging.Logger,
):
    return retry(
        retry=retry_if_exception_type(retryable),
        stop=_stop_after_configured_attempts,
        wait=wait_exponential(multiplier=1, min=_MIN_WAIT_SECONDS, max=_MAX_WAIT_SECONDS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
