"""Bounded exponential backoff for idempotent network operations."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

logger = logging.getLogger("telegraph_archiver")

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Connection problems, timeouts, 429 and 5xx answers are worth repeating.

    Client errors (4xx) are permanent and fail immediately.
    """
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    response = getattr(exc, "response", None)
    if isinstance(exc, requests.RequestException) and response is not None:
        status = response.status_code
        return status == 429 or 500 <= status < 600
    return False


class RetryPolicy:
    """Retry an operation with exponential backoff.

    Stops after ``max_retries`` repetitions or ``max_elapsed`` seconds,
    whichever comes first, and re-raises the last error. Only wrap
    operations that are safe to repeat: page creation is not one of them.
    """

    def __init__(
        self,
        max_retries: int = 10,
        max_elapsed: float = 300.0,
        multiplier: float = 0.5,
        max_wait: float = 30.0,
        retryable: Callable[[BaseException], bool] = is_transient,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.max_retries = max_retries
        self.max_elapsed = max_elapsed
        self.multiplier = multiplier
        self.max_wait = max_wait
        self.retryable = retryable
        self.sleep = sleep or time.sleep

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retries + 1) | stop_after_delay(self.max_elapsed),
            wait=wait_exponential(multiplier=self.multiplier, max=self.max_wait),
            retry=retry_if_exception(self.retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self.sleep,
            reraise=True,
        )

    def call(self, operation: Callable[..., T], *args, **kwargs) -> T:
        """Run ``operation`` until it succeeds or the policy gives up."""
        return self._retrying()(operation, *args, **kwargs)

    @classmethod
    def from_config(cls, config) -> "RetryPolicy":
        return cls(max_retries=config.max_retries, max_elapsed=config.max_retry_elapsed)
