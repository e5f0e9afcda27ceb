"""Retry policy for GitHub API calls, built on tenacity."""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx
from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from ...core.domain.exceptions import GitHubRateLimitError, GitHubServerError

logger = logging.getLogger(__name__)

RETRY_AFTER_MIN = 1.0
RETRY_AFTER_MAX = 60.0


def is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, GitHubRateLimitError)


def is_transient(exc: BaseException) -> bool:
    """Rate limits, 5xx responses and connection-level failures."""
    return isinstance(exc, (GitHubRateLimitError, GitHubServerError, httpx.TransportError))


class wait_retry_after(wait_base):
    """Honor the server's Retry-After hint, clamped, else defer to ``fallback``."""

    def __init__(self, fallback: wait_base) -> None:
        self._fallback = fallback

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        exc = outcome.exception() if outcome is not None else None
        if isinstance(exc, GitHubRateLimitError) and exc.retry_after is not None:
            return min(max(exc.retry_after, RETRY_AFTER_MIN), RETRY_AFTER_MAX)
        return self._fallback(retry_state)


def create_github_retry_policy(
    *,
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 16.0,
    retry_server_errors: bool = True,
    sleep: Callable[[float], None] = time.sleep,
):
    """Decorator retrying transient GitHub failures with exponential backoff.

    Waits double from ``min_wait`` up to ``max_wait`` (1, 2, 4, 8, 16 by
    default). With ``retry_server_errors=False`` only rate limits are retried,
    for non-idempotent calls where a 5xx may already have taken effect.
    The last exception is re-raised once attempts are exhausted.
    """
    predicate = is_transient if retry_server_errors else is_rate_limited
    return retry(
        retry=retry_if_exception(predicate),
        stop=stop_after_attempt(max_attempts),
        wait=wait_retry_after(wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
