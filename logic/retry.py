"""Bounded retry for asynchronous operations."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from closet_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)
T = TypeVar("T")

DelayPolicy = Callable[[int], float]
"""Maps the 1-based number of the attempt that just failed to a wait in seconds."""

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY_SECONDS = 1.0


def fixed_delay(seconds: float) -> DelayPolicy:
    """Wait the same amount between every attempt."""

    def policy(_attempt: int) -> float:
        return seconds

    return policy


def exponential_backoff(base: float, factor: float = 2.0, maximum: Optional[float] = None) -> DelayPolicy:
    """Wait ``base * factor ** (attempt - 1)`` seconds, optionally capped at ``maximum``."""

    def policy(attempt: int) -> float:
        delay = base * factor ** (attempt - 1)
        return min(delay, maximum) if maximum is not None else delay

    return policy


async def retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay: float = DEFAULT_DELAY_SECONDS,
    *,
    delay_policy: Optional[DelayPolicy] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or ``max_attempts`` tries are spent.

    Attempts run strictly one after another. Between a failed attempt and the
    next one the wrapper waits ``delay_policy(attempt)`` seconds (a fixed
    ``delay`` by default); nothing is waited after the final attempt. When every
    attempt fails, the error from the last one is re-raised unchanged.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    policy = delay_policy or fixed_delay(delay)

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "retry_exhausted",
                    attempts=attempt,
                    error=type(exc).__name__,
                )
                raise
            wait_seconds = policy(attempt)
            log_event(
                LOGGER,
                logging.WARNING,
                "retry_attempt_failed",
                attempt=attempt,
                max_attempts=max_attempts,
                wait_seconds=wait_seconds,
                error=type(exc).__name__,
            )
            await sleep(wait_seconds)
            attempt += 1


__all__ = [
    "DEFAULT_DELAY_SECONDS",
    "DEFAULT_MAX_ATTEMPTS",
    "DelayPolicy",
    "exponential_backoff",
    "fixed_delay",
    "retry",
]
