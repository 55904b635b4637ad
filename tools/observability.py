"""Timing, logging and counters around async storage operations."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, ParamSpec, TypeVar

from closet_app import metrics
from closet_app.logging_config import ensure_correlation_id, get_logger, log_event, redact_for_log

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")


def _summarise_arguments(kwargs: Dict[str, Any], limit: int = 6) -> Dict[str, Any]:
    """Scalars pass through, everything else is reduced to its type name."""

    summary: Dict[str, Any] = {}
    for key in list(kwargs)[:limit]:
        value = kwargs[key]
        scalar = value is None or isinstance(value, (str, int, float, bool))
        summary[key] = value if scalar else type(value).__name__
    if len(kwargs) > limit:
        summary["truncated"] = True
    return redact_for_log(summary)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def instrument_operation(
    operation: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Log start, completion and failure of a coroutine and count the outcome.

    Counters are named ``<operation>.completed`` and ``<operation>.failed``.
    Exceptions are re-raised unchanged.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            correlation_id = ensure_correlation_id()
            started = time.perf_counter()
            log_event(
                LOGGER,
                logging.INFO,
                "operation_started",
                operation=operation,
                correlation_id=correlation_id,
                arguments=_summarise_arguments(kwargs),
            )
            try:
                result = await func(*args, **kwargs)
            except Exception:
                metrics.increment(f"{operation}.failed")
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "operation_failed",
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(started),
                    exc_info=True,
                )
                raise
            metrics.increment(f"{operation}.completed")
            log_event(
                LOGGER,
                logging.INFO,
                "operation_completed",
                operation=operation,
                correlation_id=correlation_id,
                duration_ms=_elapsed_ms(started),
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_operation"]
