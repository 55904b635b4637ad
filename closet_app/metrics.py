"""In-process counters for storage health.

The record assembler reports an empty closet whether the owner has no records
or every read failed. These counters let operators tell the two apart.
"""

from __future__ import annotations

import threading
from collections import Counter
from typing import Dict

_lock = threading.Lock()
_counters: Counter = Counter()


def increment(name: str, amount: int = 1) -> None:
    """Add ``amount`` to the named counter."""
    with _lock:
        _counters[name] += amount


def get_metrics() -> Dict[str, int]:
    """Snapshot of all counters."""
    with _lock:
        return dict(_counters)


def reset_metrics() -> None:
    """Reset all counters (for testing)."""
    with _lock:
        _counters.clear()


__all__ = ["increment", "get_metrics", "reset_metrics"]
