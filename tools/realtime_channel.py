"""Realtime key-value channel used for wishlist decision timers."""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

LOGGER = logging.getLogger(__name__)

Listener = Callable[[Optional[Dict[str, Any]]], None]


class RealtimeChannel(ABC):
    """Push and observe small JSON values keyed by path."""

    @abstractmethod
    async def set(self, path: str, value: Dict[str, Any]) -> None:
        """Replace the value stored at ``path`` and notify subscribers."""

    @abstractmethod
    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the current value at ``path``."""

    @abstractmethod
    def subscribe(self, path: str, callback: Listener) -> Callable[[], None]:
        """Invoke ``callback`` with the current value and on every change; returns an unsubscribe."""


class InMemoryRealtimeChannel(RealtimeChannel):
    """Process-local channel; callbacks fire synchronously on ``set``."""

    def __init__(self) -> None:
        self._values: Dict[str, Dict[str, Any]] = {}
        self._listeners: Dict[str, List[Listener]] = {}

    async def set(self, path: str, value: Dict[str, Any]) -> None:
        self._values[path] = copy.deepcopy(value)
        for listener in list(self._listeners.get(path, [])):
            listener(copy.deepcopy(value))

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        value = self._values.get(path)
        return copy.deepcopy(value) if value is not None else None

    def subscribe(self, path: str, callback: Listener) -> Callable[[], None]:
        listeners = self._listeners.setdefault(path, [])
        listeners.append(callback)
        current = self._values.get(path)
        callback(copy.deepcopy(current) if current is not None else None)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe


__all__ = ["RealtimeChannel", "InMemoryRealtimeChannel", "Listener"]
