"""48-hour decision timer for wishlist items.

Timer state lives on the realtime channel at ``timers/<owner>/<item id>`` as
``{"startTime": <epoch ms>, "endTime": <epoch ms>}`` so every device watching
the item sees the same countdown.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from closet_app.logging_config import get_logger, log_event
from tools.realtime_channel import RealtimeChannel

LOGGER = get_logger(__name__)

DECISION_WINDOW = timedelta(hours=48)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class TimerState:
    start_time: int
    end_time: int

    def remaining_ms(self, now_ms: int) -> int:
        return max(0, self.end_time - now_ms)

    def active(self, now_ms: int) -> bool:
        return now_ms < self.end_time

    def as_payload(self) -> Dict[str, int]:
        return {"startTime": self.start_time, "endTime": self.end_time}

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> Optional["TimerState"]:
        if not isinstance(payload, dict):
            return None
        try:
            return cls(start_time=int(payload["startTime"]), end_time=int(payload["endTime"]))
        except (KeyError, TypeError, ValueError):
            return None


def timer_path(owner_id: str, item_id: str) -> str:
    for value in (owner_id, item_id):
        if not value or "/" in value:
            raise ValueError(f"Invalid timer path segment: {value!r}")
    return f"timers/{owner_id}/{item_id}"


def format_remaining(ms: int) -> str:
    """Render milliseconds as ``HH:MM:SS``; hours are not wrapped at 24."""

    total_seconds = max(0, ms) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class DecisionTimer:
    """Starts and observes wishlist decision timers."""

    def __init__(
        self,
        channel: RealtimeChannel,
        clock_ms: Callable[[], int] = _now_ms,
        window: timedelta = DECISION_WINDOW,
    ) -> None:
        self.channel = channel
        self._clock_ms = clock_ms
        self.window_ms = int(window.total_seconds() * 1000)

    async def status(self, owner_id: str, item_id: str) -> Optional[TimerState]:
        return TimerState.from_payload(await self.channel.get(timer_path(owner_id, item_id)))

    async def start(self, owner_id: str, item_id: str) -> TimerState:
        """Start the countdown; an already running timer is returned unchanged."""

        now = self._clock_ms()
        current = await self.status(owner_id, item_id)
        if current is not None and current.active(now):
            return current
        state = TimerState(start_time=now, end_time=now + self.window_ms)
        await self.channel.set(timer_path(owner_id, item_id), state.as_payload())
        log_event(LOGGER, logging.INFO, "decision_timer_started", item_id=item_id, end_time=state.end_time)
        return state

    def describe(self, state: TimerState) -> Dict[str, Any]:
        """Channel payload plus whether the timer is running and an ``HH:MM:SS`` countdown."""

        now = self._clock_ms()
        payload: Dict[str, Any] = dict(state.as_payload())
        payload["active"] = state.active(now)
        payload["remaining"] = format_remaining(state.remaining_ms(now))
        return payload

    def watch(
        self,
        owner_id: str,
        item_id: str,
        callback: Callable[[Optional[TimerState]], None],
    ) -> Callable[[], None]:
        """Forward parsed timer updates to ``callback``; returns an unsubscribe function."""

        return self.channel.subscribe(
            timer_path(owner_id, item_id),
            lambda payload: callback(TimerState.from_payload(payload)),
        )


__all__ = ["DECISION_WINDOW", "DecisionTimer", "TimerState", "format_remaining", "timer_path"]
