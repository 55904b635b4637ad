"""Wishlist decision timer."""

from __future__ import annotations

from typing import List, Optional

import pytest

from logic.decision_timer import DECISION_WINDOW, DecisionTimer, TimerState, format_remaining, timer_path
from tools.realtime_channel import InMemoryRealtimeChannel

WINDOW_MS = int(DECISION_WINDOW.total_seconds() * 1000)


class _Clock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.mark.asyncio
async def test_start_sets_48_hour_window() -> None:
    channel = InMemoryRealtimeChannel()
    timer = DecisionTimer(channel, clock_ms=_Clock(1_000))

    state = await timer.start("user-123", "w1")

    assert state == TimerState(start_time=1_000, end_time=1_000 + WINDOW_MS)
    assert await channel.get("timers/user-123/w1") == {"startTime": 1_000, "endTime": 1_000 + WINDOW_MS}


@pytest.mark.asyncio
async def test_start_is_idempotent_while_active_and_restarts_after_expiry() -> None:
    clock = _Clock(0)
    timer = DecisionTimer(InMemoryRealtimeChannel(), clock_ms=clock)
    first = await timer.start("user-123", "w1")

    clock.now = 60_000
    assert await timer.start("user-123", "w1") == first

    clock.now = first.end_time + 1
    restarted = await timer.start("user-123", "w1")
    assert restarted.start_time == clock.now


@pytest.mark.asyncio
async def test_status_of_unknown_timer_is_none() -> None:
    timer = DecisionTimer(InMemoryRealtimeChannel())
    assert await timer.status("user-123", "missing") is None


@pytest.mark.asyncio
async def test_watch_receives_current_and_updated_state() -> None:
    channel = InMemoryRealtimeChannel()
    timer = DecisionTimer(channel, clock_ms=_Clock(500))
    seen: List[Optional[TimerState]] = []

    unsubscribe = timer.watch("user-123", "w1", seen.append)
    state = await timer.start("user-123", "w1")
    unsubscribe()
    await channel.set(timer_path("user-123", "w1"), {"startTime": 1, "endTime": 2})

    assert seen == [None, state]


def test_remaining_time_helpers() -> None:
    state = TimerState(start_time=0, end_time=WINDOW_MS)

    assert state.remaining_ms(WINDOW_MS + 5) == 0
    assert not state.active(WINDOW_MS)
    assert format_remaining(state.remaining_ms(0)) == "48:00:00"
    assert format_remaining(3_723_999) == "01:02:03"


def test_payload_parsing_rejects_garbage() -> None:
    assert TimerState.from_payload(None) is None
    assert TimerState.from_payload({"startTime": "x", "endTime": 1}) is None
    assert TimerState.from_payload({"startTime": 1}) is None


def test_timer_path_rejects_nested_segments() -> None:
    with pytest.raises(ValueError):
        timer_path("user/123", "w1")
