"""
Window clock utilities for fixed-duration, epoch-aligned windows.

This module provides centralized window arithmetic so that every observer
agrees on window boundaries without coordination: windows start at whole
multiples of the duration since the epoch, not at process start.
"""

import time
from datetime import datetime, timezone
from typing import Optional

from ..data.models import Window

FIFTEEN_MINUTES_MS = 15 * 60_000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def current_window(now: int, window_duration_ms: int = FIFTEEN_MINUTES_MS) -> Window:
    """
    Get the window containing now.

    Args:
        now: Time in epoch milliseconds
        window_duration_ms: Window length in milliseconds

    Returns:
        Window with start = floor(now / duration) * duration
    """
    if window_duration_ms <= 0:
        raise ValueError(f"window_duration_ms must be positive, got {window_duration_ms}")

    start_ms = (now // window_duration_ms) * window_duration_ms
    return Window(start_ms=start_ms, end_ms=start_ms + window_duration_ms)


def time_remaining(now: int, end_ms: int) -> int:
    """
    Milliseconds until end_ms, never negative.

    Args:
        now: Time in epoch milliseconds
        end_ms: Target time in epoch milliseconds
    """
    return max(0, end_ms - now)


def effective_time_remaining(now: int, window: Window, market_end_ms: Optional[int] = None) -> int:
    """
    Time remaining, preferring the selected market's own end time.

    Market resolution times drift slightly from the idealized grid, so the
    market end is authoritative when known and the window end is the fallback.
    """
    if market_end_ms is not None:
        return time_remaining(now, market_end_ms)
    return time_remaining(now, window.end_ms)


def trading_session(ts: int) -> str:
    """
    Label the spot market session by UTC hour.

    Asia runs 00-08, Europe 07-16 and US 13-22 UTC; overlaps are reported
    as such, anything else is off-hours.
    """
    hour = datetime.fromtimestamp(ts / 1000.0, tz=timezone.utc).hour
    in_asia = 0 <= hour < 8
    in_europe = 7 <= hour < 16
    in_us = 13 <= hour < 22

    if in_europe and in_us:
        return "Europe/US overlap"
    if in_asia and in_europe:
        return "Asia/Europe overlap"
    if in_asia:
        return "Asia"
    if in_europe:
        return "Europe"
    if in_us:
        return "US"
    return "Off-hours"


def format_time_left(ms: Optional[int]) -> str:
    """Format a remaining duration as MM:SS."""
    if ms is None:
        return "--:--"
    total_seconds = max(0, ms // 1000)
    return f"{total_seconds // 60:02d}:{total_seconds % 60:02d}"


def format_ms(ts: int) -> str:
    """Format epoch milliseconds as an ISO8601 UTC string."""
    return datetime.fromtimestamp(ts / 1000.0, tz=timezone.utc).isoformat()


class WindowClock:
    """Window arithmetic bound to one window duration."""

    def __init__(self, window_duration_ms: int = FIFTEEN_MINUTES_MS):
        if window_duration_ms <= 0:
            raise ValueError(f"window_duration_ms must be positive, got {window_duration_ms}")
        self.window_duration_ms = window_duration_ms

    def current_window(self, now: int) -> Window:
        return current_window(now, self.window_duration_ms)

    def time_remaining(self, now: int, end_ms: int) -> int:
        return time_remaining(now, end_ms)

    def is_new_window(self, previous_start: Optional[int], now: int) -> bool:
        """True when now falls outside the window that started at previous_start."""
        return previous_start != self.current_window(now).start_ms
