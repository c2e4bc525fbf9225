"""ATR (Average True Range) calculations and reference price bands"""

import math
from collections import deque
from typing import Iterable, Optional

from ..data.models import Kline


def _is_usable(bar: Kline) -> bool:
    return all(
        value is not None and math.isfinite(value)
        for value in (bar.high, bar.low, bar.close)
    )


def calculate_true_range(current: Kline, previous: Optional[Kline] = None) -> float:
    """
    Calculate True Range for a single bar

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Args:
        current: Current bar
        previous: Previous bar (None for first bar)

    Returns:
        True Range value
    """
    if previous is None:
        return current.high - current.low

    range_hl = current.high - current.low
    range_hc = abs(current.high - previous.close)
    range_lc = abs(current.low - previous.close)

    return max(range_hl, range_hc, range_lc)


def calculate_atr(klines: Iterable[Kline], period: int = 14) -> Optional[float]:
    """
    Calculate Average True Range using Simple Moving Average

    Bars with a non-finite high, low or close are skipped; the previous close
    for the next bar comes from the last usable bar.

    Args:
        klines: Bars in chronological order
        period: ATR period (default 14)

    Returns:
        ATR value or None if fewer than period + 1 usable bars
    """
    if period <= 0:
        return None

    bars = [bar for bar in klines if _is_usable(bar)]
    if len(bars) < period + 1:
        return None

    recent = bars[-(period + 1):]
    true_ranges = [
        calculate_true_range(recent[i], recent[i - 1])
        for i in range(1, len(recent))
    ]

    return sum(true_ranges) / len(true_ranges)


def calculate_atr_bands(reference_price: Optional[float], atr: Optional[float],
                        multiplier: float) -> Optional[tuple[float, float]]:
    """
    Calculate volatility bands around the reference price

    Args:
        reference_price: Window reference price
        atr: Current ATR
        multiplier: Non-negative band width in ATR units

    Returns:
        (lower, upper) or None if either input is unknown or multiplier is negative
    """
    if reference_price is None or atr is None or multiplier < 0:
        return None

    offset = multiplier * atr
    return reference_price - offset, reference_price + offset


class ATRCalculator:
    """Rolling ATR over a bounded bar history"""

    def __init__(self, period: int = 14, max_bars: Optional[int] = None):
        self.period = period
        self.bars: deque[Kline] = deque(maxlen=max_bars or period * 4)

    def update(self, kline: Kline) -> Optional[float]:
        """
        Add a bar and return the current ATR

        A bar with the same open time as the last one replaces it, so the
        still-forming bar can be fed repeatedly.
        """
        if self.bars and self.bars[-1].open_time == kline.open_time:
            self.bars[-1] = kline
        elif self.bars and kline.open_time < self.bars[-1].open_time:
            return self.value()
        else:
            self.bars.append(kline)
        return self.value()

    def extend(self, klines: Iterable[Kline]) -> Optional[float]:
        """Add several bars in order and return the resulting ATR"""
        for kline in klines:
            self.update(kline)
        return self.value()

    def value(self) -> Optional[float]:
        """ATR over the buffered bars"""
        return calculate_atr(self.bars, self.period)

    def reset(self) -> None:
        self.bars.clear()
