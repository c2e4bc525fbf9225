"""RSI and MACD momentum calculations over closing prices"""

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class MACDResult:
    """Latest MACD line, signal line and histogram"""
    macd: float
    signal: Optional[float] = None
    histogram: Optional[float] = None


def calculate_ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average series

    The first value is the simple average of the first `period` values, then
    EMA = (value - prev) * k + prev with k = 2 / (period + 1).

    Args:
        values: Input series in chronological order
        period: EMA period

    Returns:
        EMA values aligned to values[period - 1:], empty if too short
    """
    if period <= 0 or len(values) < period:
        return []

    k = 2 / (period + 1)
    ema = sum(values[:period]) / period
    series = [ema]
    for value in values[period:]:
        ema = (value - ema) * k + ema
        series.append(ema)
    return series


def calculate_rsi(closes: Sequence[float], period: int = 14) -> Optional[float]:
    """
    Calculate Relative Strength Index with Wilder smoothing

    RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    Args:
        closes: Closing prices in chronological order
        period: RSI period (default 14)

    Returns:
        RSI in [0, 100] or None if fewer than period + 1 closes.
        A series without losses reads 100.
    """
    if period <= 0 or len(closes) < period + 1:
        return None

    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(change, 0.0) for change in changes]
    losses = [max(-change, 0.0) for change in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def calculate_macd(closes: Sequence[float], fast_period: int = 12, slow_period: int = 26,
                   signal_period: int = 9) -> Optional[MACDResult]:
    """
    Calculate MACD from exponential moving averages

    MACD = EMA(fast) - EMA(slow); signal = EMA(signal_period) of MACD;
    histogram = MACD - signal.

    Args:
        closes: Closing prices in chronological order
        fast_period: Fast EMA period (default 12)
        slow_period: Slow EMA period (default 26)
        signal_period: Signal EMA period (default 9)

    Returns:
        Latest MACDResult, None if fewer than slow_period closes. Signal and
        histogram stay None until the MACD line has signal_period values.
    """
    if fast_period >= slow_period:
        return None

    slow = calculate_ema(closes, slow_period)
    if not slow:
        return None

    # Fast EMA starts earlier; drop its head so both end on the same bar
    fast = calculate_ema(closes, fast_period)[slow_period - fast_period:]
    macd_line = [f - s for f, s in zip(fast, slow)]

    signal = calculate_ema(macd_line, signal_period)
    if not signal:
        return MACDResult(macd=macd_line[-1])

    return MACDResult(
        macd=macd_line[-1],
        signal=signal[-1],
        histogram=macd_line[-1] - signal[-1],
    )
