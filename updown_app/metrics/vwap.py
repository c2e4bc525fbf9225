"""VWAP (Volume Weighted Average Price) calculations"""

from typing import Iterable, Optional

from ..data.models import Kline


def calculate_vwap(klines: Iterable[Kline]) -> Optional[float]:
    """
    Calculate cumulative VWAP over the given bars

    VWAP = sum(typical_price * volume) / sum(volume), typical = (H + L + C) / 3

    Args:
        klines: Bars in chronological order; bars missing a price or volume are skipped

    Returns:
        VWAP value or None if no usable volume
    """
    weighted = 0.0
    total_volume = 0.0
    for bar in klines:
        if None in (bar.high, bar.low, bar.close, bar.volume):
            continue
        typical = (bar.high + bar.low + bar.close) / 3
        weighted += typical * bar.volume
        total_volume += bar.volume

    if total_volume <= 0:
        return None
    return weighted / total_volume


def calculate_vwap_distance(price: Optional[float], vwap: Optional[float]) -> Optional[float]:
    """Percent distance of price from VWAP, None if either is unknown"""
    if price is None or vwap is None or vwap == 0:
        return None
    return (price - vwap) / vwap * 100
