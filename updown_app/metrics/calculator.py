"""Indicator calculator coordinating the momentum and volume metrics"""

from typing import Optional, Sequence

import structlog

from ..config.defaults import IndicatorParams
from ..data.models import IndicatorSnapshot, Kline
from .momentum import calculate_macd, calculate_rsi
from .vwap import calculate_vwap, calculate_vwap_distance

logger = structlog.get_logger(__name__)


class IndicatorCalculator:
    """
    Derives RSI, MACD and VWAP from one set of indicator bars.

    Stateless between calls: each tick refetches the trailing bars, so every
    value is recomputed from what the feed returned this time.
    """

    def __init__(self, params: Optional[IndicatorParams] = None):
        self.params = params or IndicatorParams()

    def calculate(self, klines: Sequence[Kline], spot_price: Optional[float] = None) -> IndicatorSnapshot:
        """
        Calculate every indicator for the latest bar

        Args:
            klines: Indicator bars in chronological order
            spot_price: Latest spot price for the VWAP distance; the last
                close is used when unknown

        Returns:
            IndicatorSnapshot with None for every value the bars cannot support
        """
        closes = [bar.close for bar in klines if bar.close is not None]
        if not closes:
            return IndicatorSnapshot()

        rsi = calculate_rsi(closes, self.params.rsi_period)
        macd = calculate_macd(
            closes,
            fast_period=self.params.macd_fast,
            slow_period=self.params.macd_slow,
            signal_period=self.params.macd_signal,
        )
        vwap = calculate_vwap(klines)
        price = spot_price if spot_price is not None else closes[-1]

        if rsi is None or macd is None:
            logger.debug("Insufficient bars for momentum indicators", bars=len(closes))

        return IndicatorSnapshot(
            rsi=rsi,
            macd=macd.macd if macd is not None else None,
            macd_signal=macd.signal if macd is not None else None,
            macd_histogram=macd.histogram if macd is not None else None,
            vwap=vwap,
            vwap_distance_pct=calculate_vwap_distance(price, vwap),
        )
