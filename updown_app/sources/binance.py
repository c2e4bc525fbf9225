"""Binance spot price client."""

from typing import Optional

from ..config.defaults import BinanceParams
from ..data.models import Kline
from ..data.parsers import parse_klines, parse_ticker_price
from .base import BaseHttpSource


class BinanceSource(BaseHttpSource):
    """Spot ticker and kline fetches for one symbol."""

    def __init__(self, params: Optional[BinanceParams] = None, timeout_seconds: float = 10.0):
        self.params = params or BinanceParams()
        super().__init__("binance", self.params.base_url, timeout_seconds)

    def fetch_spot_price(self) -> Optional[float]:
        """Latest traded price, None if unavailable."""
        payload = self._safe_get_json("/api/v3/ticker/price", {"symbol": self.params.symbol})
        return parse_ticker_price(payload)

    def fetch_klines(
        self,
        start_ms: Optional[int] = None,
        end_ms: Optional[int] = None,
        interval: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Kline]:
        """Bars between start_ms and end_ms, empty if unavailable."""
        payload = self._safe_get_json("/api/v3/klines", {
            "symbol": self.params.symbol,
            "interval": interval or self.params.kline_interval,
            "limit": limit or self.params.kline_limit,
            "startTime": start_ms,
            "endTime": end_ms,
        })
        return parse_klines(payload)
