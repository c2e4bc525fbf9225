"""
Canonical data models for normalized market data.

This module defines immutable data structures that represent clean market data
after parsing from raw Gamma, CLOB and Binance payloads. All timestamps are
integer epoch milliseconds.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Market:
    """One candidate Up/Down prediction market from the events endpoint."""
    slug: Optional[str]
    question: Optional[str]
    outcomes: tuple[str, ...] = ()
    outcome_prices: tuple[Optional[float], ...] = ()
    token_ids: tuple[str, ...] = ()
    start_ms: Optional[int] = None      # None means already started
    end_ms: Optional[int] = None        # None makes the market ineligible
    end_date: Optional[str] = None      # Raw end date as published
    event_start_time: Optional[str] = None
    liquidity: Optional[float] = None
    price_to_beat: Optional[float] = None

    @property
    def market_id(self) -> Optional[str]:
        """Identifier used to detect market rollovers."""
        return self.slug


@dataclass(frozen=True)
class OutcomeTokens:
    """Token ids and outcome indices for the Up and Down sides."""
    up_token_id: Optional[str] = None
    down_token_id: Optional[str] = None
    up_index: Optional[int] = None
    down_index: Optional[int] = None


@dataclass(frozen=True)
class PriceSample:
    """Spot price observation."""
    ts: int
    price: float


@dataclass(frozen=True)
class PredictionSample:
    """Prediction market probability observation in [0, 1]."""
    ts: int
    probability: float


@dataclass(frozen=True)
class AlignedPoint:
    """Spot price with the prediction value carried forward to its timestamp."""
    ts: int
    spot_price: float
    prediction_price: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeMs": self.ts,
            "spotPrice": self.spot_price,
            "predictionPrice": self.prediction_price,
        }


@dataclass(frozen=True)
class Kline:
    """Spot candlestick bar. Prices stay None when the feed sent garbage."""
    open_time: int
    open: Optional[float]
    high: Optional[float]
    low: Optional[float]
    close: Optional[float]
    volume: Optional[float] = None
    close_time: Optional[int] = None


@dataclass(frozen=True)
class Window:
    """Epoch-aligned fixed-duration window [start_ms, end_ms)."""
    start_ms: int
    end_ms: int

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    def contains(self, ts: int) -> bool:
        return self.start_ms <= ts < self.end_ms

    def to_dict(self) -> dict[str, int]:
        return {"startMs": self.start_ms, "endMs": self.end_ms}


@dataclass(frozen=True)
class MarketSnapshot:
    """Selected market with its live outcome prices for one poll cycle."""
    market: Market
    up_price: Optional[float] = None
    down_price: Optional[float] = None
    time_left_ms: Optional[int] = None

    @property
    def time_left_minutes(self) -> Optional[float]:
        if self.time_left_ms is None:
            return None
        return self.time_left_ms / 60_000

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.market.question,
            "slug": self.market.slug,
            "endDate": self.market.end_date,
            "upPrice": self.up_price,
            "downPrice": self.down_price,
            "liquidity": self.market.liquidity,
            "priceToBeat": self.market.price_to_beat,
            "timeLeftMinutes": self.time_left_minutes,
        }


EMPTY_SELECTED_MARKET: dict[str, Any] = {
    "question": None,
    "slug": None,
    "endDate": None,
    "upPrice": None,
    "downPrice": None,
    "liquidity": None,
    "priceToBeat": None,
    "timeLeftMinutes": None,
}


@dataclass(frozen=True)
class TickInputs:
    """
    Already-fetched upstream data handed to the core for one tick.

    None marks a field whose upstream was unavailable this tick. An empty
    markets list is a successful fetch that found nothing.
    """
    spot_price: Optional[float] = None
    markets: Optional[list[Market]] = None
    klines: list[Kline] = field(default_factory=list)
    up_price: Optional[float] = None
    down_price: Optional[float] = None
    prediction_history: list[PredictionSample] = field(default_factory=list)
    indicator_klines: list[Kline] = field(default_factory=list)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Momentum and volume indicators over the indicator bars."""
    rsi: Optional[float] = None
    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    vwap: Optional[float] = None
    vwap_distance_pct: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        macd = None
        if self.macd is not None:
            macd = {
                "macd": self.macd,
                "signal": self.macd_signal,
                "histogram": self.macd_histogram,
            }
        return {
            "rsi": self.rsi,
            "macd": macd,
            "vwap": self.vwap,
            "vwapDistancePct": self.vwap_distance_pct,
        }


@dataclass(frozen=True)
class Snapshot:
    """Consolidated view emitted once per tick."""
    timestamp: int
    spot_price: Optional[float]
    window: Window
    selected_market: Optional[MarketSnapshot]
    aligned_history: list[AlignedPoint]
    atr: Optional[float] = None
    reference_price: Optional[float] = None
    atr_bands: Optional[tuple[float, float]] = None
    time_left_ms: int = 0
    spot_delta: Optional[float] = None          # Against the previous known spot price
    spot_direction: Optional[str] = None        # "up", "down" or None when flat or unknown
    price_to_beat_delta: Optional[float] = None
    session: Optional[str] = None
    indicators: IndicatorSnapshot = field(default_factory=IndicatorSnapshot)

    @property
    def time_left_minutes(self) -> float:
        return self.time_left_ms / 60_000

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form for delivery and caching."""
        if self.selected_market is None:
            selected = dict(EMPTY_SELECTED_MARKET)
        else:
            selected = self.selected_market.to_dict()

        bands = None
        if self.atr_bands is not None:
            bands = {"lower": self.atr_bands[0], "upper": self.atr_bands[1]}

        return {
            "timestamp": self.timestamp,
            "spotPrice": self.spot_price,
            "selectedMarket": selected,
            "alignedHistory": [point.to_dict() for point in self.aligned_history],
            "atr": self.atr,
            "referencePrice": self.reference_price,
            "atrBands": bands,
            "window": self.window.to_dict(),
            "timeLeftMinutes": self.time_left_minutes,
            "spotDelta": self.spot_delta,
            "spotDirection": self.spot_direction,
            "priceToBeatDelta": self.price_to_beat_delta,
            "session": self.session,
            "indicators": self.indicators.to_dict(),
        }
