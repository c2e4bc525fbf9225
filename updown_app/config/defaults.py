"""Default configuration parameters for the window monitor."""

from dataclasses import dataclass


@dataclass(frozen=True)
class WindowParams:
    """Fixed-duration window parameters."""
    duration_ms: int = 15 * 60_000                  # Epoch-aligned window length


@dataclass(frozen=True)
class AlignerParams:
    """Series alignment parameters."""
    sample_interval_ms: int = 5_000                 # Min spacing between aligned points
    max_points: int = 500                           # Running buffer bound


@dataclass(frozen=True)
class ATRParams:
    """ATR calculation parameters."""
    period: int = 14
    multiplier: float = 2.0                         # Band offset from the reference price


@dataclass(frozen=True)
class IndicatorParams:
    """Momentum and volume indicators over the spot feed."""
    kline_interval: str = "1m"                      # Bars for ATR, RSI, MACD and VWAP
    kline_limit: int = 100
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9


@dataclass(frozen=True)
class BinanceParams:
    """Spot price feed parameters."""
    base_url: str = "https://api.binance.com"
    symbol: str = "BTCUSDT"
    kline_interval: str = "1s"                      # Bars for the aligned history backfill
    kline_limit: int = 1000


@dataclass(frozen=True)
class PolymarketParams:
    """Prediction market feed parameters."""
    gamma_base_url: str = "https://gamma-api.polymarket.com"
    clob_base_url: str = "https://clob.polymarket.com"
    series_id: str = "10192"
    events_limit: int = 25
    up_outcome_label: str = "Up"
    down_outcome_label: str = "Down"
    price_side: str = "buy"
    history_fidelity: int = 1


@dataclass(frozen=True)
class PollParams:
    """Polling cadence and upstream timeouts."""
    interval_ms: int = 1_000
    request_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    window: WindowParams
    aligner: AlignerParams
    atr: ATRParams
    indicators: IndicatorParams
    binance: BinanceParams
    polymarket: PolymarketParams
    poll: PollParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        window=WindowParams(),
        aligner=AlignerParams(),
        atr=ATRParams(),
        indicators=IndicatorParams(),
        binance=BinanceParams(),
        polymarket=PolymarketParams(),
        poll=PollParams(),
    )
