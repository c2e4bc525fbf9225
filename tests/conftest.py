"""Pytest configuration and shared fixtures."""

from typing import Any, Dict, List

import pytest

from updown_app.data.models import Kline, Market

# 2024-01-01T00:00:00Z, a window boundary for 15 minute windows
WINDOW_START = 1_704_067_200_000
WINDOW_MS = 15 * 60_000


def make_market(slug: str = "btc-updown-15m-1704067200",
                end_ms: int = WINDOW_START + WINDOW_MS,
                start_ms: int = WINDOW_START,
                **kwargs: Any) -> Market:
    """Build a binary Up/Down market ending at end_ms."""
    fields = {
        "question": "Bitcoin Up or Down - will BTC close above $42,000.50?",
        "outcomes": ("Up", "Down"),
        "outcome_prices": (0.55, 0.45),
        "token_ids": ("tok-up", "tok-down"),
        "liquidity": 12500.0,
    }
    fields.update(kwargs)
    if "price_to_beat" not in fields:
        fields["price_to_beat"] = 42000.5
    return Market(slug=slug, start_ms=start_ms, end_ms=end_ms, **fields)


def make_klines(count: int, start_ms: int = WINDOW_START, step_ms: int = 1000,
                base: float = 42000.0) -> List[Kline]:
    """Bars with a constant high-low range of 10 and rising closes."""
    return [
        Kline(
            open_time=start_ms + i * step_ms,
            open=base + i,
            high=base + i + 5,
            low=base + i - 5,
            close=base + i + 1,
            volume=1.0,
            close_time=start_ms + (i + 1) * step_ms - 1,
        )
        for i in range(count)
    ]


@pytest.fixture
def window_start() -> int:
    """Start of the 15 minute window used across tests."""
    return WINDOW_START


@pytest.fixture
def raw_gamma_market() -> Dict[str, Any]:
    """Single Gamma market object as nested in an event."""
    return {
        "question": "Bitcoin Up or Down - January 1, 12:00AM-12:15AM ET. Price to beat $42,000.50",
        "slug": "btc-updown-15m-1704067200",
        "outcomes": '["Up", "Down"]',
        "outcomePrices": '["0.515", "0.485"]',
        "clobTokenIds": '["111", "222"]',
        "eventStartTime": "2024-01-01T00:00:00Z",
        "endDate": "2024-01-01T00:15:00Z",
        "liquidityNum": 15234.7,
        "liquidity": "15234.70",
    }


@pytest.fixture
def raw_gamma_events(raw_gamma_market: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Gamma events payload with the current and the next market."""
    next_market = dict(raw_gamma_market)
    next_market.update({
        "slug": "btc-updown-15m-1704068100",
        "eventStartTime": "2024-01-01T00:15:00Z",
        "endDate": "2024-01-01T00:30:00Z",
        "clobTokenIds": '["333", "444"]',
    })
    return [
        {"id": "e1", "markets": [raw_gamma_market]},
        {"id": "e2", "markets": [next_market]},
    ]


@pytest.fixture
def raw_kline_rows() -> List[List[Any]]:
    """Binance klines payload rows."""
    return [
        [WINDOW_START, "42000.00", "42010.00", "41990.00", "42005.00", "1.5", WINDOW_START + 999, "0", 10],
        [WINDOW_START + 1000, "42005.00", "42020.00", "42000.00", "42015.00", "2.0", WINDOW_START + 1999, "0", 12],
        [WINDOW_START + 2000, "42015.00", "42018.00", "42001.00", "42002.00", "0.8", WINDOW_START + 2999, "0", 7],
    ]


@pytest.fixture
def market_factory():
    """Factory for Market objects."""
    return make_market


@pytest.fixture
def kline_factory():
    """Factory for Kline sequences."""
    return make_klines
