#!/usr/bin/env python3
"""
Basic Usage Example - UpDown Window Monitor

This script drives the snapshot engine with simulated data instead of live
feeds. It shows how to:
- Initialize the engine without network access
- Feed one tick of already-fetched data at a time
- Watch the reference price re-anchor when the market rolls over
- Read the consolidated snapshot

Run: python examples/basic_usage.py
"""

import json
import random
from typing import List

from updown_app.data.models import Kline, Market, PredictionSample, TickInputs
from updown_app.engine import SnapshotEngine
from updown_app.logging.config import configure_logging
from updown_app.utils.time import current_window, format_ms, now_ms

WINDOW_MS = 15 * 60_000


def create_market(slug: str, start_ms: int, end_ms: int, price_to_beat: float) -> Market:
    """Create an Up/Down market as it would come out of the Gamma parser."""
    return Market(
        slug=slug,
        question=f"Bitcoin Up or Down - price to beat ${price_to_beat:,.2f}",
        outcomes=("Up", "Down"),
        outcome_prices=(0.5, 0.5),
        token_ids=(f"{slug}-up", f"{slug}-down"),
        start_ms=start_ms,
        end_ms=end_ms,
        liquidity=25_000.0,
        price_to_beat=price_to_beat,
    )


def simulate_klines(start_ms: int, count: int, price: float, step_ms: int = 1000) -> List[Kline]:
    """Random-walk bars of step_ms starting at start_ms."""
    klines = []
    for i in range(count):
        open_price = price
        price += random.uniform(-15, 15)
        high = max(open_price, price) + random.uniform(0, 5)
        low = min(open_price, price) - random.uniform(0, 5)
        klines.append(Kline(
            open_time=start_ms + i * step_ms,
            open=open_price,
            high=high,
            low=low,
            close=price,
            volume=random.uniform(0.1, 2.0),
            close_time=start_ms + (i + 1) * step_ms - 1,
        ))
    return klines


def print_snapshot(label: str, snapshot) -> None:
    data = snapshot.to_dict()
    data["alignedHistory"] = f"{len(snapshot.aligned_history)} points"
    print(f"\n--- {label} ---")
    print(json.dumps(data, indent=2, default=str))


def main() -> None:
    configure_logging(level="INFO")
    random.seed(7)

    window = current_window(now_ms(), WINDOW_MS)
    start = window.start_ms

    # No destinations: snapshots are only printed below
    engine = SnapshotEngine(destinations=[])

    first = create_market("btc-updown-15m-a", start, start + WINDOW_MS, 67_000.0)
    second = create_market("btc-updown-15m-b", start, start + WINDOW_MS + 60_000, 67_000.0)

    klines = simulate_klines(start, 90, 67_000.0)
    # Trailing one-minute bars for ATR, RSI, MACD and VWAP
    minute_bars = simulate_klines(start - 99 * 60_000, 100, 66_900.0, step_ms=60_000)
    history = [PredictionSample(ts=start + i * 10_000, probability=0.5 + i * 0.01) for i in range(9)]

    print("UpDown Window Monitor - Basic Usage")
    print(f"Window: {format_ms(window.start_ms)} -> {format_ms(window.end_ms)}")

    # Tick 1: first market live, backfill from the klines and price history
    now = start + 90_000
    snapshot = engine.tick(TickInputs(
        spot_price=klines[-1].close,
        markets=[first, second],
        klines=klines,
        up_price=0.58,
        down_price=0.42,
        prediction_history=history,
        indicator_klines=minute_bars,
    ), now)
    print_snapshot("first tick (seeded)", snapshot)

    # Tick 2: prices move, the reference stays put
    now += 5_000
    klines += simulate_klines(klines[-1].open_time + 1000, 5, klines[-1].close)
    snapshot = engine.tick(TickInputs(
        spot_price=klines[-1].close,
        markets=[first, second],
        klines=klines,
        indicator_klines=minute_bars,
        up_price=0.61,
        down_price=0.39,
    ), now)
    print_snapshot("second tick (same market)", snapshot)

    # Tick 3: the first market disappears from the listing
    now += 5_000
    klines += simulate_klines(klines[-1].open_time + 1000, 5, klines[-1].close)
    snapshot = engine.tick(TickInputs(
        spot_price=klines[-1].close,
        markets=[second],
        klines=klines,
        indicator_klines=minute_bars,
        up_price=0.49,
        down_price=0.51,
    ), now)
    print_snapshot("third tick (market rolled over)", snapshot)

    # Tick 4: every upstream failed
    now += 5_000
    snapshot = engine.tick(TickInputs(), now)
    print_snapshot("fourth tick (upstream outage)", snapshot)

    print(f"\nEngine status: {json.dumps(engine.get_status(), indent=2, default=str)}")


if __name__ == "__main__":
    main()
