"""
Main snapshot engine coordinator.

Orchestrates one poll cycle: gather upstream data, select the market, anchor
the reference price, extend the aligned history, derive indicators and hand
the consolidated snapshot to every configured destination.
"""

import time
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from .alignment.aligner import SeriesAligner
from .config.defaults import BinanceParams, IndicatorParams, PolymarketParams
from .config.delivery import DeliveryDestination, DeliveryMethod, get_default_destinations
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .data.models import (
    AlignedPoint,
    Market,
    MarketSnapshot,
    PriceSample,
    Snapshot,
    TickInputs,
    Window,
)
from .delivery.base import BaseSnapshotDelivery
from .delivery.file_delivery import FileSnapshotDelivery
from .delivery.stdout_delivery import StdoutSnapshotDelivery
from .market.selector import MarketSelector, gamma_outcome_price
from .metrics.atr import ATRCalculator, calculate_atr_bands
from .metrics.calculator import IndicatorCalculator
from .persistence.snapshot_cache import SnapshotCache
from .sources.binance import BinanceSource
from .sources.polymarket import ClobSource, GammaSource
from .state.reference import ReferencePriceTracker
from .utils.time import (
    WindowClock,
    effective_time_remaining,
    now_ms,
    time_remaining,
    trading_session,
)

logger = structlog.get_logger(__name__)


class SnapshotEngine:
    """
    Main coordinator for the window monitor.

    Owns the only mutable state of the system, the reference price tracker
    and the aligned history buffer, and mutates it from tick() alone:
    Upstream Data → Market Selection → Reference + Alignment → Indicators → Snapshot
    """

    def __init__(
        self,
        config_dir: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None,
        binance: Optional[BinanceSource] = None,
        gamma: Optional[GammaSource] = None,
        clob: Optional[ClobSource] = None,
        destinations: Optional[list[DeliveryDestination]] = None,
        cache: Optional[SnapshotCache] = None,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the snapshot engine."""
        self.logger = logger

        self.config_loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
        self.config = self.config_loader.merge_config(overrides)

        validation_errors = ConfigValidator.validate_config(self.config)
        if validation_errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in validation_errors]
            self.logger.error("Configuration validation failed", errors=error_msgs)
            raise ValueError(f"Invalid configuration: {'; '.join(error_msgs)}")

        window_cfg = self.config["window"]
        aligner_cfg = self.config["aligner"]
        atr_cfg = self.config["atr"]
        poll_cfg = self.config["poll"]
        polymarket_params = PolymarketParams(**self.config["polymarket"])
        binance_params = BinanceParams(**self.config["binance"])
        self.indicator_params = IndicatorParams(**self.config["indicators"])

        self.clock = clock
        self.sleep = sleep
        self.poll_interval_ms = poll_cfg["interval_ms"]
        self.atr_multiplier = float(atr_cfg["multiplier"])

        # Core state, owned here and nowhere else
        self.window_clock = WindowClock(window_cfg["duration_ms"])
        self.selector = MarketSelector(
            up_label=polymarket_params.up_outcome_label,
            down_label=polymarket_params.down_outcome_label,
        )
        self.reference_tracker = ReferencePriceTracker()
        self.aligner = SeriesAligner(
            min_spacing_ms=aligner_cfg["sample_interval_ms"],
            max_points=aligner_cfg["max_points"],
        )
        self.atr_calculator = ATRCalculator(period=atr_cfg["period"])
        self.indicator_calculator = IndicatorCalculator(self.indicator_params)
        self.last_spot_price: Optional[float] = None

        # Upstream collaborators
        timeout = poll_cfg["request_timeout_seconds"]
        self.binance = binance or BinanceSource(binance_params, timeout)
        self.gamma = gamma or GammaSource(polymarket_params, timeout)
        self.clob = clob or ClobSource(polymarket_params, timeout)

        # Downstream consumers
        if destinations is None:
            destinations = get_default_destinations()
        self.deliveries: list[BaseSnapshotDelivery] = [
            self._create_delivery(dest) for dest in destinations if dest.enabled
        ]

        self.cache = cache
        if self.cache is not None:
            self._restore_from_cache(self.clock())

        self.tick_count = 0
        self.logger.info(
            "Snapshot engine initialized",
            window_duration_ms=self.window_clock.window_duration_ms,
            series_id=polymarket_params.series_id,
            symbol=binance_params.symbol,
            destinations=[d.name for d in self.deliveries],
        )

    def tick(self, inputs: TickInputs, now: int) -> Snapshot:
        """
        Run one synchronous computation over already-fetched data.

        Args:
            inputs: Upstream data for this tick; None fields were unavailable
            now: Tick time in epoch milliseconds

        Returns:
            Consolidated snapshot
        """
        window = self.window_clock.current_window(now)

        # A failed events fetch keeps the last observed market for state keys
        market: Optional[Market] = None
        if inputs.markets is not None:
            market = self.selector.select(inputs.markets, now)
            market_id = market.market_id if market is not None else None
            self.aligner.observe_market(market_id)
        else:
            market_id = self.aligner.market_id

        atr = self.atr_calculator.extend(inputs.indicator_klines)
        indicators = self.indicator_calculator.calculate(inputs.indicator_klines, inputs.spot_price)
        spot_delta, spot_direction = self._spot_change(inputs.spot_price)

        market_snapshot = None
        if market is not None:
            market_snapshot = self._build_market_snapshot(market, inputs, now)

        if self.aligner.needs_backfill and inputs.prediction_history:
            price_samples = [
                PriceSample(ts=k.open_time, price=k.close)
                for k in inputs.klines if k.close is not None
            ]
            self.aligner.seed(price_samples, inputs.prediction_history, start_ms=window.start_ms)

        live_prediction = market_snapshot.up_price if market_snapshot is not None else None
        self.aligner.append(now, inputs.spot_price, live_prediction)

        self.reference_tracker.capture(inputs.spot_price, market_id, window.start_ms)
        reference_price = self.reference_tracker.get()

        snapshot = Snapshot(
            timestamp=now,
            spot_price=inputs.spot_price,
            window=window,
            selected_market=market_snapshot,
            aligned_history=self.aligner.history(),
            atr=atr,
            reference_price=reference_price,
            atr_bands=calculate_atr_bands(reference_price, atr, self.atr_multiplier),
            time_left_ms=effective_time_remaining(
                now, window, market.end_ms if market is not None else None
            ),
            spot_delta=spot_delta,
            spot_direction=spot_direction,
            price_to_beat_delta=self._price_to_beat_delta(market, inputs.spot_price),
            session=trading_session(now),
            indicators=indicators,
        )

        if self.cache is not None:
            self.cache.put(window.start_ms, snapshot.to_dict())

        self.tick_count += 1
        return snapshot

    def gather_inputs(self, now: int) -> TickInputs:
        """Fetch everything one tick needs. Never raises for upstream failures."""
        window = self.window_clock.current_window(now)

        spot_price = self.binance.fetch_spot_price()
        markets = self.gamma.fetch_markets()

        up_price = down_price = None
        prediction_history = []
        if markets is not None:
            market = self.selector.select(markets, now)
            if market is not None:
                tokens = self.selector.tokens_for(market)
                up_price = self.clob.fetch_price(tokens.up_token_id)
                down_price = self.clob.fetch_price(tokens.down_token_id)

                if self._backfill_wanted(market):
                    prediction_history = self.clob.fetch_price_history(
                        tokens.up_token_id, window.start_ms, now
                    )

        klines = self.binance.fetch_klines(start_ms=window.start_ms, end_ms=now)
        indicator_klines = self.binance.fetch_klines(
            interval=self.indicator_params.kline_interval,
            limit=self.indicator_params.kline_limit,
        )

        return TickInputs(
            spot_price=spot_price,
            markets=markets,
            klines=klines,
            up_price=up_price,
            down_price=down_price,
            prediction_history=prediction_history,
            indicator_klines=indicator_klines,
        )

    def poll_once(self) -> Snapshot:
        """Gather inputs, compute the snapshot and deliver it."""
        now = self.clock()
        inputs = self.gather_inputs(now)
        snapshot = self.tick(inputs, now)
        self.deliver(snapshot)
        return snapshot

    def deliver(self, snapshot: Snapshot) -> None:
        """Hand the snapshot to every destination."""
        if not self.deliveries:
            return
        payload = snapshot.to_dict()
        for delivery in self.deliveries:
            delivery.deliver(payload)

    def run(self, max_ticks: Optional[int] = None) -> int:
        """
        Poll on a fixed cadence until max_ticks snapshots were attempted.

        Ticks are serialized: the next one starts only after the previous
        one has committed its state.

        Returns:
            Number of ticks attempted
        """
        attempted = 0
        self.logger.info("Snapshot engine started", interval_ms=self.poll_interval_ms, max_ticks=max_ticks)

        while max_ticks is None or attempted < max_ticks:
            started = self.clock()
            attempted += 1
            try:
                self.poll_once()
            except Exception as e:
                self.logger.error(
                    "Unexpected error during tick",
                    error=str(e),
                    error_type=type(e).__name__,
                    tick=attempted,
                )

            if max_ticks is not None and attempted >= max_ticks:
                break

            elapsed = self.clock() - started
            delay_ms = max(0, self.poll_interval_ms - elapsed)
            self.sleep(delay_ms / 1000.0)

        self.logger.info("Snapshot engine stopped", ticks=attempted)
        return attempted

    def get_status(self) -> dict[str, Any]:
        """Current engine status for diagnostics."""
        return {
            "tick_count": self.tick_count,
            "market_id": self.aligner.market_id,
            "aligned_points": len(self.aligner),
            "reference": self.reference_tracker.to_dict(),
            "sources": [s.get_stats() for s in (self.binance, self.gamma, self.clob)
                        if hasattr(s, "get_stats")],
            "deliveries": [d.get_stats() for d in self.deliveries],
        }

    def _build_market_snapshot(self, market: Market, inputs: TickInputs, now: int) -> MarketSnapshot:
        """Live outcome prices fall back to the prices published with the listing."""
        tokens = self.selector.tokens_for(market)

        up_price = inputs.up_price
        if up_price is None:
            up_price = gamma_outcome_price(market, tokens.up_index)

        down_price = inputs.down_price
        if down_price is None:
            down_price = gamma_outcome_price(market, tokens.down_index)

        time_left_ms = time_remaining(now, market.end_ms) if market.end_ms is not None else None

        return MarketSnapshot(
            market=market,
            up_price=up_price,
            down_price=down_price,
            time_left_ms=time_left_ms,
        )

    def _spot_change(self, spot_price: Optional[float]) -> tuple[Optional[float], Optional[str]]:
        """Change against the last known spot price; remembers spot_price for the next tick."""
        previous = self.last_spot_price
        if spot_price is None:
            return None, None
        self.last_spot_price = spot_price
        if previous is None:
            return None, None

        delta = spot_price - previous
        if delta > 0:
            return delta, "up"
        if delta < 0:
            return delta, "down"
        return delta, None

    @staticmethod
    def _price_to_beat_delta(market: Optional[Market], spot_price: Optional[float]) -> Optional[float]:
        if market is None or market.price_to_beat is None or spot_price is None:
            return None
        return spot_price - market.price_to_beat

    def _backfill_wanted(self, market: Market) -> bool:
        if market.market_id != self.aligner.market_id:
            return True
        return self.aligner.needs_backfill

    def _restore_from_cache(self, now: int) -> None:
        window: Window = self.window_clock.current_window(now)
        cached = self.cache.get(window.start_ms)
        if cached is None:
            return

        market_id = (cached.get("selectedMarket") or {}).get("slug")
        points = [
            AlignedPoint(
                ts=int(p["timeMs"]),
                spot_price=float(p["spotPrice"]),
                prediction_price=p.get("predictionPrice"),
            )
            for p in cached.get("alignedHistory") or []
            if p.get("timeMs") is not None and p.get("spotPrice") is not None
        ]
        self.aligner.restore(market_id, points)

        reference_price = cached.get("referencePrice")
        if reference_price is not None:
            self.reference_tracker.restore(reference_price, market_id, window.start_ms)
        self.last_spot_price = cached.get("spotPrice")

        self.logger.info(
            "Restored state from snapshot cache",
            window_start=window.start_ms,
            market_id=market_id,
            points=len(points),
            reference_price=reference_price,
        )

    def _create_delivery(self, destination: DeliveryDestination) -> BaseSnapshotDelivery:
        if destination.method == DeliveryMethod.STDOUT:
            return StdoutSnapshotDelivery(destination.name, destination.config)
        if destination.method == DeliveryMethod.FILE_OUTPUT:
            return FileSnapshotDelivery(destination.name, destination.config)
        raise ValueError(f"Unsupported delivery method: {destination.method}")
