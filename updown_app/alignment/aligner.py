"""
Alignment of a spot price series and a prediction price series.

The spot series defines the timeline. Each emitted point carries the most
recent prediction value at or before its timestamp ("last known value"),
so once a prediction value has been seen it never turns back into None.
"""

from bisect import bisect_right
from collections import deque
from typing import Iterable, Optional, Sequence

import structlog

from ..data.models import AlignedPoint, PredictionSample, PriceSample
from ..logging.config import log_market_rollover

logger = structlog.get_logger(__name__)


def align(
    price_samples: Iterable[PriceSample],
    prediction_samples: Sequence[PredictionSample],
    min_spacing_ms: int = 0,
    start_ms: Optional[int] = None,
) -> list[AlignedPoint]:
    """
    Merge price and prediction samples onto the price timeline.

    Args:
        price_samples: Spot samples in timestamp order
        prediction_samples: Prediction samples sorted ascending by timestamp
        min_spacing_ms: Emit a point only once this long has passed since the last one
        start_ms: Skip price samples before this time

    Returns:
        One AlignedPoint per emitted price sample, in input order
    """
    prediction_ts = [sample.ts for sample in prediction_samples]

    points = []
    next_sample_ts = start_ms
    for sample in price_samples:
        if next_sample_ts is not None and sample.ts < next_sample_ts:
            continue

        idx = bisect_right(prediction_ts, sample.ts) - 1
        prediction = prediction_samples[idx].probability if idx >= 0 else None

        points.append(AlignedPoint(ts=sample.ts, spot_price=sample.price, prediction_price=prediction))
        next_sample_ts = sample.ts + min_spacing_ms

    return points


class SeriesAligner:
    """
    Running aligned history for the currently observed market.

    The buffer is append-only and bounded. It is cleared whenever the observed
    market id changes so two unrelated markets are never stitched together.
    After a reset it accepts a single backfill seed.
    """

    def __init__(self, min_spacing_ms: int = 5_000, max_points: int = 500):
        self.min_spacing_ms = min_spacing_ms
        self.max_points = max_points
        self._points: deque[AlignedPoint] = deque(maxlen=max_points)
        self._market_id: Optional[str] = None
        self._observed = False
        self._seeded = False

    @property
    def market_id(self) -> Optional[str]:
        return self._market_id

    @property
    def needs_backfill(self) -> bool:
        """True while the buffer is empty and has not been seeded since the last reset."""
        return not self._seeded and not self._points

    def observe_market(self, market_id: Optional[str]) -> bool:
        """
        Record the currently selected market id.

        Returns:
            True if the id changed and the buffer was reset
        """
        if not self._observed:
            self._observed = True
            self._market_id = market_id
            return False

        if market_id == self._market_id:
            return False

        previous = self._market_id
        dropped = len(self._points)
        self._market_id = market_id
        self.reset()
        log_market_rollover(logger, previous, market_id, dropped)
        return True

    def reset(self) -> None:
        """Clear the buffer and re-arm the one-time backfill."""
        self._points.clear()
        self._seeded = False

    def seed(self, price_samples: Iterable[PriceSample],
             prediction_samples: Sequence[PredictionSample],
             start_ms: Optional[int] = None) -> int:
        """
        Fill an empty buffer from historical samples.

        Returns:
            Number of points added; 0 when the buffer was not awaiting a backfill
        """
        if not self.needs_backfill:
            return 0

        points = align(price_samples, prediction_samples, self.min_spacing_ms, start_ms)
        if not points:
            return 0

        self._points.extend(points)
        self._seeded = True
        logger.debug("Seeded aligned history", market_id=self._market_id, points=len(points))
        return len(points)

    def append(self, ts: int, spot_price: Optional[float],
               prediction_price: Optional[float] = None) -> Optional[AlignedPoint]:
        """
        Append a live observation.

        A missing prediction value repeats the last known one. Observations
        without a spot price, out of order, or closer than min_spacing_ms to the
        last point are ignored.

        Returns:
            The appended point, or None if nothing was appended
        """
        if spot_price is None:
            return None

        last = self._points[-1] if self._points else None
        if last is not None and ts < last.ts + self.min_spacing_ms:
            return None

        if prediction_price is None and last is not None:
            prediction_price = last.prediction_price

        point = AlignedPoint(ts=ts, spot_price=spot_price, prediction_price=prediction_price)
        self._points.append(point)
        return point

    def restore(self, market_id: Optional[str], points: Iterable[AlignedPoint]) -> None:
        """Reinstate a buffer for market_id, e.g. from a snapshot cache."""
        self._market_id = market_id
        self._observed = True
        self._points = deque(points, maxlen=self.max_points)
        self._seeded = bool(self._points)

    def history(self) -> list[AlignedPoint]:
        """Copy of the buffered points in timestamp order."""
        return list(self._points)

    def __len__(self) -> int:
        return len(self._points)
