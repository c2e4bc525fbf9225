"""
Reference price tracking for the current window.

The reference ("price to beat") is captured once per window and held fixed
so every downstream delta compares against the same anchor. Markets and the
wall-clock grid drift apart, so a change of market id re-anchors immediately
instead of waiting for the next window boundary.
"""

import math
from typing import Any, Optional

from ..logging.config import get_state_logger, log_state_transition
from .models import CaptureTrigger, ReferencePriceState, ReferenceState

state_logger = get_state_logger(__name__)


class ReferencePriceTracker:
    """Single-writer holder of the per-window reference price."""

    def __init__(self) -> None:
        self.logger = state_logger
        self._state = ReferencePriceState()

    @property
    def state(self) -> ReferencePriceState:
        return self._state

    def capture(self, current_price: Optional[float], market_id: Optional[str],
                window_start: int) -> bool:
        """
        Capture current_price if the window or market changed since the last capture.

        Args:
            current_price: Latest spot price
            market_id: Identifier of the selected market (None when none selected)
            window_start: Start of the current window in epoch milliseconds

        Returns:
            True if a new reference was stored, False for a no-op
        """
        if self._state.matches(market_id, window_start):
            return False

        if current_price is None or isinstance(current_price, bool):
            return False
        try:
            price = float(current_price)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(price):
            self.logger.warning(
                "Rejected non-finite reference price",
                market_id=market_id,
                window_start=window_start,
            )
            return False

        previous = self._state
        trigger = self._trigger_for(previous, market_id, window_start)
        self._state = previous.with_capture(price, market_id, window_start)

        log_state_transition(
            self.logger,
            market_id=market_id,
            from_state=previous.state.value,
            to_state=self._state.state.value,
            trigger=trigger.value,
            context={
                "price": price,
                "window_start": window_start,
                "previous_price": previous.price,
                "previous_market_id": previous.market_id,
            },
        )
        return True

    def get(self) -> Optional[float]:
        """Current reference price, None before the first capture."""
        return self._state.price

    def restore(self, price: float, market_id: Optional[str], window_start: int) -> None:
        """Reinstate a previously captured reference, e.g. from a snapshot cache."""
        self._state = ReferencePriceState().with_capture(float(price), market_id, window_start)

    def reset(self) -> None:
        """Return to the empty state."""
        self._state = ReferencePriceState()

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self._state.state.value,
            "price": self._state.price,
            "market_id": self._state.market_id,
            "window_start": self._state.window_start,
        }

    @staticmethod
    def _trigger_for(previous: ReferencePriceState, market_id: Optional[str],
                     window_start: int) -> CaptureTrigger:
        if previous.state == ReferenceState.EMPTY:
            return CaptureTrigger.INITIAL
        if previous.window_start != window_start:
            return CaptureTrigger.NEW_WINDOW
        return CaptureTrigger.MARKET_CHANGED
