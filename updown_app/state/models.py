"""
State data models for the per-window reference price.

The reference slot is immutable; the tracker swaps in a new instance on
every transition.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReferenceState(str, Enum):
    """Reference price lifecycle states."""
    EMPTY = "empty"
    CAPTURED = "captured"


class CaptureTrigger(str, Enum):
    """Why a capture replaced the previous reference."""
    INITIAL = "initial"
    NEW_WINDOW = "new_window"
    MARKET_CHANGED = "market_changed"


@dataclass(frozen=True)
class ReferencePriceState:
    """Reference price slot and the key it was captured under."""

    state: ReferenceState = ReferenceState.EMPTY
    price: Optional[float] = None
    market_id: Optional[str] = None
    window_start: Optional[int] = None

    def matches(self, market_id: Optional[str], window_start: int) -> bool:
        """True when already captured for this window and market."""
        return (self.state == ReferenceState.CAPTURED and
                self.window_start == window_start and
                self.market_id == market_id)

    def with_capture(self, price: float, market_id: Optional[str],
                     window_start: int) -> 'ReferencePriceState':
        """Create the captured state for a new key."""
        return ReferencePriceState(
            state=ReferenceState.CAPTURED,
            price=price,
            market_id=market_id,
            window_start=window_start,
        )
