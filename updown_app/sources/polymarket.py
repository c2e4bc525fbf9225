"""Polymarket Gamma and CLOB clients."""

from typing import Any, Optional

from ..config.defaults import PolymarketParams
from ..data.models import Market, PredictionSample
from ..data.parsers import parse_markets, parse_price_history, to_probability
from .base import BaseHttpSource


class GammaSource(BaseHttpSource):
    """Market discovery via the Gamma events endpoint."""

    def __init__(self, params: Optional[PolymarketParams] = None, timeout_seconds: float = 10.0):
        self.params = params or PolymarketParams()
        super().__init__("gamma", self.params.gamma_base_url, timeout_seconds)

    def fetch_events(self) -> Optional[list[dict[str, Any]]]:
        """Active, open events of the configured series; None if unavailable."""
        payload = self._safe_get_json("/events", {
            "series_id": self.params.series_id,
            "active": "true",
            "closed": "false",
            "limit": self.params.events_limit,
        })
        if payload is None:
            return None
        return payload if isinstance(payload, list) else []

    def fetch_markets(self) -> Optional[list[Market]]:
        """Candidate markets of the series; None if the events fetch failed."""
        events = self.fetch_events()
        if events is None:
            return None
        return parse_markets(events)


class ClobSource(BaseHttpSource):
    """Outcome token prices via the CLOB API."""

    def __init__(self, params: Optional[PolymarketParams] = None, timeout_seconds: float = 10.0):
        self.params = params or PolymarketParams()
        super().__init__("clob", self.params.clob_base_url, timeout_seconds)

    def fetch_price(self, token_id: Optional[str], side: Optional[str] = None) -> Optional[float]:
        """Current price of one outcome token in [0, 1], None if unavailable."""
        if not token_id:
            return None
        payload = self._safe_get_json("/price", {
            "token_id": token_id,
            "side": side or self.params.price_side,
        })
        if not isinstance(payload, dict):
            return None
        return to_probability(payload.get("price"))

    def fetch_price_history(
        self,
        token_id: Optional[str],
        start_ms: int,
        end_ms: int,
        fidelity: Optional[int] = None,
    ) -> list[PredictionSample]:
        """Price history of one outcome token with millisecond timestamps."""
        if not token_id:
            return []
        payload = self._safe_get_json("/prices-history", {
            "market": token_id,
            "startTs": start_ms // 1000,
            "endTs": end_ms // 1000,
            "fidelity": fidelity or self.params.history_fidelity,
        })
        return parse_price_history(payload)
