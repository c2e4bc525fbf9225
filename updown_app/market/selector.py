"""Selection of the relevant Up/Down market for the current time"""

from typing import Iterable, Optional

from ..data.models import Market, OutcomeTokens


def partition_markets(markets: Iterable[Market], now_ms: int) -> tuple[list[Market], list[Market]]:
    """
    Split candidate markets into live and upcoming.

    Markets without a parseable end time are dropped. A market is live when it
    has started (no start time counts as started) and has not ended; it is
    upcoming when it has not ended but starts in the future. Both lists keep
    input order.

    Args:
        markets: Candidate markets
        now_ms: Current time in epoch milliseconds

    Returns:
        Tuple of (live, upcoming)
    """
    live = []
    upcoming = []

    for market in markets:
        if market is None or market.end_ms is None:
            continue
        if now_ms >= market.end_ms:
            continue

        started = market.start_ms is None or market.start_ms <= now_ms
        if started:
            live.append(market)
        else:
            upcoming.append(market)

    return live, upcoming


def select_market(markets: Iterable[Market], now_ms: int) -> Optional[Market]:
    """
    Pick the single most relevant market.

    The live market that resolves soonest wins; without a live market the
    upcoming market that resolves soonest is used. Ties keep input order.

    Args:
        markets: Candidate markets
        now_ms: Current time in epoch milliseconds

    Returns:
        Selected market or None if nothing is eligible
    """
    live, upcoming = partition_markets(markets, now_ms)

    # min() returns the first of equal keys, which keeps the tie-break stable
    if live:
        return min(live, key=lambda m: m.end_ms)
    if upcoming:
        return min(upcoming, key=lambda m: m.end_ms)
    return None


def resolve_outcome_tokens(market: Market, up_label: str = "Up", down_label: str = "Down") -> OutcomeTokens:
    """
    Match outcome labels to their CLOB token ids.

    Labels compare case-insensitively and exactly. Markets with other labels
    resolve to no tokens at all.
    """
    up_token_id = down_token_id = None
    up_index = down_index = None

    for i, label in enumerate(market.outcomes):
        normalized = str(label).lower()
        if normalized == up_label.lower() and up_index is None:
            up_index = i
        if normalized == down_label.lower() and down_index is None:
            down_index = i

        token_id = market.token_ids[i] if i < len(market.token_ids) else None
        if not token_id:
            continue
        if normalized == up_label.lower():
            up_token_id = token_id
        if normalized == down_label.lower():
            down_token_id = token_id

    return OutcomeTokens(
        up_token_id=up_token_id,
        down_token_id=down_token_id,
        up_index=up_index,
        down_index=down_index,
    )


def gamma_outcome_price(market: Market, index: Optional[int]) -> Optional[float]:
    """Outcome price published with the market listing, if in [0, 1]."""
    if index is None or index >= len(market.outcome_prices):
        return None
    price = market.outcome_prices[index]
    if price is None or price < 0.0 or price > 1.0:
        return None
    return price


class MarketSelector:
    """Selects the active market and resolves its outcome tokens."""

    def __init__(self, up_label: str = "Up", down_label: str = "Down"):
        self.up_label = up_label
        self.down_label = down_label

    def select(self, markets: Iterable[Market], now_ms: int) -> Optional[Market]:
        """Pick the most relevant market at now_ms."""
        return select_market(markets, now_ms)

    def tokens_for(self, market: Market) -> OutcomeTokens:
        """Resolve Up and Down token ids using the configured labels."""
        return resolve_outcome_tokens(market, self.up_label, self.down_label)
