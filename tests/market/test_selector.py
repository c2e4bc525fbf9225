"""Tests for market selection and outcome token resolution"""

from updown_app.data.models import Market
from updown_app.market import MarketSelector, partition_markets, resolve_outcome_tokens, select_market
from updown_app.market.selector import gamma_outcome_price


class TestPartitionMarkets:
    """Test splitting candidates into live and upcoming"""

    def test_live_and_upcoming(self, market_factory, window_start):
        """Started markets are live, future ones upcoming"""
        current = market_factory("current", start_ms=window_start, end_ms=window_start + 900_000)
        future = market_factory("future", start_ms=window_start + 900_000, end_ms=window_start + 1_800_000)

        live, upcoming = partition_markets([future, current], window_start + 1_000)

        assert live == [current]
        assert upcoming == [future]

    def test_missing_start_counts_as_started(self, market_factory, window_start):
        """A market without a start time is treated as already started"""
        market = market_factory("no-start", start_ms=None)
        live, upcoming = partition_markets([market], window_start)
        assert live == [market]
        assert upcoming == []

    def test_unparseable_end_is_dropped(self, market_factory, window_start):
        """Markets without an end time are never eligible"""
        market = market_factory("no-end", end_ms=None)
        assert partition_markets([market], window_start) == ([], [])

    def test_ended_market_is_dropped(self, market_factory, window_start):
        """A market whose end time has passed is neither live nor upcoming"""
        market = market_factory("ended", end_ms=window_start + 900_000)
        assert partition_markets([market], window_start + 900_000) == ([], [])


class TestSelectMarket:
    """Test choosing the single relevant market"""

    def test_soonest_live_market_wins(self, market_factory, window_start):
        """Among live markets the earliest end time is chosen"""
        later = market_factory("later", start_ms=window_start - 900_000, end_ms=window_start + 1_800_000)
        sooner = market_factory("sooner", start_ms=window_start, end_ms=window_start + 900_000)

        assert select_market([later, sooner], window_start + 60_000) is sooner

    def test_live_beats_upcoming(self, market_factory, window_start):
        """A live market is preferred even if an upcoming one ends earlier"""
        live = market_factory("live", start_ms=window_start, end_ms=window_start + 1_800_000)
        upcoming = market_factory("upcoming", start_ms=window_start + 120_000, end_ms=window_start + 900_000)

        assert select_market([upcoming, live], window_start + 60_000) is live

    def test_falls_back_to_upcoming(self, market_factory, window_start):
        """Without a live market the soonest upcoming one is used"""
        first = market_factory("first", start_ms=window_start + 60_000, end_ms=window_start + 900_000)
        second = market_factory("second", start_ms=window_start + 900_000, end_ms=window_start + 1_800_000)

        assert select_market([second, first], window_start) is first

    def test_tie_keeps_input_order(self, market_factory, window_start):
        """Equal end times resolve to the earlier candidate"""
        a = market_factory("a")
        b = market_factory("b")
        assert select_market([a, b], window_start + 1_000) is a
        assert select_market([b, a], window_start + 1_000) is b

    def test_no_candidates(self, market_factory, window_start):
        """Nothing eligible selects nothing"""
        assert select_market([], window_start) is None
        assert select_market([market_factory("x", end_ms=None)], window_start) is None

    def test_selected_market_has_not_ended(self, market_factory, window_start):
        """Any selected market ends strictly after now"""
        markets = [
            market_factory(f"m{i}", start_ms=window_start + i * 300_000, end_ms=window_start + (i + 1) * 300_000)
            for i in range(6)
        ]
        for offset in range(0, 2_000_000, 150_000):
            now = window_start + offset
            selected = select_market(markets, now)
            if selected is not None:
                assert selected.end_ms > now


class TestOutcomeTokens:
    """Test outcome label to token resolution"""

    def test_resolves_up_and_down(self, market_factory):
        """Up and Down labels map to their token ids"""
        tokens = resolve_outcome_tokens(market_factory())
        assert tokens.up_token_id == "tok-up"
        assert tokens.down_token_id == "tok-down"
        assert tokens.up_index == 0
        assert tokens.down_index == 1

    def test_labels_are_case_insensitive(self, market_factory):
        """Label matching ignores case"""
        market = market_factory(outcomes=("DOWN", "up"), token_ids=("d", "u"))
        tokens = resolve_outcome_tokens(market)
        assert tokens.up_token_id == "u"
        assert tokens.down_token_id == "d"

    def test_non_binary_labels_resolve_to_nothing(self, market_factory):
        """Yes/No markets have no Up/Down tokens"""
        market = market_factory(outcomes=("Yes", "No"), token_ids=("y", "n"))
        tokens = resolve_outcome_tokens(market)
        assert tokens.up_token_id is None
        assert tokens.down_token_id is None

    def test_missing_token_ids(self, market_factory):
        """Labels without token ids keep their index but no token"""
        market = market_factory(token_ids=())
        tokens = resolve_outcome_tokens(market)
        assert tokens.up_token_id is None
        assert tokens.up_index == 0

    def test_custom_labels(self, market_factory):
        """MarketSelector honours configured labels"""
        market = market_factory(outcomes=("Higher", "Lower"), token_ids=("h", "l"))
        selector = MarketSelector(up_label="higher", down_label="lower")
        tokens = selector.tokens_for(market)
        assert tokens.up_token_id == "h"
        assert tokens.down_token_id == "l"


class TestGammaOutcomePrice:
    """Test fallback prices from the market listing"""

    def test_valid_index(self, market_factory):
        """Price at index is returned"""
        assert gamma_outcome_price(market_factory(), 1) == 0.45

    def test_missing_or_out_of_range(self, market_factory):
        """Unknown index or out-of-range price yields None"""
        market = market_factory(outcome_prices=(1.5, None))
        assert gamma_outcome_price(market, None) is None
        assert gamma_outcome_price(market, 0) is None
        assert gamma_outcome_price(market, 1) is None
        assert gamma_outcome_price(market, 5) is None

    def test_market_without_prices(self):
        """A bare market has no fallback price"""
        assert gamma_outcome_price(Market(slug="s", question=None), 0) is None
