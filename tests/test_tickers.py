"""Tests for primary ticker selection."""

from app.reconciliation.tickers import choose_primary_ticker
from app.reconciliation.types import TickerCandidate


class TestChoosePrimaryTicker:
    """Tests for choose_primary_ticker."""

    def test_empty(self):
        assert choose_primary_ticker([]) is None

    def test_same_exchange_keeps_input_order(self):
        candidates = [TickerCandidate("GOOG", "NASDAQ"), TickerCandidate("GOOGL", "NASDAQ")]
        assert choose_primary_ticker(candidates) == "GOOG"

    def test_preferred_exchange_wins_over_order(self):
        candidates = [
            TickerCandidate("7203", "Tokyo Stock Exchange (TSE)"),
            TickerCandidate("TM", "New York Stock Exchange (NYSE)"),
        ]
        assert choose_primary_ticker(candidates) == "TM"

    def test_case_insensitive_contains(self):
        candidates = [TickerCandidate("VOD", "london stock exchange lse"), TickerCandidate("X", None)]
        assert choose_primary_ticker(candidates) == "VOD"

    def test_fallback_to_first(self):
        candidates = [TickerCandidate("SAP", "Frankfurt Stock Exchange"), TickerCandidate("SAP2", None)]
        assert choose_primary_ticker(candidates) == "SAP"

    def test_custom_ranking(self):
        candidates = [TickerCandidate("AAA", "NASDAQ"), TickerCandidate("BBB", "HKEX")]
        assert choose_primary_ticker(candidates, ("HKEX", "NASDAQ")) == "BBB"
