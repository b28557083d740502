"""Tests for JournalService - attach semantics and markdown export."""

from datetime import datetime
from decimal import Decimal

import pytest

from hypetrad.errors import InvalidJournalEntryError, TradeNotFoundError
from hypetrad.journal import JournalService, build_entry, format_usd
from hypetrad.ledger.store import LedgerStore
from hypetrad.ledger.types import JournalEntry, Sentiment
from hypetrad.market.feed import StaticPriceFeed
from hypetrad.valuation.engine import ValuationEngine
from tests.fixtures import SnapshotBuilder


class TestBuildEntry:
    """Journal form input."""

    def test_strips_and_drops_blank_sources(self):
        entry = build_entry(["News", "  ", "Gut Feeling "], "  Earnings beat  ", "Bullish")

        assert entry.sources == frozenset({"News", "Gut Feeling"})
        assert entry.rationale == "Earnings beat"
        assert entry.sentiment is Sentiment.BULLISH

    def test_rationale_only(self):
        entry = build_entry(rationale="Breakout")

        assert entry.sources == frozenset()
        assert entry.sentiment is None

    def test_empty_entry_rejected(self):
        with pytest.raises(InvalidJournalEntryError):
            build_entry([], "   ", "neutral")

    def test_unknown_sentiment(self):
        with pytest.raises(InvalidJournalEntryError):
            build_entry(["News"], "", "euphoric")


class TestAttach:
    """Attaching entries to trades."""

    @pytest.fixture
    def ledger(self) -> LedgerStore:
        snapshot = SnapshotBuilder().buy("AAPL", 10, "185.50").sell("LOT-1", 4, "190.00").build()
        return LedgerStore.from_snapshot(snapshot)

    def test_attach_twice_keeps_second_entry(self, ledger):
        print("\n" + "=" * 60)
        print("Test: Journal Attach Replaces")
        print("=" * 60)

        service = JournalService()
        first = JournalEntry(frozenset({"News"}), "first", Sentiment.BULLISH)
        second = JournalEntry(frozenset({"Technical Analysis"}), "second")

        service.attach(ledger, "TRD-1", first)
        trade = service.attach(ledger, "TRD-1", second)

        print(f"Entry: {trade.journal_entry}")
        assert trade.journal_entry == second
        assert ledger.get_trade("TRD-1").journal_entry == second
        print("✅ PASS: Second entry replaced the first, no merge")

    def test_attach_to_sell_trade(self, ledger):
        service = JournalService()
        entry = JournalEntry(rationale="Taking profit")

        service.attach(ledger, "TRD-2", entry)

        assert service.entry_for_position(ledger, "SELL-2") == entry
        assert service.entry_for_position(ledger, "LOT-1") is None

    def test_unknown_trade(self, ledger):
        with pytest.raises(TradeNotFoundError) as exc_info:
            JournalService().attach(ledger, "TRD-404", JournalEntry(rationale="x"))
        assert exc_info.value.trade_id == "TRD-404"

    def test_empty_entry(self, ledger):
        with pytest.raises(InvalidJournalEntryError):
            JournalService().attach(ledger, "TRD-1", JournalEntry())
        assert ledger.get_trade("TRD-1").journal_entry is None


def test_export_writes_markdown(tmp_path):
    print("\n" + "=" * 60)
    print("Test: Journal Export")
    print("=" * 60)

    entry = JournalEntry(frozenset({"News", "Fundamental Analysis"}), "Strong quarter", Sentiment.BULLISH)
    snapshot = (
        SnapshotBuilder()
        .buy("AAPL", 10, "185.50", journal=entry)
        .sell("LOT-1", 4, "190.00")
        .build()
    )
    valuation = ValuationEngine(StaticPriceFeed({"AAPL": Decimal("190.00")}).price_or_zero)
    service = JournalService(journal_dir=tmp_path)

    path = service.export(
        snapshot,
        valuation.summarize(snapshot),
        email="trader@example.com",
        generated_at=datetime(2024, 3, 2, 9, 0),
    )
    content = path.read_text(encoding="utf-8")
    print(content)

    assert path == tmp_path / "journal-2024-03-02.md"
    assert "# Trading Journal - 2024-03-02 (trader@example.com)" in content
    assert "| Trades | 2 (buy 1, sell 1) |" in content
    assert "| Journaled | 1 of 2 |" in content
    assert "## Trade #1: SELL 4 AAPL" in content
    assert "## Trade #2: BUY 10 AAPL" in content
    assert "- Fundamental Analysis\n- News" in content
    assert "> Strong quarter" in content
    assert "**Sentiment:** bullish" in content
    assert "_No journal entry._" in content
    assert "- Total Gain: $27.00" in content
    print("✅ PASS: Journal exported with entries and portfolio")


def test_format_usd():
    assert format_usd(Decimal("98145")) == "$98,145.00"
    assert format_usd(Decimal("-12.346")) == "-$12.35"
    assert format_usd(Decimal("0.004")) == "$0.00"
