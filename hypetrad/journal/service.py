"""Journal entries on trades and journal export."""

import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from hypetrad.errors import InvalidJournalEntryError, TradeNotFoundError
from hypetrad.journal.writer import JournalWriter
from hypetrad.ledger.store import LedgerStore
from hypetrad.ledger.types import AccountSnapshot, JournalEntry, Sentiment, Trade
from hypetrad.valuation.types import PortfolioSummary

logger = logging.getLogger(__name__)


def build_entry(
    sources: Iterable[str] = (),
    rationale: str = "",
    sentiment: "Sentiment | str | None" = None,
) -> JournalEntry:
    """
    Build a journal entry from form input.

    Blank sources are dropped and the rationale is stripped.

    Raises:
        InvalidJournalEntryError: if the sentiment is unknown or the entry
            has neither a source nor a rationale
    """
    if isinstance(sentiment, str):
        try:
            sentiment = Sentiment(sentiment.strip().lower())
        except ValueError as e:
            raise InvalidJournalEntryError(
                f"Unknown sentiment: {sentiment!r} (use bullish, neutral or bearish)"
            ) from e

    entry = JournalEntry(
        sources=frozenset(s.strip() for s in sources if s and s.strip()),
        rationale=(rationale or "").strip(),
        sentiment=sentiment,
    )
    if entry.is_empty:
        raise InvalidJournalEntryError("Select a source or write a rationale")
    return entry


class JournalService:
    """Attaches rationale to trades and renders the trading journal."""

    def __init__(
        self,
        journal_dir: Path | None = None,
        writer: JournalWriter | None = None,
    ) -> None:
        self._journal_dir = journal_dir or Path("journals")
        self._writer = writer or JournalWriter()

    def attach(self, ledger: LedgerStore, trade_id: str, entry: JournalEntry) -> Trade:
        """
        Attach a journal entry to a trade, replacing any earlier entry.

        Entries are never merged: the trade keeps exactly the entry given.

        Raises:
            TradeNotFoundError: if no trade has this ID
            InvalidJournalEntryError: if the entry is empty
        """
        if entry.is_empty:
            raise InvalidJournalEntryError("Select a source or write a rationale")

        trade = ledger.get_trade(trade_id)
        if trade is None:
            raise TradeNotFoundError(f"Trade not found: {trade_id}", trade_id=trade_id)

        replaced = trade.journal_entry is not None
        trade.journal_entry = entry
        logger.info(
            "Journal %s for %s %s (%d sources)",
            "replaced" if replaced else "attached",
            trade.action,
            trade.ticker,
            len(entry.sources),
        )
        return trade

    def entry_for_position(self, ledger: LedgerStore, position_id: str) -> JournalEntry | None:
        """Get the journal entry of the trade linked to a position row."""
        trade = ledger.trade_for_position(position_id)
        return trade.journal_entry if trade else None

    def export(
        self,
        snapshot: AccountSnapshot,
        summary: PortfolioSummary,
        email: str = "",
        output_path: Path | None = None,
        generated_at: datetime | None = None,
    ) -> Path:
        """Write the trade history with journal entries to a markdown file."""
        if generated_at is None:
            generated_at = datetime.now()
        if output_path is None:
            output_path = self._journal_dir / f"journal-{generated_at:%Y-%m-%d}.md"

        result = self._writer.write(
            snapshot.trades,
            summary,
            output_path,
            email=email,
            generated_at=generated_at,
        )
        logger.info("Journal written to %s (%d trades)", result, len(snapshot.trades))
        return result
