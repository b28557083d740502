"""Append-only position and trade ledger."""

from hypetrad.ledger.ids import generate_position_id, generate_trade_id
from hypetrad.ledger.store import LedgerStore
from hypetrad.ledger.types import (
    INFORMATION_SOURCES,
    AccountSnapshot,
    JournalEntry,
    Position,
    Sentiment,
    Trade,
)

__all__ = [
    "INFORMATION_SOURCES",
    "AccountSnapshot",
    "JournalEntry",
    "LedgerStore",
    "Position",
    "Sentiment",
    "Trade",
    "generate_position_id",
    "generate_trade_id",
]
