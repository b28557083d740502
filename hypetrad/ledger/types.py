"""Ledger rows: position lots, trades and journal entries."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Literal

TradeAction = Literal["buy", "sell"]

# Labels offered by the journal form; any other label is accepted as well
INFORMATION_SOURCES: tuple[str, ...] = (
    "Technical Analysis",
    "Fundamental Analysis",
    "News",
    "Social Media",
    "Gut Feeling",
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Sentiment(Enum):
    """Market sentiment recorded with a journal entry."""

    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"


@dataclass(frozen=True)
class JournalEntry:
    """Trading rationale attached to a trade after execution."""

    sources: frozenset[str] = field(default_factory=frozenset)
    rationale: str = ""
    sentiment: Sentiment | None = None

    @property
    def is_empty(self) -> bool:
        """Check if the entry carries neither sources nor rationale."""
        return not self.sources and not self.rationale.strip()


@dataclass(frozen=True)
class Position:
    """A ledger row: a buy lot (quantity > 0) or a sell event (quantity < 0).

    Sell rows carry the parent lot's purchase price as cost basis and link
    back to it through ``parent_position_id``. Rows written by older
    versions may lack the link.
    """

    id: str
    ticker: str
    quantity: int
    purchase_price: Decimal
    purchase_date: datetime = field(default_factory=utc_now)
    parent_position_id: str | None = None

    @property
    def is_lot(self) -> bool:
        """Check if this row opened shares (a buy lot)."""
        return self.quantity > 0

    @property
    def is_sell(self) -> bool:
        """Check if this row records a sale."""
        return self.quantity < 0

    @property
    def cost_basis(self) -> Decimal:
        """Get signed cost basis of the row."""
        return self.purchase_price * self.quantity


@dataclass
class Trade:
    """Trade event record, 1:1 with a Position row.

    Only ``journal_entry`` changes after creation.
    """

    id: str
    ticker: str
    action: TradeAction
    quantity: int
    price: Decimal
    position_id: str
    date: datetime = field(default_factory=utc_now)
    journal_entry: JournalEntry | None = None

    @property
    def total_value(self) -> Decimal:
        """Cash moved by this trade."""
        return self.price * self.quantity

    @property
    def has_journal(self) -> bool:
        return self.journal_entry is not None


@dataclass
class AccountSnapshot:
    """Full state of one account: cash plus the ledger.

    ``positions`` is in append order, ``trades`` newest first.
    """

    cash_balance: Decimal
    positions: list[Position] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)

    @classmethod
    def initial(cls, cash_balance: Decimal) -> "AccountSnapshot":
        """Create the snapshot of a new or reset account."""
        return cls(cash_balance=cash_balance)

    def copy(self) -> "AccountSnapshot":
        """Copy that can be mutated without touching this snapshot."""
        return AccountSnapshot(
            cash_balance=self.cash_balance,
            positions=list(self.positions),
            trades=[replace(t) for t in self.trades],
        )
