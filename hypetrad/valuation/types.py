"""Valuation result types."""

from dataclasses import dataclass, field
from decimal import Decimal

from hypetrad.ledger.types import JournalEntry, Position, Trade

# Slice colors; cash always takes the first one
PALETTE: tuple[str, ...] = (
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#8b5cf6",
    "#ef4444",
    "#06b6d4",
    "#6366f1",
    "#d946ef",
    "#84cc16",
    "#64748b",
)

CASH_LABEL = "Cash"


@dataclass(frozen=True)
class AllocationSlice:
    """One slice of the allocation breakdown."""

    label: str
    percent: Decimal
    color_index: int
    value: Decimal = field(default_factory=lambda: Decimal("0"))

    @property
    def color(self) -> str:
        return PALETTE[self.color_index % len(PALETTE)]


@dataclass
class LotView:
    """A buy lot with its derived state, for position listings."""

    lot: Position
    remaining_shares: int
    current_price: Decimal
    pnl: Decimal
    sells: list[Position] = field(default_factory=list)
    trade: Trade | None = None

    @property
    def market_value(self) -> Decimal:
        """Value of the shares still held."""
        return self.current_price * self.remaining_shares

    @property
    def journal_entry(self) -> JournalEntry | None:
        return self.trade.journal_entry if self.trade else None

    @property
    def is_closed(self) -> bool:
        return self.remaining_shares == 0


@dataclass
class PortfolioSummary:
    """Headline figures for an account."""

    cash_balance: Decimal
    holdings_value: Decimal
    total_value: Decimal
    total_pnl: Decimal
    allocation: list[AllocationSlice] = field(default_factory=list)

    @property
    def is_gain(self) -> bool:
        return self.total_pnl >= 0

    @property
    def gain_loss_label(self) -> str:
        return "Total Gain" if self.is_gain else "Total Loss"
