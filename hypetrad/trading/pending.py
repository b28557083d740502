"""Pending trade handle and its state machine."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from hypetrad.ledger.types import Position, Trade


class TradeState(Enum):
    """Lifecycle of one trade command."""

    VALIDATE = "VALIDATE"
    EXECUTE = "EXECUTE"
    AWAIT_JOURNAL = "AWAIT_JOURNAL"
    COMMITTED = "COMMITTED"

    @property
    def is_terminal(self) -> bool:
        return self is TradeState.COMMITTED

    @property
    def is_journalable(self) -> bool:
        """Check if a journal entry is still expected."""
        return self is TradeState.AWAIT_JOURNAL


# Valid state transitions
VALID_TRANSITIONS: dict[TradeState, set[TradeState]] = {
    TradeState.VALIDATE: {TradeState.EXECUTE},
    TradeState.EXECUTE: {TradeState.AWAIT_JOURNAL},
    TradeState.AWAIT_JOURNAL: {TradeState.COMMITTED},
    TradeState.COMMITTED: set(),  # Terminal
}


@dataclass
class PendingTrade:
    """Handle returned by a buy or sell.

    Ledger rows are already written when the handle reaches
    AWAIT_JOURNAL; the journal step only decorates the trade.
    """

    action: str
    ticker: str
    quantity: int
    price: Decimal
    position: Position | None = None
    trade: Trade | None = None
    cash_balance: Decimal | None = None
    state: TradeState = TradeState.VALIDATE
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def trade_id(self) -> str:
        if self.trade is None:
            raise ValueError("Trade has not been executed")
        return self.trade.id

    @property
    def total_value(self) -> Decimal:
        return self.price * self.quantity

    @property
    def is_committed(self) -> bool:
        return self.state.is_terminal

    def can_transition_to(self, new_state: TradeState) -> bool:
        """Check if transition to new state is valid."""
        return new_state in VALID_TRANSITIONS.get(self.state, set())

    def transition_to(self, new_state: TradeState) -> None:
        """Transition to a new state."""
        if not self.can_transition_to(new_state):
            raise ValueError(
                f"Invalid transition: {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.updated_at = datetime.now()

    def mark_executed(self, position: Position, trade: Trade, cash_balance: Decimal) -> None:
        """Record the rows written and open the journal step."""
        self.position = position
        self.trade = trade
        self.cash_balance = cash_balance
        self.transition_to(TradeState.AWAIT_JOURNAL)

    def commit(self) -> None:
        """Close the journal step, with or without an entry."""
        if self.state is TradeState.AWAIT_JOURNAL:
            self.transition_to(TradeState.COMMITTED)
