"""Event dataclasses for the simulator."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from hypetrad.ledger.types import JournalEntry, Position, Trade

AccountAction = Literal["signup", "login", "logout", "reset"]


@dataclass(frozen=True)
class Event:
    """Base event class."""

    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class TradeEvent(Event):
    """A buy or sell was executed and persisted."""

    email: str = ""
    trade: "Trade | None" = None
    position: "Position | None" = None
    cash_balance: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass(frozen=True)
class JournalEvent(Event):
    """A journal entry was attached to a trade."""

    email: str = ""
    trade_id: str = ""
    entry: "JournalEntry | None" = None
    replaced: bool = False


@dataclass(frozen=True)
class PriceEvent(Event):
    """The price feed moved a ticker."""

    ticker: str = ""
    price: Decimal = field(default_factory=lambda: Decimal("0"))
    previous_price: Decimal | None = None


@dataclass(frozen=True)
class AccountEvent(Event):
    """Account lifecycle event."""

    email: str = ""
    action: AccountAction = "login"
