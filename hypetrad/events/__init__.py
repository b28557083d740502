"""Event system for pub/sub communication."""

from hypetrad.events.bus import EventBus
from hypetrad.events.types import (
    AccountAction,
    AccountEvent,
    Event,
    JournalEvent,
    PriceEvent,
    TradeEvent,
)

__all__ = [
    "Event",
    "TradeEvent",
    "JournalEvent",
    "PriceEvent",
    "AccountEvent",
    "AccountAction",
    "EventBus",
]
