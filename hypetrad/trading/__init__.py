"""Trade execution: validation, ledger writes and command handling."""

from hypetrad.trading.engine import (
    TradingEngine,
    normalize_ticker,
    parse_quantity,
    to_price,
)
from hypetrad.trading.pending import PendingTrade, TradeState
from hypetrad.trading.service import TradingService

__all__ = [
    "PendingTrade",
    "TradeState",
    "TradingEngine",
    "TradingService",
    "normalize_ticker",
    "parse_quantity",
    "to_price",
]
