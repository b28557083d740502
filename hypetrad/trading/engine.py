"""Buy and sell execution against the ledger and cash balance."""

import logging
from decimal import Decimal, InvalidOperation

from hypetrad.errors import (
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidLotError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidTickerError,
)
from hypetrad.ledger.ids import generate_position_id, generate_trade_id
from hypetrad.ledger.store import LedgerStore
from hypetrad.ledger.types import AccountSnapshot, Position, Trade, utc_now
from hypetrad.market.feed import PriceFeed
from hypetrad.trading.pending import PendingTrade, TradeState

logger = logging.getLogger(__name__)


def parse_quantity(value: object) -> int:
    """
    Convert user input to a share quantity.

    Raises:
        InvalidQuantityError: if the value is not a positive whole number
    """
    if isinstance(value, bool):
        raise InvalidQuantityError("Please enter a valid quantity")

    if isinstance(value, int):
        quantity = value
    elif isinstance(value, str) and value.strip().isdecimal():
        quantity = int(value.strip())
    elif isinstance(value, float) and value.is_integer():
        quantity = int(value)
    elif isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        quantity = int(value)
    else:
        raise InvalidQuantityError("Please enter a valid quantity")

    if quantity <= 0:
        raise InvalidQuantityError("Please enter a valid quantity")
    return quantity


def to_price(value: object) -> Decimal:
    """
    Convert a price input to Decimal.

    Raises:
        InvalidPriceError: if the value is not a positive number
    """
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidPriceError(f"Invalid price: {value!r}") from e

    if not price.is_finite() or price <= 0:
        raise InvalidPriceError(f"Price must be positive, got {value}")
    return price


def normalize_ticker(ticker: str) -> str:
    """Uppercase and strip a ticker symbol."""
    symbol = (ticker or "").strip().upper()
    if not symbol:
        raise InvalidTickerError("Please select a stock first")
    return symbol


class TradingEngine:
    """Validates and executes trade commands for one account snapshot.

    Every precondition is checked before anything is written, so a
    rejected command leaves cash and ledger untouched.
    """

    def __init__(
        self,
        snapshot: AccountSnapshot,
        price_feed: PriceFeed | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._ledger = LedgerStore.from_snapshot(snapshot)
        self._price_feed = price_feed

    @property
    def snapshot(self) -> AccountSnapshot:
        return self._snapshot

    @property
    def ledger(self) -> LedgerStore:
        return self._ledger

    @property
    def cash_balance(self) -> Decimal:
        return self._snapshot.cash_balance

    def buy(self, ticker: str, quantity: object, price: object) -> PendingTrade:
        """
        Open a new lot.

        Args:
            ticker: Symbol to buy
            quantity: Number of shares (positive integer)
            price: Execution price per share

        Returns:
            PendingTrade awaiting an optional journal entry

        Raises:
            InvalidTickerError, InvalidQuantityError, InvalidPriceError,
            InsufficientFundsError
        """
        symbol = normalize_ticker(ticker)
        qty = parse_quantity(quantity)
        exec_price = to_price(price)

        pending = PendingTrade(action="buy", ticker=symbol, quantity=qty, price=exec_price)

        total = exec_price * qty
        if total > self._snapshot.cash_balance:
            raise InsufficientFundsError(
                "Insufficient cash balance",
                required=total,
                available=self._snapshot.cash_balance,
            )
        pending.transition_to(TradeState.EXECUTE)

        now = utc_now()
        position = Position(
            id=generate_position_id(symbol, qty, now),
            ticker=symbol,
            quantity=qty,
            purchase_price=exec_price,
            purchase_date=now,
        )
        trade = Trade(
            id=generate_trade_id(position.id),
            ticker=symbol,
            action="buy",
            quantity=qty,
            price=exec_price,
            position_id=position.id,
            date=now,
        )

        self._snapshot.cash_balance -= total
        self._ledger.append_position(position)
        self._ledger.append_trade(trade)

        pending.mark_executed(position, trade, self._snapshot.cash_balance)
        logger.debug("Bought %d %s @ %s (lot %s)", qty, symbol, exec_price, position.id)
        return pending

    def sell(
        self,
        lot: Position,
        quantity: object,
        market_price: object = None,
    ) -> PendingTrade:
        """
        Sell shares out of a specific lot.

        The sell row carries the lot's purchase price as cost basis; the
        trade records the actual sell price.

        Args:
            lot: Buy lot to reduce
            quantity: Number of shares (positive integer)
            market_price: Sell price; resolved from the feed when omitted

        Returns:
            PendingTrade awaiting an optional journal entry

        Raises:
            InvalidLotError, InvalidQuantityError, InsufficientSharesError,
            InvalidPriceError
        """
        if not lot.is_lot:
            raise InvalidLotError("Cannot sell a sell position")
        if self._ledger.get_position(lot.id) is None:
            raise InvalidLotError(f"Unknown position: {lot.id}")

        remaining = self._ledger.remaining_shares(lot)
        if remaining <= 0:
            raise InvalidLotError(f"Position {lot.id} has no shares left to sell")

        qty = parse_quantity(quantity)
        if qty > remaining:
            raise InsufficientSharesError(
                f"You only own {remaining} shares of {lot.ticker}",
                requested=qty,
                remaining=remaining,
            )

        sell_price = self.resolve_sell_price(lot, market_price)
        pending = PendingTrade(action="sell", ticker=lot.ticker, quantity=qty, price=sell_price)
        pending.transition_to(TradeState.EXECUTE)

        now = utc_now()
        position = Position(
            id=generate_position_id(lot.ticker, -qty, now),
            ticker=lot.ticker,
            quantity=-qty,
            purchase_price=lot.purchase_price,
            purchase_date=now,
            parent_position_id=lot.id,
        )
        trade = Trade(
            id=generate_trade_id(position.id),
            ticker=lot.ticker,
            action="sell",
            quantity=qty,
            price=sell_price,
            position_id=position.id,
            date=now,
        )

        self._snapshot.cash_balance += sell_price * qty
        self._ledger.append_position(position)
        self._ledger.append_trade(trade)

        pending.mark_executed(position, trade, self._snapshot.cash_balance)
        logger.debug(
            "Sold %d %s @ %s from lot %s (%d left)",
            qty,
            lot.ticker,
            sell_price,
            lot.id,
            remaining - qty,
        )
        return pending

    def sell_by_id(
        self,
        position_id: str,
        quantity: object,
        market_price: object = None,
    ) -> PendingTrade:
        """Sell out of the lot with the given position ID."""
        lot = self._ledger.get_position(position_id)
        if lot is None:
            raise InvalidLotError(f"Unknown position: {position_id}")
        return self.sell(lot, quantity, market_price)

    def resolve_sell_price(self, lot: Position, market_price: object = None) -> Decimal:
        """
        Pick the sell price for a lot.

        Order: explicit price, live feed price, last traded price in the
        ticker, then the lot's purchase price.
        """
        if market_price is not None:
            return to_price(market_price)

        candidates = (
            self._price_feed.current_price(lot.ticker) if self._price_feed else None,
            self._ledger.latest_trade_price(lot.ticker),
            lot.purchase_price,
        )
        for candidate in candidates:
            if candidate is not None:
                return to_price(candidate)

        raise InvalidPriceError(f"No price available for {lot.ticker}")
