"""Command handlers tying the trading core to the account session."""

import asyncio
import logging
from decimal import Decimal
from pathlib import Path

from hypetrad.account.session import AccountSession
from hypetrad.errors import InvalidPriceError
from hypetrad.events import EventBus, JournalEvent, TradeEvent
from hypetrad.journal.service import JournalService
from hypetrad.ledger.store import LedgerStore
from hypetrad.ledger.types import AccountSnapshot, JournalEntry, Trade
from hypetrad.market.feed import PriceFeed
from hypetrad.monitor.logger import LogContext, get_trade_logger
from hypetrad.trading.engine import TradingEngine, normalize_ticker
from hypetrad.trading.pending import PendingTrade
from hypetrad.valuation.engine import ValuationEngine
from hypetrad.valuation.types import LotView, PortfolioSummary

logger = logging.getLogger(__name__)
trade_logger = get_trade_logger()


class TradingService:
    """Runs one user command at a time against the logged-in account.

    Each command works on a copy of the snapshot and replaces the stored
    snapshot only when it succeeds, so a rejected or failed command
    leaves both memory and storage as they were.
    """

    def __init__(
        self,
        session: AccountSession,
        price_feed: PriceFeed,
        event_bus: EventBus | None = None,
        journal_service: JournalService | None = None,
    ) -> None:
        self._session = session
        self._price_feed = price_feed
        self._event_bus = event_bus
        self._journal = journal_service or JournalService()
        self._valuation = ValuationEngine(price_feed.price_or_zero)
        self._lock = asyncio.Lock()

    @property
    def valuation(self) -> ValuationEngine:
        return self._valuation

    # --- Trade commands ---

    async def buy(
        self,
        ticker: str,
        quantity: object,
        price: object = None,
    ) -> PendingTrade:
        """
        Buy shares at the given price, or at the feed price when omitted.

        Returns:
            PendingTrade in AWAIT_JOURNAL state
        """
        async with self._lock:
            email = self._session.current_email()
            if price is None:
                price = self._price_feed.current_price(normalize_ticker(ticker))
                if price is None:
                    raise InvalidPriceError(f"No price available for {ticker.upper()}")

            working = (await self._session.current_snapshot()).copy()
            pending = TradingEngine(working, self._price_feed).buy(ticker, quantity, price)
            await self._session.persist(working)

        self._price_feed.register(pending.ticker, pending.price)
        await self._record_trade(email, pending)
        return pending

    async def sell(
        self,
        position_id: str,
        quantity: object,
        price: object = None,
    ) -> PendingTrade:
        """
        Sell shares out of a lot at the given or resolved market price.

        Returns:
            PendingTrade in AWAIT_JOURNAL state
        """
        async with self._lock:
            email = self._session.current_email()
            working = (await self._session.current_snapshot()).copy()
            pending = TradingEngine(working, self._price_feed).sell_by_id(
                position_id, quantity, price
            )
            await self._session.persist(working)

        await self._record_trade(email, pending)
        return pending

    async def attach_journal(
        self,
        trade_id: str,
        entry: JournalEntry,
        pending: PendingTrade | None = None,
    ) -> Trade:
        """Attach a journal entry to a trade and persist it."""
        async with self._lock:
            email = self._session.current_email()
            working = (await self._session.current_snapshot()).copy()
            ledger = LedgerStore.from_snapshot(working)
            existing = ledger.get_trade(trade_id)
            replaced = existing is not None and existing.journal_entry is not None
            trade = self._journal.attach(ledger, trade_id, entry)
            await self._session.persist(working)

        if pending is not None and pending.trade is not None and pending.trade.id == trade.id:
            pending.trade = trade
            pending.commit()

        with LogContext(email):
            trade_logger.info(
                "journal_attached",
                extra={
                    "email": email,
                    "trade_id": trade.id,
                    "position_id": trade.position_id,
                    "ticker": trade.ticker,
                    "action": trade.action,
                },
            )
        if self._event_bus is not None:
            await self._event_bus.publish(
                JournalEvent(email=email, trade_id=trade.id, entry=entry, replaced=replaced)
            )
        return trade

    async def skip_journal(self, pending: PendingTrade) -> None:
        """Finalize a trade without a journal entry."""
        pending.commit()
        logger.debug("Journal skipped for %s", pending.trade_id)

    async def reset(self) -> AccountSnapshot:
        """Reset the account to its initial cash and an empty ledger."""
        async with self._lock:
            return await self._session.reset_snapshot()

    # --- Queries ---

    async def snapshot(self) -> AccountSnapshot:
        return await self._session.current_snapshot()

    async def portfolio(self) -> PortfolioSummary:
        """Current value, gain/loss and allocation."""
        return self._valuation.summarize(await self._session.current_snapshot())

    async def positions(self) -> list[LotView]:
        """Buy lots with remaining shares, P&L and their sells."""
        return self._valuation.position_views(await self._session.current_snapshot())

    async def history(self) -> list[Trade]:
        """Trades, newest first."""
        snapshot = await self._session.current_snapshot()
        return list(snapshot.trades)

    async def export_journal(self, output_path: Path | None = None) -> Path:
        """Write the trade journal to markdown."""
        email = self._session.current_email()
        snapshot = await self._session.current_snapshot()
        return self._journal.export(
            snapshot,
            self._valuation.summarize(snapshot),
            email=email,
            output_path=output_path,
        )

    # --- Internals ---

    async def _record_trade(self, email: str, pending: PendingTrade) -> None:
        position = pending.position
        trade = pending.trade
        if position is None or trade is None:
            raise ValueError("Trade has not been executed")

        with LogContext(email):
            logger.info(
                "%s %d %s @ %s (cash %s)",
                trade.action.upper(),
                trade.quantity,
                trade.ticker,
                trade.price,
                pending.cash_balance,
            )
            trade_logger.info(
                "trade_executed",
                extra={
                    "email": email,
                    "trade_id": trade.id,
                    "position_id": position.id,
                    "parent_position_id": position.parent_position_id,
                    "ticker": trade.ticker,
                    "action": trade.action,
                    "quantity": trade.quantity,
                    "price": trade.price,
                    "cash_balance": pending.cash_balance,
                },
            )

        if self._event_bus is not None:
            await self._event_bus.publish(
                TradeEvent(
                    email=email,
                    trade=trade,
                    position=position,
                    cash_balance=pending.cash_balance or Decimal("0"),
                )
            )
