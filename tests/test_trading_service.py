"""Tests for TradingService - commands end to end against SQLite."""

from decimal import Decimal

import pytest
import pytest_asyncio

from hypetrad.account import AccountSession
from hypetrad.errors import (
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidPriceError,
    NotAuthenticatedError,
    TradeNotFoundError,
)
from hypetrad.events import Event, EventBus, JournalEvent, TradeEvent
from hypetrad.journal import JournalService, build_entry
from hypetrad.ledger.types import JournalEntry
from hypetrad.market.feed import StaticPriceFeed
from hypetrad.persistence import Database, Repository
from hypetrad.trading import TradeState, TradingService


@pytest_asyncio.fixture
async def repo(tmp_path):
    db = Database(tmp_path / "trading.db")
    await db.connect()
    yield Repository(db)
    await db.disconnect()


@pytest.fixture
def feed() -> StaticPriceFeed:
    return StaticPriceFeed({"AAPL": Decimal("185.50"), "MSFT": Decimal("378.85")})


@pytest.fixture
def events() -> list[Event]:
    return []


@pytest_asyncio.fixture
async def service(repo, feed, events, tmp_path) -> TradingService:
    bus = EventBus()

    async def record(event: Event) -> None:
        events.append(event)

    bus.subscribe(Event, record)
    session = AccountSession(repo, event_bus=bus)
    await session.sign_up("trader@example.com", "password123")
    events.clear()
    return TradingService(session, feed, bus, JournalService(tmp_path / "journals"))


class TestTradeCommands:
    """Buy and sell through the service."""

    @pytest.mark.asyncio
    async def test_example_sequence_persists(self, service, feed, repo):
        print("\n" + "=" * 60)
        print("Test: Service Buy / Sell / Persist")
        print("=" * 60)

        bought = await service.buy("AAPL", 10)
        feed.set_price("AAPL", Decimal("190.00"))
        sold = await service.sell(bought.position.id, 4)

        stored = await repo.load_snapshot("trader@example.com")
        print(f"Stored cash: {stored.cash_balance}")

        assert bought.price == Decimal("185.50")
        assert sold.price == Decimal("190.00")
        assert stored.cash_balance == Decimal("98905.00")
        assert [p.quantity for p in stored.positions] == [10, -4]
        assert stored.positions[1].parent_position_id == bought.position.id

        views = await service.positions()
        assert views[0].remaining_shares == 6
        print("✅ PASS: Ledger persisted after each command")

        with pytest.raises(InsufficientSharesError):
            await service.sell(bought.position.id, 7)

    @pytest.mark.asyncio
    async def test_rejected_command_changes_nothing(self, service, repo):
        await service.buy("AAPL", 10)
        before = await repo.load_snapshot("trader@example.com")

        with pytest.raises(InsufficientFundsError):
            await service.buy("MSFT", 1000)

        assert await repo.load_snapshot("trader@example.com") == before
        assert await service.snapshot() == before

    @pytest.mark.asyncio
    async def test_buy_without_price(self, service):
        with pytest.raises(InvalidPriceError):
            await service.buy("ZZZZ", 1)

    @pytest.mark.asyncio
    async def test_explicit_price_registers_ticker(self, service, feed):
        await service.buy("zzzz", 2, "12.50")

        assert feed.current_price("ZZZZ") == Decimal("12.50")

    @pytest.mark.asyncio
    async def test_trade_events(self, service, events):
        pending = await service.buy("AAPL", 1)

        trade_events = [e for e in events if isinstance(e, TradeEvent)]
        assert len(trade_events) == 1
        assert trade_events[0].trade.id == pending.trade_id
        assert trade_events[0].cash_balance == Decimal("99814.50")
        assert trade_events[0].email == "trader@example.com"


class TestJournal:
    """Journal step after a trade."""

    @pytest.mark.asyncio
    async def test_attach_commits_pending_and_persists(self, service, repo, events):
        pending = await service.buy("AAPL", 10)
        assert pending.state is TradeState.AWAIT_JOURNAL

        entry = build_entry(["News"], "Earnings beat", "bullish")
        await service.attach_journal(pending.trade_id, entry, pending)

        assert pending.state is TradeState.COMMITTED
        assert pending.trade.journal_entry == entry
        stored = await repo.load_snapshot("trader@example.com")
        assert stored.trades[0].journal_entry == entry

        journal_events = [e for e in events if isinstance(e, JournalEvent)]
        assert journal_events[-1].replaced is False

    @pytest.mark.asyncio
    async def test_attach_later_replaces(self, service, events):
        pending = await service.buy("AAPL", 10)
        await service.skip_journal(pending)
        assert pending.is_committed

        await service.attach_journal(pending.trade_id, JournalEntry(rationale="first"))
        trade = await service.attach_journal(pending.trade_id, JournalEntry(rationale="second"))

        assert trade.journal_entry.rationale == "second"
        history = await service.history()
        assert history[0].journal_entry.rationale == "second"
        assert [e.replaced for e in events if isinstance(e, JournalEvent)] == [False, True]

    @pytest.mark.asyncio
    async def test_unknown_trade(self, service):
        with pytest.raises(TradeNotFoundError):
            await service.attach_journal("TRD-404", JournalEntry(rationale="x"))

    @pytest.mark.asyncio
    async def test_export(self, service, tmp_path):
        await service.buy("AAPL", 10)

        path = await service.export_journal()

        assert path.parent == tmp_path / "journals"
        assert "BUY 10 AAPL" in path.read_text(encoding="utf-8")


class TestPortfolioAndReset:
    """Queries and reset."""

    @pytest.mark.asyncio
    async def test_portfolio(self, service, feed):
        await service.buy("AAPL", 10)
        feed.set_price("AAPL", Decimal("200.00"))

        summary = await service.portfolio()

        assert summary.total_value == Decimal("100145.00")
        assert summary.total_pnl == Decimal("145.00")
        assert summary.allocation[0].label == "Cash"

    @pytest.mark.asyncio
    async def test_reset(self, service, repo):
        await service.buy("AAPL", 10)

        snapshot = await service.reset()

        assert snapshot.cash_balance == Decimal("100000")
        stored = await repo.load_snapshot("trader@example.com")
        assert stored.positions == [] and stored.trades == []

    @pytest.mark.asyncio
    async def test_requires_login(self, repo, feed):
        service = TradingService(AccountSession(repo), feed)

        with pytest.raises(NotAuthenticatedError):
            await service.buy("AAPL", 1)
