"""Tests for EventBus delivery and the pending trade state machine."""

from decimal import Decimal

import pytest

from hypetrad.events import AccountEvent, Event, EventBus, PriceEvent
from hypetrad.trading.pending import PendingTrade, TradeState


class TestEventBus:
    """Inline and queued delivery."""

    @pytest.mark.asyncio
    async def test_inline_delivery_when_not_started(self):
        bus = EventBus()
        received: list[Event] = []

        async def on_price(event: PriceEvent) -> None:
            received.append(event)

        bus.subscribe(PriceEvent, on_price)
        await bus.publish(PriceEvent(ticker="AAPL", price=Decimal("1")))
        await bus.publish(AccountEvent(email="a@b.co"))

        assert [e.ticker for e in received] == ["AAPL"]
        assert bus.delivered_count == 2

    @pytest.mark.asyncio
    async def test_queued_delivery_and_wildcard(self):
        bus = EventBus()
        received: list[Event] = []

        async def on_any(event: Event) -> None:
            received.append(event)

        bus.subscribe(Event, on_any)
        await bus.start()
        await bus.publish(PriceEvent(ticker="AAPL", price=Decimal("1")))
        await bus.publish(AccountEvent(email="a@b.co", action="logout"))
        await bus.wait_empty()
        await bus.stop()

        assert [type(e) for e in received] == [PriceEvent, AccountEvent]
        assert not bus.is_running

    @pytest.mark.asyncio
    async def test_handler_failure_is_isolated(self):
        bus = EventBus()
        received: list[Event] = []

        async def broken(event: Event) -> None:
            raise RuntimeError("boom")

        async def working(event: Event) -> None:
            received.append(event)

        bus.subscribe(PriceEvent, broken)
        bus.subscribe(PriceEvent, working)
        bus.unsubscribe(PriceEvent, broken)
        bus.subscribe(PriceEvent, broken)

        await bus.publish(PriceEvent(ticker="AAPL", price=Decimal("1")))

        assert len(received) == 1


class TestPendingTrade:
    """VALIDATE -> EXECUTE -> AWAIT_JOURNAL -> COMMITTED."""

    def test_valid_path(self):
        pending = PendingTrade(action="buy", ticker="AAPL", quantity=1, price=Decimal("10"))

        assert pending.state is TradeState.VALIDATE
        pending.transition_to(TradeState.EXECUTE)
        pending.transition_to(TradeState.AWAIT_JOURNAL)
        assert pending.state.is_journalable
        pending.commit()
        assert pending.is_committed

        # Commit is idempotent once terminal
        pending.commit()
        assert pending.state is TradeState.COMMITTED

    def test_invalid_transition(self):
        pending = PendingTrade(action="buy", ticker="AAPL", quantity=1, price=Decimal("10"))

        with pytest.raises(ValueError):
            pending.transition_to(TradeState.COMMITTED)
        with pytest.raises(ValueError):
            pending.trade_id
        assert pending.total_value == Decimal("10")
