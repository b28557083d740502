"""Tests for price feeds - random walk bounds, determinism and the feed loop."""

import asyncio
import random
from decimal import Decimal

import pytest

from hypetrad.events import EventBus, PriceEvent
from hypetrad.market.feed import (
    DEFAULT_PRICES,
    ScriptedPriceFeed,
    SimulatedPriceFeed,
    StaticPriceFeed,
)


def test_default_prices():
    feed = SimulatedPriceFeed()

    assert feed.current_price("aapl") == Decimal("185.50")
    assert feed.snapshot() == DEFAULT_PRICES
    assert feed.current_price("ZZZ") is None
    assert feed.price_or_zero("ZZZ") == Decimal("0")


def test_tick_moves_within_step():
    print("\n" + "=" * 60)
    print("Test: Random Walk Step Bounds")
    print("=" * 60)

    feed = SimulatedPriceFeed(rng=random.Random(7))

    for _ in range(50):
        for tick in feed.tick():
            assert abs(tick.change) <= Decimal("1.00")
            assert tick.price >= Decimal("0.01")
            assert tick.price == tick.price.quantize(Decimal("0.01"))

    print(f"Prices after 50 ticks: {feed.snapshot()}")
    print("✅ PASS: Every move within +/- 1.00, cents precision")


def test_seeded_feeds_are_deterministic():
    a = SimulatedPriceFeed(rng=random.Random(42))
    b = SimulatedPriceFeed(rng=random.Random(42))

    for _ in range(5):
        a.tick()
        b.tick()

    assert a.snapshot() == b.snapshot()


def test_price_floor():
    feed = SimulatedPriceFeed({"PENNY": Decimal("0.02")}, max_step=Decimal("5"), rng=random.Random(1))

    for _ in range(20):
        feed.tick()
        assert feed.current_price("PENNY") >= Decimal("0.01")


def test_register_and_load():
    feed = SimulatedPriceFeed({"AAPL": Decimal("185.50")})

    feed.register("zzz", Decimal("10"))
    feed.register("AAPL", Decimal("1"))
    feed.register("BAD", Decimal("0"))
    feed.load({"aapl": Decimal("190.00"), "NEG": Decimal("-1")})

    assert feed.snapshot() == {"AAPL": Decimal("190.00"), "ZZZ": Decimal("10")}


def test_static_and_scripted_feeds():
    static = StaticPriceFeed({"AAPL": Decimal("100")})
    static.register("AAPL", Decimal("1"))
    static.set_price("msft", Decimal("300"))
    assert static.tick() == []
    assert static.snapshot() == {"AAPL": Decimal("100"), "MSFT": Decimal("300")}

    scripted = ScriptedPriceFeed([{"AAPL": Decimal("100")}, {"AAPL": Decimal("110")}])
    ticks = scripted.tick()
    assert ticks[0].change == Decimal("10")
    assert scripted.tick() == []
    assert scripted.current_price("AAPL") == Decimal("110")

    with pytest.raises(ValueError):
        ScriptedPriceFeed([])


@pytest.mark.asyncio
async def test_run_publishes_price_events():
    bus = EventBus()
    received: list[PriceEvent] = []

    async def on_price(event: PriceEvent) -> None:
        received.append(event)

    bus.subscribe(PriceEvent, on_price)
    feed = SimulatedPriceFeed({"AAPL": Decimal("185.50")}, rng=random.Random(3))

    task = asyncio.create_task(feed.run(0.01, bus))
    while len(received) < 3:
        await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert all(e.ticker == "AAPL" for e in received)
    assert received[1].previous_price == received[0].price
