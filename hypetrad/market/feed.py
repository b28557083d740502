"""Price feeds: the current price per ticker and periodic ticks."""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Mapping

from hypetrad.market.types import PriceTick

if TYPE_CHECKING:
    from hypetrad.events import EventBus

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Seed quotes for the simulated market
DEFAULT_PRICES: dict[str, Decimal] = {
    "AAPL": Decimal("185.50"),   # Apple Inc.
    "GOOGL": Decimal("138.20"),  # Alphabet Inc.
    "MSFT": Decimal("378.85"),   # Microsoft Corporation
    "TSLA": Decimal("248.42"),   # Tesla Inc.
    "AMZN": Decimal("145.86"),   # Amazon.com Inc.
    "NVDA": Decimal("875.30"),   # NVIDIA Corporation
}


class PriceFeed(ABC):
    """Source of current prices for valuation and sell execution."""

    @abstractmethod
    def tick(self) -> list[PriceTick]:
        """Advance prices one step and return the ticks produced."""
        pass

    @abstractmethod
    def current_price(self, ticker: str) -> Decimal | None:
        """Get the current price of a ticker, None if unknown."""
        pass

    @abstractmethod
    def snapshot(self) -> dict[str, Decimal]:
        """Get all current prices."""
        pass

    def price_or_zero(self, ticker: str) -> Decimal:
        """Price lookup for valuation: unknown tickers are worth 0."""
        price = self.current_price(ticker)
        return price if price is not None else Decimal("0")

    def register(self, ticker: str, price: Decimal) -> None:
        """Start tracking a ticker; ignored if already tracked."""

    def load(self, prices: Mapping[str, Decimal]) -> None:
        """Replace current prices with stored ones."""

    async def run(
        self,
        interval_seconds: float,
        event_bus: "EventBus | None" = None,
    ) -> None:
        """Background task: tick at a fixed interval until cancelled."""
        from hypetrad.events import PriceEvent

        logger.info("Price feed loop started (interval=%.1fs)", interval_seconds)
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                ticks = self.tick()
                if event_bus is None:
                    continue
                for tick in ticks:
                    await event_bus.publish(
                        PriceEvent(
                            ticker=tick.ticker,
                            price=tick.price,
                            previous_price=tick.previous_price,
                            timestamp=tick.timestamp,
                        )
                    )
        except asyncio.CancelledError:
            logger.info("Price feed loop cancelled")
            raise


class SimulatedPriceFeed(PriceFeed):
    """Random-walk prices: each tick moves every ticker by up to +/- max_step."""

    def __init__(
        self,
        prices: Mapping[str, Decimal] | None = None,
        max_step: Decimal = Decimal("1.00"),
        min_price: Decimal = CENT,
        rng: random.Random | None = None,
    ) -> None:
        source = DEFAULT_PRICES if prices is None else prices
        self._prices = {ticker.upper(): Decimal(p) for ticker, p in source.items()}
        self._max_step = Decimal(max_step)
        self._min_price = Decimal(min_price)
        self._rng = rng or random.Random()

    def tick(self) -> list[PriceTick]:
        ticks: list[PriceTick] = []
        for ticker, price in self._prices.items():
            change = Decimal(str(self._rng.uniform(-1.0, 1.0))) * self._max_step
            new_price = max(self._min_price, price + change)
            new_price = new_price.quantize(CENT, rounding=ROUND_HALF_UP)
            new_price = max(new_price, self._min_price)
            self._prices[ticker] = new_price
            ticks.append(PriceTick(ticker=ticker, price=new_price, previous_price=price))

        logger.debug("Price tick: %d tickers updated", len(ticks))
        return ticks

    def current_price(self, ticker: str) -> Decimal | None:
        return self._prices.get(ticker.upper())

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self._prices)

    def register(self, ticker: str, price: Decimal) -> None:
        ticker = ticker.upper()
        if ticker in self._prices or price <= 0:
            return
        self._prices[ticker] = Decimal(price)
        logger.info("Price feed tracking %s @ %s", ticker, price)

    def load(self, prices: Mapping[str, Decimal]) -> None:
        for ticker, price in prices.items():
            if price > 0:
                self._prices[ticker.upper()] = Decimal(price)


class StaticPriceFeed(PriceFeed):
    """Fixed prices; ticks change nothing."""

    def __init__(self, prices: Mapping[str, Decimal] | None = None) -> None:
        self._prices = {
            ticker.upper(): Decimal(p) for ticker, p in (prices or {}).items()
        }

    def tick(self) -> list[PriceTick]:
        return []

    def current_price(self, ticker: str) -> Decimal | None:
        return self._prices.get(ticker.upper())

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self._prices)

    def set_price(self, ticker: str, price: Decimal) -> None:
        """Override the price of a ticker."""
        self._prices[ticker.upper()] = Decimal(price)

    def register(self, ticker: str, price: Decimal) -> None:
        self._prices.setdefault(ticker.upper(), Decimal(price))

    def load(self, prices: Mapping[str, Decimal]) -> None:
        for ticker, price in prices.items():
            self.set_price(ticker, price)


class ScriptedPriceFeed(PriceFeed):
    """Steps through a fixed sequence of price maps, one per tick.

    Holds the last step once the script is exhausted.
    """

    def __init__(self, steps: list[Mapping[str, Decimal]]) -> None:
        if not steps:
            raise ValueError("ScriptedPriceFeed needs at least one step")
        self._steps = [
            {ticker.upper(): Decimal(p) for ticker, p in step.items()}
            for step in steps
        ]
        self._index = 0

    def tick(self) -> list[PriceTick]:
        if self._index >= len(self._steps) - 1:
            return []
        previous = self._steps[self._index]
        self._index += 1
        current = self._steps[self._index]
        return [
            PriceTick(ticker=ticker, price=price, previous_price=previous.get(ticker))
            for ticker, price in current.items()
        ]

    def current_price(self, ticker: str) -> Decimal | None:
        return self._steps[self._index].get(ticker.upper())

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self._steps[self._index])
