"""Application orchestrator."""

import asyncio
import logging
import random

from hypetrad.account.session import AccountSession
from hypetrad.config import Settings
from hypetrad.events import EventBus, PriceEvent, TradeEvent
from hypetrad.journal.service import JournalService
from hypetrad.market.feed import DEFAULT_PRICES, PriceFeed, SimulatedPriceFeed
from hypetrad.market.quotes import QuotesProvider, create_quotes_provider
from hypetrad.market.types import PriceTick, Quote
from hypetrad.monitor.logger import setup_logging
from hypetrad.persistence.database import Database
from hypetrad.persistence.repository import Repository
from hypetrad.trading.service import TradingService

logger = logging.getLogger(__name__)


class Application:
    """Wires settings, storage, the price feed and the services together."""

    def __init__(
        self,
        settings: Settings,
        price_feed: PriceFeed | None = None,
        quotes: QuotesProvider | None = None,
        configure_logging: bool = True,
    ) -> None:
        self._settings = settings
        self._configure_logging = configure_logging
        self._running = False

        self._db: Database | None = None
        self._repo: Repository | None = None
        self._event_bus: EventBus | None = None
        self._price_feed = price_feed
        self._quotes = quotes
        self._session: AccountSession | None = None
        self._trading: TradingService | None = None
        self._feed_task: asyncio.Task | None = None

        self._tick_count = 0
        self._trade_count = 0

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def session(self) -> AccountSession:
        if self._session is None:
            raise RuntimeError("Application not started")
        return self._session

    @property
    def trading(self) -> TradingService:
        if self._trading is None:
            raise RuntimeError("Application not started")
        return self._trading

    @property
    def price_feed(self) -> PriceFeed:
        if self._price_feed is None:
            raise RuntimeError("Application not started")
        return self._price_feed

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            raise RuntimeError("Application not started")
        return self._event_bus

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def trade_count(self) -> int:
        return self._trade_count

    async def start(self) -> None:
        """Start the application."""
        if self._configure_logging:
            setup_logging(
                self._settings.logging.log_dir,
                self._settings.logging.level,
                self._settings.logging.json_format,
            )

        logger.info("Starting Hypetrad (db=%s)", self._settings.database.path)

        self._db = Database(self._settings.database.path)
        await self._db.connect()
        self._repo = Repository(self._db)

        self._event_bus = EventBus()
        self._event_bus.subscribe(PriceEvent, self._on_price_event)
        self._event_bus.subscribe(TradeEvent, self._on_trade_event)

        if self._price_feed is None:
            feed_config = self._settings.price_feed
            self._price_feed = SimulatedPriceFeed(
                DEFAULT_PRICES,
                max_step=feed_config.max_step,
                min_price=feed_config.min_price,
                rng=random.Random(feed_config.seed),
            )
        stored_prices = await self._repo.load_prices()
        if stored_prices:
            self._price_feed.load(stored_prices)
            logger.debug("Loaded %d stored prices", len(stored_prices))

        if self._quotes is None:
            self._quotes = create_quotes_provider(self._settings.quotes)

        self._session = AccountSession(
            self._repo,
            self._settings.account,
            self._event_bus,
        )
        email = await self._session.restore()

        self._trading = TradingService(
            self._session,
            self._price_feed,
            self._event_bus,
            JournalService(self._settings.journal.export_dir),
        )

        self._running = True
        logger.info("Hypetrad started (session=%s)", email or "none")

    async def stop(self) -> None:
        """Stop the application and release resources."""
        if not self._running:
            return
        self._running = False

        await self.stop_price_feed()

        if self._repo is not None and self._price_feed is not None:
            await self._repo.save_prices(self._price_feed.snapshot())

        if self._quotes is not None:
            await self._quotes.close()

        if self._event_bus is not None:
            await self._event_bus.stop()

        if self._db is not None:
            await self._db.disconnect()

        logger.info(
            "Hypetrad stopped (trades=%d, ticks=%d)",
            self._trade_count,
            self._tick_count,
        )

    async def __aenter__(self) -> "Application":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    # --- Market ---

    async def search_quotes(self, query: str) -> list[Quote]:
        """Search tickers; quoted prices are tracked by the feed from then on."""
        if self._quotes is None:
            raise RuntimeError("Application not started")
        quotes = await self._quotes.search(query)
        for quote in quotes:
            if quote.price > 0:
                self.price_feed.register(quote.ticker, quote.price)
        return quotes

    async def tick(self, count: int = 1) -> list[PriceTick]:
        """Advance simulated prices and publish the ticks.

        Returns:
            Ticks of the last step
        """
        ticks: list[PriceTick] = []
        for _ in range(count):
            ticks = self.price_feed.tick()
            for tick in ticks:
                await self.event_bus.publish(
                    PriceEvent(
                        ticker=tick.ticker,
                        price=tick.price,
                        previous_price=tick.previous_price,
                        timestamp=tick.timestamp,
                    )
                )
        if self._repo is not None:
            await self._repo.save_prices(self.price_feed.snapshot())
        return ticks

    def start_price_feed(self) -> asyncio.Task:
        """Run the feed loop in the background at the configured interval."""
        if self._feed_task is None or self._feed_task.done():
            self._feed_task = asyncio.create_task(
                self.price_feed.run(
                    self._settings.price_feed.interval_seconds,
                    self.event_bus,
                )
            )
        return self._feed_task

    async def stop_price_feed(self) -> None:
        if self._feed_task and not self._feed_task.done():
            self._feed_task.cancel()
            try:
                await self._feed_task
            except asyncio.CancelledError:
                pass
        self._feed_task = None

    # --- Event handlers ---

    async def _on_price_event(self, event: PriceEvent) -> None:
        self._tick_count += 1

    async def _on_trade_event(self, event: TradeEvent) -> None:
        self._trade_count += 1
        logger.debug(
            "Trade event: %s %s x%d (cash %s)",
            event.trade.action,
            event.trade.ticker,
            event.trade.quantity,
            event.cash_balance,
        )
