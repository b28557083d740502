"""Async event bus for trade, journal, price and account notifications."""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Coroutine

from hypetrad.events.types import Event

logger = logging.getLogger(__name__)

EventHandler = Callable[[Event], Coroutine[Any, Any, None]]


class EventBus:
    """Pub/sub bus with per-type handlers.

    While started, published events are queued and delivered by a
    background task in publish order. When not started, ``publish``
    delivers inline before returning. Handlers subscribed to ``Event``
    receive every event.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[EventHandler]] = defaultdict(list)
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._delivered = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def delivered_count(self) -> int:
        """Number of events delivered so far."""
        return self._delivered

    def subscribe(self, event_type: type[Event], handler: EventHandler) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed %s to %s", handler.__name__, event_type.__name__)

    def unsubscribe(self, event_type: type[Event], handler: EventHandler) -> None:
        """Unregister a handler for an event type."""
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)
            logger.debug("Unsubscribed %s from %s", handler.__name__, event_type.__name__)

    async def publish(self, event: Event) -> None:
        """Publish an event."""
        if self._running:
            await self._queue.put(event)
            logger.debug("Queued %s", type(event).__name__)
        else:
            await self._deliver(event)

    def _handlers_for(self, event: Event) -> list[EventHandler]:
        handlers = list(self._handlers.get(type(event), []))
        if type(event) is not Event:
            handlers.extend(self._handlers.get(Event, []))
        return handlers

    async def _deliver(self, event: Event) -> None:
        """Call every handler for the event; failures are logged, not raised."""
        event_name = type(event).__name__
        handlers = self._handlers_for(event)
        self._delivered += 1

        if not handlers:
            logger.debug("No handlers for %s", event_name)
            return

        results = await asyncio.gather(
            *(handler(event) for handler in handlers),
            return_exceptions=True,
        )
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(
                    "Handler %s failed for %s: %s",
                    handler.__name__,
                    event_name,
                    result,
                )

    async def _run_loop(self) -> None:
        while self._running:
            event = await self._queue.get()
            try:
                await self._deliver(event)
            finally:
                self._queue.task_done()

    async def start(self) -> None:
        """Start background delivery."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Event bus started")

    async def stop(self) -> None:
        """Stop background delivery, then deliver anything still queued."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        while not self._queue.empty():
            event = self._queue.get_nowait()
            await self._deliver(event)
            self._queue.task_done()

        logger.info("Event bus stopped")

    async def wait_empty(self) -> None:
        """Wait until all queued events have been delivered."""
        await self._queue.join()
