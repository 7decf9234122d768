"""
Lifecycle notifier

Keeps independently mounted views eventually consistent without a shared
store, through two channels:

- LifecycleBus: a named-event broadcast. Views publish `ticketUpdated` after
  a confirmed mutation; subscribers re-fetch as soon as they hear it.
- Poller: a fixed-interval refresh for as long as a view is mounted. Bounds
  staleness even when a broadcast is missed.

Refreshes replace a view's state wholesale, so the order in which two
overlapping refreshes finish does not matter (last fetch wins).
"""
import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ticketdesk.config import settings

logger = logging.getLogger(__name__)

TICKET_UPDATED = "ticketUpdated"

Handler = Callable[[], Any]


class Subscription:
    """Handle returned by LifecycleBus.subscribe; cancel() on unmount"""

    def __init__(self, bus: "LifecycleBus", event: str, handler: Handler):
        self.bus = bus
        self.event = event
        self.handler = handler
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.bus.unsubscribe(self.event, self.handler)
            self.active = False


class LifecycleBus:
    """In-process publish/subscribe for payload-free lifecycle events"""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> Subscription:
        self._handlers[event].append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__qualname__', handler)} to {event}")
        return Subscription(self, event, handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    async def publish(self, event: str = TICKET_UPDATED) -> int:
        """
        Deliver an event to every current subscriber.

        Coroutine handlers are awaited together. A failing subscriber is
        logged and does not affect the publisher or other subscribers.

        Returns:
            Number of subscribers notified
        """
        handlers = list(self._handlers.get(event, []))
        pending: List[Awaitable[Any]] = []
        for handler in handlers:
            try:
                result = handler()
            except Exception:
                logger.exception(f"Subscriber for {event} failed")
                continue
            if inspect.isawaitable(result):
                pending.append(result)

        if pending:
            results = await asyncio.gather(*pending, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    logger.error(f"Subscriber for {event} failed: {result!r}")

        logger.debug(f"Published {event} to {len(handlers)} subscriber(s)")
        return len(handlers)


_default_bus: Optional[LifecycleBus] = None


def get_lifecycle_bus() -> LifecycleBus:
    """Process-wide bus shared by views that were not handed one explicitly."""
    global _default_bus

    if _default_bus is None:
        _default_bus = LifecycleBus()

    return _default_bus


class Poller:
    """
    Calls `callback` every `interval` seconds until stopped.

    `sleep` is injectable so tests can drive the clock by hand.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        name: str = "poller",
    ):
        self.callback = callback
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.name = name
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.debug(f"{self.name} started (every {self.interval}s)")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        if task is asyncio.current_task():
            # Stopped from inside the callback; the loop ends at its next sleep.
            logger.debug(f"{self.name} stopping")
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(f"{self.name} stopped")

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            self.ticks += 1
            try:
                await self.callback()
            except Exception:
                logger.exception(f"{self.name} refresh failed")
