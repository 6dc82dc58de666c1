"""Fixed-interval poll trigger with overlap protection."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from depthdesk.constants import FeedStatus
from depthdesk.errors import MalformedPayload, TransportFailure
from depthdesk.state.stores import SwapStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Poller(Generic[T]):
    """
    Periodically fetch a value and swap it into a store.

    Every request gets a monotonically increasing issue sequence and the store
    applies a response only if it is newer than the last one applied, so a
    slow response can never revert a fresher one. With ``single_flight`` (the
    default) a tick that fires while a request is still in flight is skipped.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        store: SwapStore[T],
        interval_sec: float,
        single_flight: bool = True,
    ):
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be positive, got: {interval_sec}")
        self.name = name
        self._fetch = fetch
        self.store = store
        self.interval_sec = interval_sec
        self.single_flight = single_flight
        self.status = FeedStatus.CONNECTING
        self.last_error: TransportFailure | None = None
        self.skipped = 0
        self._issued = 0
        self._in_flight: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def run(self) -> None:
        """Poll immediately, then every ``interval_sec`` until stopped."""
        logger.info(f"Poller '{self.name}' started (every {self.interval_sec}s)")
        while not self._closed:
            self.trigger()
            await asyncio.sleep(self.interval_sec)

    def trigger(self) -> asyncio.Task[None] | None:
        """Issue one poll now, unless single-flight says one is already running."""
        if self._closed:
            return None
        if self.single_flight and self._in_flight:
            self.skipped += 1
            logger.debug(f"Poller '{self.name}': previous request still in flight, skipping")
            return None
        self._issued += 1
        task = asyncio.create_task(self._poll(self._issued))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _poll(self, sequence: int) -> None:
        try:
            value = await self._fetch()
        except MalformedPayload as e:
            logger.debug(f"Poller '{self.name}': dropping malformed response: {e.message}")
            return
        except TransportFailure as e:
            if not self._closed:
                self.last_error = e
                self.status = FeedStatus.STALE
                logger.warning(f"Poller '{self.name}': {e.message}")
            return

        if self._closed:
            logger.debug(f"Poller '{self.name}': response #{sequence} arrived after stop, discarded")
            return
        self.store.apply(sequence, value)
        self.status = FeedStatus.LIVE

    async def stop(self) -> None:
        """Cancel in-flight requests; late responses are discarded."""
        self._closed = True
        self.status = FeedStatus.CLOSED
        pending = list(self._in_flight)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
