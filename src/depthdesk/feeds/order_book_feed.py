"""Push feed: websocket order-book snapshots into an OrderBookStore."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import websockets
from websockets.exceptions import WebSocketException

from depthdesk.constants import DEFAULT_RECONNECT_DELAY_SEC, FeedStatus
from depthdesk.errors import TransportFailure
from depthdesk.feeds.base import BookConnection
from depthdesk.state.stores import OrderBookStore

logger = logging.getLogger(__name__)

Connector = Callable[[], Awaitable[BookConnection]]


def websocket_connector(url: str) -> Connector:
    """Connector opening a plain websocket to ``url``."""

    async def connect() -> BookConnection:
        return await websockets.connect(url)

    return connect


class OrderBookFeed:
    """
    Reads full snapshots off a push connection and swaps them into the store.

    Malformed messages are dropped by the store. A dropped connection leaves
    the last snapshot in place and marks the feed disconnected; with
    ``reconnect`` enabled a fresh connection is opened after
    ``reconnect_delay_sec`` and the store is reset first, so nothing from the
    previous connection is merged with the new one.
    """

    def __init__(
        self,
        store: OrderBookStore,
        connector: Connector,
        reconnect: bool = False,
        reconnect_delay_sec: float = DEFAULT_RECONNECT_DELAY_SEC,
    ):
        self.store = store
        self._connect = connector
        self.reconnect = reconnect
        self.reconnect_delay_sec = reconnect_delay_sec
        self.status = FeedStatus.CONNECTING
        self.connections_opened = 0
        self.last_error: TransportFailure | None = None
        self._connection: BookConnection | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self) -> None:
        """Consume messages until closed (or disconnected, without reconnect)."""
        while not self._closed:
            self.status = FeedStatus.CONNECTING
            try:
                connection = await self._connect()
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                self._on_failure(TransportFailure(f"connect failed: {e!r}", e))
                if not await self._should_retry():
                    return
                continue

            if self._closed:
                await connection.close()
                return

            if self.connections_opened > 0:
                self.store.reset()
            self.connections_opened += 1
            self._connection = connection
            self.status = FeedStatus.LIVE
            logger.info(f"Order book feed connected (connection #{self.connections_opened})")

            try:
                async for raw in connection:
                    if self._closed:
                        break
                    self.store.apply_message(raw)
            except (OSError, WebSocketException) as e:
                if not self._closed:
                    self._on_failure(TransportFailure(f"connection lost: {e!r}", e))
            finally:
                self._connection = None
                await connection.close()

            if self._closed:
                return
            if self.status == FeedStatus.LIVE:
                logger.info("Order book feed closed by server")
                self.status = FeedStatus.DISCONNECTED
            if not await self._should_retry():
                return

    async def close(self) -> None:
        """Stop consuming; nothing received after this point is applied."""
        self._closed = True
        self.status = FeedStatus.CLOSED
        connection = self._connection
        if connection is not None:
            self._connection = None
            await connection.close()

    def _on_failure(self, error: TransportFailure) -> None:
        self.last_error = error
        self.status = FeedStatus.DISCONNECTED
        logger.warning(f"Order book feed: {error.message}")

    async def _should_retry(self) -> bool:
        if not self.reconnect or self._closed:
            return False
        await asyncio.sleep(self.reconnect_delay_sec)
        return not self._closed
