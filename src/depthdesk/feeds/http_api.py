"""HTTP adapter for the exchange REST endpoints (aiohttp)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import aiohttp

from depthdesk.constants import DEFAULT_HTTP_BASE_URL, DEFAULT_REQUEST_TIMEOUT_SEC, OrderType, Side
from depthdesk.data.codec import (
    encode_order_request,
    loads,
    parse_balances,
    parse_order_book,
    parse_trades,
)
from depthdesk.data.models import Balance, OrderBookSnapshot, Trade
from depthdesk.errors import (
    MalformedPayload,
    SubmissionNetworkError,
    SubmissionRejected,
    TransportFailure,
)
from depthdesk.feeds.base import ExchangeApi

logger = logging.getLogger(__name__)


class HttpApi(ExchangeApi):
    """
    REST client for ``/orderbook``, ``/trades``, ``/my-trades``, ``/balance``
    and ``/order``.

    The session is created lazily on first use so the object can be built
    outside a running event loop.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_HTTP_BASE_URL,
        timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_sec)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout, headers={"Accept": "application/json"}
            )
            self._owns_session = True
        return self._session

    async def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with self._get_session().get(url) as resp:
                if resp.status >= 400:
                    raise TransportFailure(f"GET {path} returned HTTP {resp.status}")
                body = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportFailure(f"GET {path} failed: {e!r}", e) from e
        return loads(body)

    async def get_order_book(self) -> OrderBookSnapshot:
        return parse_order_book(await self._get_json("/orderbook"))

    async def get_trades(self) -> tuple[Trade, ...]:
        return parse_trades(await self._get_json("/trades"))

    async def get_my_trades(self) -> tuple[Trade, ...]:
        return parse_trades(await self._get_json("/my-trades"))

    async def get_balances(self) -> Mapping[str, Balance]:
        return parse_balances(await self._get_json("/balance"))

    async def place_order(
        self,
        price: Decimal,
        quantity: int,
        side: Side,
        order_type: OrderType = OrderType.LIMIT,
    ) -> tuple[Trade, ...]:
        body = encode_order_request(price, quantity, side, order_type)
        url = f"{self.base_url}/order"
        try:
            async with self._get_session().post(url, json=body) as resp:
                text = await resp.text()
                if resp.status >= 500:
                    # the engine may have booked the order before failing
                    raise SubmissionNetworkError(
                        f"POST /order returned HTTP {resp.status}: {text.strip()}"
                    )
                if resp.status >= 400:
                    raise SubmissionRejected(
                        text.strip() or f"HTTP {resp.status}", status=resp.status
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SubmissionNetworkError(f"POST /order failed: {e!r}", e) from e

        try:
            return parse_trades(text)
        except MalformedPayload as e:
            # accepted, but we cannot tell what filled
            raise SubmissionNetworkError(f"unreadable order response: {e.message}", e) from e

    async def cancel_order(self, order_id: int) -> bool:
        url = f"{self.base_url}/order/{order_id}"
        try:
            async with self._get_session().delete(url) as resp:
                if resp.status >= 400:
                    logger.warning(f"Cancel of order {order_id} refused: HTTP {resp.status}")
                    return False
                return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportFailure(f"DELETE /order/{order_id} failed: {e!r}", e) from e

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
