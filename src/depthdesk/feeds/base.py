"""Exchange API interface consumed by the feeds and the order client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from decimal import Decimal
from typing import Protocol

from depthdesk.constants import OrderType, Side
from depthdesk.data.models import Balance, OrderBookSnapshot, Trade


class BookConnection(Protocol):
    """An open push connection yielding raw order-book messages."""

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...

    async def close(self) -> None: ...


class ExchangeApi(ABC):
    """
    Request/response side of the exchange.

    Poll methods raise ``TransportFailure`` or ``MalformedPayload``; order
    placement raises ``SubmissionRejected`` or ``SubmissionNetworkError``.
    """

    @abstractmethod
    async def get_order_book(self) -> OrderBookSnapshot:
        """Fetch the current full snapshot."""
        pass

    @abstractmethod
    async def get_trades(self) -> tuple[Trade, ...]:
        """Fetch the public trade history, most recent first."""
        pass

    @abstractmethod
    async def get_my_trades(self) -> tuple[Trade, ...]:
        """Fetch the user's own trades."""
        pass

    @abstractmethod
    async def get_balances(self) -> Mapping[str, Balance]:
        """Fetch per-asset balances."""
        pass

    @abstractmethod
    async def place_order(
        self,
        price: Decimal,
        quantity: int,
        side: Side,
        order_type: OrderType = OrderType.LIMIT,
    ) -> tuple[Trade, ...]:
        """Submit an order; returns the fills it produced immediately."""
        pass

    @abstractmethod
    async def cancel_order(self, order_id: int) -> bool:
        """Cancel a resting order. True on success."""
        pass

    async def close(self) -> None:
        """Release any underlying connections."""
        return None
