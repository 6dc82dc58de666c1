"""Simulated exchange for dry runs.

Produces a random-walk book with synthetic, ownerless liquidity and crosses
submitted orders against it, so every feed and the order client can run
without a server.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import AsyncIterator, Mapping
from decimal import Decimal

from depthdesk.constants import OrderType, Side
from depthdesk.data.codec import encode_order_book
from depthdesk.data.models import Balance, Order, OrderBookSnapshot, Trade
from depthdesk.errors import SubmissionRejected
from depthdesk.feeds.base import ExchangeApi

logger = logging.getLogger(__name__)


class SimConnection:
    """Push connection that emits one fresh snapshot per interval."""

    def __init__(self, exchange: SimExchange, interval_sec: float):
        self.exchange = exchange
        self.interval_sec = interval_sec
        self._closed = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self._messages()

    async def _messages(self) -> AsyncIterator[str]:
        while not self._closed:
            self.exchange.step()
            yield encode_order_book(self.exchange.snapshot())
            await asyncio.sleep(self.interval_sec)

    async def close(self) -> None:
        self._closed = True


class SimExchange(ExchangeApi):
    """
    In-memory exchange with a random-walk mid price.

    Orders tagged with ``owner`` survive re-quotes; synthetic liquidity is
    rebuilt around the mid on every ``step()``.
    """

    def __init__(
        self,
        start_price: Decimal = Decimal("100.00"),
        tick: Decimal = Decimal("0.01"),
        levels: int = 10,
        interval_sec: float = 0.5,
        quote_balance: Decimal = Decimal("10000"),
        base_balance: Decimal = Decimal("100"),
        quote_asset: str = "USDC",
        base_asset: str = "BAD",
        owner: str = "sim-user",
        seed: int | None = None,
    ):
        self.tick = tick
        self.levels = levels
        self.interval_sec = interval_sec
        self.owner = owner
        self.quote_asset = quote_asset.upper()
        self.base_asset = base_asset.upper()
        self.mid = start_price
        self._rng = random.Random(seed)
        self._next_id = 1
        self._bids: dict[Decimal, list[Order]] = {}
        self._asks: dict[Decimal, list[Order]] = {}
        self._trades: list[Trade] = []
        self._my_trades: list[Trade] = []
        self._available = {self.quote_asset: quote_balance, self.base_asset: base_balance}
        self._locked = {self.quote_asset: Decimal("0"), self.base_asset: Decimal("0")}
        self._requote()

    # --- Simulation ---

    def _new_id(self) -> int:
        order_id = self._next_id
        self._next_id += 1
        return order_id

    def _now_ms(self) -> int:
        return int(time.time() * 1000)

    def _requote(self) -> None:
        """Replace synthetic liquidity, keeping owned orders where they are."""
        for book in (self._bids, self._asks):
            for price in list(book):
                owned = [o for o in book[price] if o.owner]
                if owned:
                    book[price] = owned
                else:
                    del book[price]

        for i in range(1, self.levels + 1):
            bid_price = self.mid - self.tick * i
            ask_price = self.mid + self.tick * i
            for side, book, price in (
                (Side.BUY, self._bids, bid_price),
                (Side.SELL, self._asks, ask_price),
            ):
                if price <= 0:
                    continue
                order = Order(self._new_id(), price, self._rng.randint(1, 50), side)
                book.setdefault(price, []).append(order)

    def step(self) -> None:
        """Move the mid one random tick and occasionally print a trade."""
        self.mid += self.tick * self._rng.choice([-2, -1, 0, 1, 2])
        self.mid = max(self.mid, self.tick * (self.levels + 1))
        if self._rng.random() < 0.5:
            side = self._rng.choice([Side.BUY, Side.SELL])
            book = self._asks if side == Side.BUY else self._bids
            if book:
                best = min(book) if side == Side.BUY else max(book)
                maker = book[best][0]
                self._trades.append(
                    Trade(maker.id, self._new_id(), best, self._rng.randint(1, 5), self._now_ms())
                )
        self._requote()

    def snapshot(self) -> OrderBookSnapshot:
        return OrderBookSnapshot(
            bids={p: tuple(os) for p, os in self._bids.items()},
            asks={p: tuple(os) for p, os in self._asks.items()},
        )

    async def connect(self) -> SimConnection:
        logger.info("SimExchange connection opened")
        return SimConnection(self, self.interval_sec)

    # --- ExchangeApi ---

    async def get_order_book(self) -> OrderBookSnapshot:
        return self.snapshot()

    async def get_trades(self) -> tuple[Trade, ...]:
        return tuple(reversed(self._trades))

    async def get_my_trades(self) -> tuple[Trade, ...]:
        return tuple(reversed(self._my_trades))

    async def get_balances(self) -> Mapping[str, Balance]:
        return {
            asset: Balance(asset, self._available[asset], self._locked[asset])
            for asset in (self.quote_asset, self.base_asset)
        }

    async def place_order(
        self,
        price: Decimal,
        quantity: int,
        side: Side,
        order_type: OrderType = OrderType.LIMIT,
    ) -> tuple[Trade, ...]:
        spend_asset = self.quote_asset if side == Side.BUY else self.base_asset
        if side == Side.SELL:
            required = Decimal(quantity)
        elif order_type == OrderType.MARKET:
            # the request price is not a bound here, so price the sweep itself
            required = self._sweep_cost(quantity)
        else:
            required = price * quantity
        if required > self._available[spend_asset]:
            raise SubmissionRejected(f"insufficient {spend_asset} balance", status=400)

        taker_id = self._new_id()
        book = self._asks if side == Side.BUY else self._bids
        crosses = (lambda p: p <= price) if side == Side.BUY else (lambda p: p >= price)
        if order_type == OrderType.MARKET:
            crosses = lambda p: True  # noqa: E731

        fills: list[Trade] = []
        remaining = quantity
        for level_price in sorted(book, reverse=side == Side.SELL):
            if remaining == 0 or not crosses(level_price):
                break
            resting = book[level_price]
            while resting and remaining > 0:
                maker = resting[0]
                qty = min(maker.quantity, remaining)
                fills.append(Trade(maker.id, taker_id, level_price, qty, self._now_ms()))
                remaining -= qty
                if qty == maker.quantity:
                    resting.pop(0)
                else:
                    resting[0] = Order(
                        maker.id, maker.price, maker.quantity - qty, maker.side, maker.owner
                    )
            if not resting:
                del book[level_price]

        for fill in fills:
            self._settle(side, fill)
        self._trades.extend(fills)
        self._my_trades.extend(fills)

        if remaining > 0 and order_type == OrderType.LIMIT:
            own_book = self._bids if side == Side.BUY else self._asks
            own_book.setdefault(price, []).append(
                Order(taker_id, price, remaining, side, owner=self.owner)
            )
            locked = price * remaining if side == Side.BUY else Decimal(remaining)
            self._available[spend_asset] -= locked
            self._locked[spend_asset] += locked

        logger.info(f"Sim order {taker_id}: {side.value} {quantity} @ {price}, {len(fills)} fills")
        return tuple(fills)

    def _sweep_cost(self, quantity: int) -> Decimal:
        """Quote needed to buy ``quantity`` from the asks, best price first."""
        cost = Decimal("0")
        remaining = quantity
        for level_price in sorted(self._asks):
            if remaining == 0:
                break
            level_qty = sum(o.quantity for o in self._asks[level_price])
            take = min(level_qty, remaining)
            cost += level_price * take
            remaining -= take
        return cost

    def _settle(self, side: Side, fill: Trade) -> None:
        notional = fill.notional
        if side == Side.BUY:
            self._available[self.quote_asset] -= notional
            self._available[self.base_asset] += fill.quantity
        else:
            self._available[self.base_asset] -= fill.quantity
            self._available[self.quote_asset] += notional

    async def cancel_order(self, order_id: int) -> bool:
        for book in (self._bids, self._asks):
            for price, orders in list(book.items()):
                for order in orders:
                    if order.id == order_id and order.owner:
                        orders.remove(order)
                        if not orders:
                            del book[price]
                        self._release(order)
                        return True
        return False

    def _release(self, order: Order) -> None:
        if order.side == Side.BUY:
            amount, asset = order.price * order.quantity, self.quote_asset
        else:
            amount, asset = Decimal(order.quantity), self.base_asset
        self._locked[asset] -= amount
        self._available[asset] += amount
