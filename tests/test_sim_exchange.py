"""Tests for the simulated exchange used by dry runs."""

from __future__ import annotations

from decimal import Decimal

import pytest

from depthdesk.constants import OrderType, Side
from depthdesk.data.codec import parse_order_book
from depthdesk.errors import SubmissionRejected
from depthdesk.feeds.sim import SimExchange
from depthdesk.views.depth import compute_depth
from depthdesk.views.my_orders import my_orders


@pytest.fixture
def exchange() -> SimExchange:
    return SimExchange(start_price=Decimal("100.00"), levels=5, interval_sec=0.01, seed=42)


class TestSimBook:
    @pytest.mark.asyncio
    async def test_book_is_two_sided_and_uncrossed(self, exchange) -> None:
        ladder = compute_depth(await exchange.get_order_book(), 15)

        assert len(ladder.bids) == 5
        assert len(ladder.asks) == 5
        assert ladder.best_bid < ladder.best_ask

    def test_synthetic_liquidity_is_ownerless(self, exchange) -> None:
        assert my_orders(exchange.snapshot()) == []

    @pytest.mark.asyncio
    async def test_connection_emits_parseable_snapshots(self, exchange) -> None:
        connection = await exchange.connect()
        messages = []
        async for message in connection:
            messages.append(parse_order_book(message))
            if len(messages) == 2:
                await connection.close()

        assert len(messages) == 2
        assert all(not m.is_empty for m in messages)


class TestSimOrders:
    @pytest.mark.asyncio
    async def test_crossing_buy_fills_and_settles(self, exchange) -> None:
        best_ask = min(exchange.snapshot().asks)
        before = await exchange.get_balances()

        fills = await exchange.place_order(best_ask, 1, Side.BUY)

        assert sum(f.quantity for f in fills) == 1
        assert fills[0].price == best_ask
        after = await exchange.get_balances()
        assert after["USDC"].available == before["USDC"].available - best_ask
        assert after["BAD"].available == before["BAD"].available + 1
        assert (await exchange.get_my_trades())[0] == fills[-1]

    @pytest.mark.asyncio
    async def test_passive_limit_rests_and_locks(self, exchange) -> None:
        price = min(exchange.snapshot().bids) - Decimal("1")

        fills = await exchange.place_order(price, 3, Side.BUY)

        assert fills == ()
        owned = my_orders(exchange.snapshot())
        assert [(o.price, o.quantity) for o in owned] == [(price, 3)]
        balances = await exchange.get_balances()
        assert balances["USDC"].locked == price * 3

    @pytest.mark.asyncio
    async def test_resting_order_survives_requote(self, exchange) -> None:
        price = min(exchange.snapshot().bids) - Decimal("1")
        await exchange.place_order(price, 3, Side.BUY)

        exchange.step()

        assert len(my_orders(exchange.snapshot())) == 1

    @pytest.mark.asyncio
    async def test_cancel_releases_funds(self, exchange) -> None:
        price = min(exchange.snapshot().bids) - Decimal("1")
        await exchange.place_order(price, 3, Side.BUY)
        order = my_orders(exchange.snapshot())[0]

        assert await exchange.cancel_order(order.id) is True

        balances = await exchange.get_balances()
        assert balances["USDC"].locked == Decimal("0")
        assert balances["USDC"].available == Decimal("10000")
        assert my_orders(exchange.snapshot()) == []
        assert await exchange.cancel_order(order.id) is False

    @pytest.mark.asyncio
    async def test_insufficient_balance_rejected(self, exchange) -> None:
        with pytest.raises(SubmissionRejected, match="insufficient"):
            await exchange.place_order(Decimal("100"), 1_000_000, Side.BUY)

    @pytest.mark.asyncio
    async def test_market_sell_sweeps_bids(self, exchange) -> None:
        fills = await exchange.place_order(Decimal("1"), 20, Side.SELL, OrderType.MARKET)

        assert sum(f.quantity for f in fills) <= 20
        prices = [f.price for f in fills]
        assert prices == sorted(prices, reverse=True)
        assert my_orders(exchange.snapshot()) == []

    @pytest.mark.asyncio
    async def test_market_buy_beyond_balance_rejected(self) -> None:
        exchange = SimExchange(quote_balance=Decimal("100"), seed=1)

        with pytest.raises(SubmissionRejected, match="insufficient USDC"):
            await exchange.place_order(Decimal("0"), 50, Side.BUY, OrderType.MARKET)

        balances = await exchange.get_balances()
        assert balances["USDC"].available == Decimal("100")
        assert await exchange.get_my_trades() == ()

    @pytest.mark.asyncio
    async def test_market_buy_within_balance_never_goes_negative(self) -> None:
        exchange = SimExchange(quote_balance=Decimal("500"), seed=1)

        fills = await exchange.place_order(Decimal("0"), 4, Side.BUY, OrderType.MARKET)

        spent = sum(f.notional for f in fills)
        balances = await exchange.get_balances()
        assert sum(f.quantity for f in fills) == 4
        assert balances["USDC"].available == Decimal("500") - spent
        assert balances["USDC"].available >= 0
