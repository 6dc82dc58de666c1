"""Tests for the REST adapter against a local aiohttp server."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from depthdesk.constants import OutcomeKind, Side
from depthdesk.errors import (
    MalformedPayload,
    SubmissionNetworkError,
    SubmissionRejected,
    TransportFailure,
)
from depthdesk.execution.orders import OrderClient
from depthdesk.feeds.http_api import HttpApi

TRADES = [{"maker_id": 1, "taker_id": 2, "price": "100.5", "quantity": 3, "timestamp": 1000}]


def build_app(state: dict) -> web.Application:
    async def orderbook(request):
        return web.Response(text=json.dumps({"bids": {}, "asks": {}}))

    async def trades(request):
        if state.get("trades_status"):
            return web.Response(status=state["trades_status"], text="boom")
        return web.Response(text=state.get("trades_body", json.dumps(TRADES)))

    async def balance(request):
        return web.json_response({"usdc_available": "10", "usdc_locked": "0"})

    async def order(request):
        state["order_body"] = await request.json()
        if state.get("reject"):
            return web.Response(status=400, text="Insufficient balance")
        if state.get("order_status"):
            return web.Response(status=state["order_status"], text="engine unavailable")
        return web.Response(text=state.get("order_response", json.dumps(TRADES)))

    async def cancel(request):
        return web.Response(status=200 if request.match_info["order_id"] == "7" else 404)

    app = web.Application()
    app.router.add_get("/orderbook", orderbook)
    app.router.add_get("/trades", trades)
    app.router.add_get("/my-trades", trades)
    app.router.add_get("/balance", balance)
    app.router.add_post("/order", order)
    app.router.add_delete("/order/{order_id}", cancel)
    return app


@pytest_asyncio.fixture
async def server_state():
    state: dict = {}
    server = test_utils.TestServer(build_app(state))
    await server.start_server()
    api = HttpApi(str(server.make_url("")), timeout_sec=2.0)
    yield api, state
    await api.close()
    await server.close()


class TestPolls:
    @pytest.mark.asyncio
    async def test_trades(self, server_state) -> None:
        api, _ = server_state
        trades = await api.get_trades()
        assert trades[0].price == Decimal("100.5")
        assert await api.get_my_trades() == trades

    @pytest.mark.asyncio
    async def test_book_and_balance(self, server_state) -> None:
        api, _ = server_state
        assert (await api.get_order_book()).is_empty
        assert (await api.get_balances())["USDC"].available == Decimal("10")

    @pytest.mark.asyncio
    async def test_http_error_is_transport_failure(self, server_state) -> None:
        api, state = server_state
        state["trades_status"] = 503
        with pytest.raises(TransportFailure, match="503"):
            await api.get_trades()

    @pytest.mark.asyncio
    async def test_garbage_body_is_malformed(self, server_state) -> None:
        api, state = server_state
        state["trades_body"] = "<html>"
        with pytest.raises(MalformedPayload):
            await api.get_trades()

    @pytest.mark.asyncio
    async def test_unreachable_host(self) -> None:
        api = HttpApi("http://127.0.0.1:9", timeout_sec=1.0)
        try:
            with pytest.raises(TransportFailure):
                await api.get_trades()
        finally:
            await api.close()


class TestOrders:
    @pytest.mark.asyncio
    async def test_place_order_sends_decimal_string(self, server_state) -> None:
        api, state = server_state
        fills = await api.place_order(Decimal("100.50"), 3, Side.BUY)

        assert state["order_body"]["price"] == "100.50"
        assert state["order_body"]["side"] == "Buy"
        assert fills[0].quantity == 3

    @pytest.mark.asyncio
    async def test_rejection(self, server_state) -> None:
        api, state = server_state
        state["reject"] = True
        with pytest.raises(SubmissionRejected) as exc_info:
            await api.place_order(Decimal("100"), 3, Side.BUY)
        assert exc_info.value.status == 400
        assert "Insufficient balance" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    async def test_server_error_is_network_error(self, server_state, status) -> None:
        api, state = server_state
        state["order_status"] = status
        with pytest.raises(SubmissionNetworkError, match=str(status)):
            await api.place_order(Decimal("100"), 1, Side.BUY)

    @pytest.mark.asyncio
    async def test_server_error_outcome_is_unknown_not_rejected(self, server_state) -> None:
        api, state = server_state
        state["order_status"] = 502
        outcome = await OrderClient(api).submit(Decimal("100"), 1, Side.BUY)
        assert outcome.kind == OutcomeKind.NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_unreadable_response_is_network_error(self, server_state) -> None:
        api, state = server_state
        state["order_response"] = "ok"
        with pytest.raises(SubmissionNetworkError):
            await api.place_order(Decimal("100"), 3, Side.SELL)

    @pytest.mark.asyncio
    async def test_cancel(self, server_state) -> None:
        api, _ = server_state
        assert await api.cancel_order(7) is True
        assert await api.cancel_order(8) is False
