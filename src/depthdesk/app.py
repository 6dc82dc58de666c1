"""depthdesk market session."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from depthdesk.config_loader import AppConfig
from depthdesk.constants import LOG_FORMAT, MS_PER_HOUR, FeedStatus, LogLevel, OrderType, Side
from depthdesk.data.models import Balance, MarketStats, Order, OrderSubmissionOutcome
from depthdesk.execution.orders import OrderClient, size_from_balance, sizing_balance
from depthdesk.feeds.base import ExchangeApi
from depthdesk.feeds.http_api import HttpApi
from depthdesk.feeds.order_book_feed import Connector, OrderBookFeed, websocket_connector
from depthdesk.feeds.poller import Poller
from depthdesk.feeds.sim import SimExchange
from depthdesk.state.stores import BalanceStore, OrderBookStore, TradeFeed
from depthdesk.views.candles import CandleSeries, compute_candles
from depthdesk.views.depth import DepthLadder, compute_depth
from depthdesk.views.my_orders import my_orders
from depthdesk.views.stats import compute_market_stats
from depthdesk.views.trades import TradeRow, recent_trades

logger = logging.getLogger(__name__)


def setup_logging(level: LogLevel | str = LogLevel.INFO) -> None:
    level_name = level.value if isinstance(level, LogLevel) else str(level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class MarketView:
    """Everything a UI renders, derived from one read of each store."""

    depth: DepthLadder
    stats: MarketStats
    candles: CandleSeries
    my_orders: list[Order]
    recent_trades: list[TradeRow]
    balances: dict[str, Balance]
    status: dict[str, FeedStatus]


class MarketSession:
    """
    Owns the stores and the triggers that feed them.

    Derivations are recomputed from ``current()`` on demand; nothing derived is
    cached between updates. ``stop()`` tears every trigger down as a unit.
    """

    def __init__(
        self,
        config: AppConfig,
        api: ExchangeApi | None = None,
        connector: Connector | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config
        self._clock = clock

        if api is None:
            if config.is_dry_run:
                sim = SimExchange(
                    quote_asset=config.assets.quote,
                    base_asset=config.assets.base,
                )
                api = sim
                connector = connector or sim.connect
            else:
                api = HttpApi(
                    config.endpoints.http_base_url,
                    timeout_sec=config.endpoints.request_timeout_sec,
                )
        self.api = api

        if connector is None:
            connector = websocket_connector(config.endpoints.ws_url)

        # Stores
        self.order_book = OrderBookStore()
        self.trades = TradeFeed("trades")
        self.my_trades = TradeFeed("my_trades")
        self.balances = BalanceStore()

        # Triggers
        feeds = config.feeds
        self.book_feed = OrderBookFeed(
            self.order_book,
            connector,
            reconnect=feeds.reconnect,
            reconnect_delay_sec=feeds.reconnect_delay_sec,
        )
        self.pollers: list[Poller[Any]] = [
            Poller("trades", api.get_trades, self.trades, feeds.trades_poll_sec, feeds.single_flight),
            Poller(
                "my_trades",
                api.get_my_trades,
                self.my_trades,
                feeds.my_trades_poll_sec,
                feeds.single_flight,
            ),
            Poller(
                "balances", api.get_balances, self.balances, feeds.balance_poll_sec, feeds.single_flight
            ),
        ]

        self.orders = OrderClient(api)

        self._tasks: list[asyncio.Task[None]] = []
        self._running = False

    # --- Lifecycle ---

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the push feed and all pollers."""
        if self._running:
            return
        self._running = True
        logger.info("Starting market session...")
        self._tasks = [asyncio.create_task(self.book_feed.run(), name="orderbook")]
        for poller in self.pollers:
            self._tasks.append(asyncio.create_task(poller.run(), name=poller.name))

    async def stop(self) -> None:
        """Cancel every trigger and close connections; late responses are discarded."""
        if not self._running:
            return
        self._running = False
        logger.info("Stopping market session...")

        await self.book_feed.close()
        for poller in self.pollers:
            await poller.stop()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        await self.api.close()
        logger.info("Market session stopped")

    async def __aenter__(self) -> MarketSession:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def on_update(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Call ``callback(store_name)`` after any store is replaced."""
        stores = (self.order_book, self.trades, self.my_trades, self.balances)
        unsubscribers = [s.subscribe(lambda _value, name=s.name: callback(name)) for s in stores]

        def unsubscribe() -> None:
            for unsub in unsubscribers:
                unsub()

        return unsubscribe

    def status(self) -> dict[str, FeedStatus]:
        result = {"orderbook": self.book_feed.status}
        for poller in self.pollers:
            result[poller.name] = poller.status
        return result

    # --- Derived views ---

    def depth(self) -> DepthLadder:
        return compute_depth(self.order_book.current(), self.config.depth.max_levels)

    def stats(self, now: int | None = None) -> MarketStats:
        window_ms = self.config.stats.window_hours * MS_PER_HOUR
        return compute_market_stats(
            self.trades.current(), now if now is not None else self._clock(), window_ms
        )

    def candles(self) -> CandleSeries:
        return compute_candles(self.trades.current(), self.config.chart.candle_interval_sec)

    def my_orders(self) -> list[Order]:
        return my_orders(self.order_book.current(), self.config.assets.owner)

    def recent_trades(self, limit: int | None = 50) -> list[TradeRow]:
        return recent_trades(self.trades.current(), limit)

    def view(self) -> MarketView:
        return MarketView(
            depth=self.depth(),
            stats=self.stats(),
            candles=self.candles(),
            my_orders=self.my_orders(),
            recent_trades=self.recent_trades(),
            balances=dict(self.balances.current()),
            status=self.status(),
        )

    # --- Orders ---

    async def submit_order(
        self,
        price: Decimal,
        quantity: int,
        side: Side,
        order_type: OrderType = OrderType.LIMIT,
    ) -> OrderSubmissionOutcome:
        return await self.orders.submit(price, quantity, side, order_type)

    async def cancel_order(self, order_id: int) -> bool:
        return await self.orders.cancel(order_id)

    def size_for_percent(self, percent: int | Decimal, side: Side, price: Decimal) -> int:
        """Order size spending ``percent`` of the balance the order would draw from."""
        balance = sizing_balance(
            side,
            self.balances.get(self.config.assets.quote),
            self.balances.get(self.config.assets.base),
        )
        return size_from_balance(balance.available, percent, side, price)
