"""Single-writer stores for feed state."""

from depthdesk.state.stores import BalanceStore, OrderBookStore, SwapStore, TradeFeed

__all__ = ["BalanceStore", "OrderBookStore", "SwapStore", "TradeFeed"]
