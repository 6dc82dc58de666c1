"""Pure derivations over the current stores."""

from depthdesk.views.candles import CandleSeries, compute_candles
from depthdesk.views.depth import DepthLadder, LevelRow, compute_depth
from depthdesk.views.my_orders import my_orders
from depthdesk.views.stats import compute_market_stats
from depthdesk.views.trades import TradeRow, aggressor_hint, recent_trades

__all__ = [
    "CandleSeries",
    "DepthLadder",
    "LevelRow",
    "TradeRow",
    "aggressor_hint",
    "compute_candles",
    "compute_depth",
    "compute_market_stats",
    "my_orders",
    "recent_trades",
]
