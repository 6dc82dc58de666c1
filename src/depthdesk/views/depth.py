"""Depth ladder, best prices and spread from an order-book snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from depthdesk.constants import HUNDRED, ZERO
from depthdesk.data.levels import aggregate_level
from depthdesk.data.models import OrderBookSnapshot


@dataclass(frozen=True)
class LevelRow:
    """One renderable ladder row."""

    price: Decimal
    quantity: int
    order_count: int
    cumulative: int


@dataclass(frozen=True)
class DepthLadder:
    """
    Both sides of the ladder, each ordered from the best price outward.

    ``spread`` and ``spread_percent`` are 0 when either side is empty; use
    ``has_liquidity`` to tell that case apart from a genuinely zero spread.
    """

    bids: tuple[LevelRow, ...]
    asks: tuple[LevelRow, ...]
    best_bid: Decimal | None
    best_ask: Decimal | None
    spread: Decimal
    spread_percent: Decimal

    @property
    def has_liquidity(self) -> bool:
        return self.best_bid is not None and self.best_ask is not None

    @property
    def mid_price(self) -> Decimal | None:
        if not self.has_liquidity:
            return None
        return (self.best_bid + self.best_ask) / 2  # type: ignore[operator]


def _ladder(side, prices: list[Decimal]) -> tuple[LevelRow, ...]:
    rows: list[LevelRow] = []
    running = 0
    for price in prices:
        level = aggregate_level(price, side[price])
        running += level.quantity
        rows.append(
            LevelRow(
                price=price,
                quantity=level.quantity,
                order_count=level.order_count,
                cumulative=running,
            )
        )
    return tuple(rows)


def compute_depth(snapshot: OrderBookSnapshot, max_levels: int) -> DepthLadder:
    """
    Build the depth ladder.

    Bids run highest price first, asks lowest price first; each side keeps the
    ``max_levels`` prices closest to the spread and accumulates quantity from
    the best price outward.
    """
    if max_levels < 0:
        raise ValueError(f"max_levels must be non-negative, got: {max_levels}")

    bid_prices = sorted(snapshot.bids.keys(), reverse=True)[:max_levels]
    ask_prices = sorted(snapshot.asks.keys())[:max_levels]

    best_bid = max(snapshot.bids.keys()) if snapshot.bids else None
    best_ask = min(snapshot.asks.keys()) if snapshot.asks else None

    spread = ZERO
    spread_percent = ZERO
    if best_bid is not None and best_ask is not None:
        spread = best_ask - best_bid
        if best_ask > 0:
            spread_percent = spread / best_ask * HUNDRED

    return DepthLadder(
        bids=_ladder(snapshot.bids, bid_prices),
        asks=_ladder(snapshot.asks, ask_prices),
        best_bid=best_bid,
        best_ask=best_ask,
        spread=spread,
        spread_percent=spread_percent,
    )
