"""Recent trades list for the trade-history panel."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from depthdesk.constants import Side
from depthdesk.data.models import Trade


def aggressor_hint(trade: Trade) -> Side:
    """
    Guess the taker side from order ids.

    The feed carries no side, so this compares maker and taker ids. It is a
    colouring hint only; nothing should depend on it being right.
    """
    return Side.BUY if trade.maker_id < trade.taker_id else Side.SELL


@dataclass(frozen=True)
class TradeRow:
    trade: Trade
    side_hint: Side


def recent_trades(trades: Iterable[Trade], limit: int | None = None) -> list[TradeRow]:
    """Newest first, optionally truncated."""
    ordered = sorted(trades, key=lambda t: t.timestamp, reverse=True)
    if limit is not None:
        ordered = ordered[:limit]
    return [TradeRow(trade=t, side_hint=aggressor_hint(t)) for t in ordered]
