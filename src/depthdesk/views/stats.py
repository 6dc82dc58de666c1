"""24-hour market statistics from the trade list."""

from __future__ import annotations

from collections.abc import Iterable

from depthdesk.constants import DEFAULT_STATS_WINDOW_HOURS, HUNDRED, MS_PER_HOUR, ZERO
from depthdesk.data.models import MarketStats, Trade

DEFAULT_WINDOW_MS = DEFAULT_STATS_WINDOW_HOURS * MS_PER_HOUR


def compute_market_stats(
    trades: Iterable[Trade],
    now_ms: int,
    window_ms: int = DEFAULT_WINDOW_MS,
) -> MarketStats:
    """
    Derive current price, window start price, change and volume.

    Pure function of ``(trades, now_ms)``; the feed order of ``trades`` is not
    trusted, they are sorted newest first here.
    """
    recent_first = sorted(trades, key=lambda t: t.timestamp, reverse=True)
    if not recent_first:
        return MarketStats()

    current_price = recent_first[0].price

    cutoff = now_ms - window_ms
    in_window = [t for t in recent_first if t.timestamp > cutoff]

    # oldest trade in the window is last, since the list stays newest first
    start_price = in_window[-1].price if in_window else current_price

    price_change = current_price - start_price
    price_change_percent = price_change / start_price * HUNDRED if start_price > 0 else ZERO
    volume_24h = sum((t.notional for t in in_window), ZERO)

    return MarketStats(
        current_price=current_price,
        price_change=price_change,
        price_change_percent=price_change_percent,
        volume_24h=volume_24h,
        start_price=start_price,
    )
