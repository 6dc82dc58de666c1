"""Plain-text rendering of a market view for the terminal."""

from __future__ import annotations

from decimal import Decimal

from depthdesk.app import MarketView
from depthdesk.constants import FeedStatus, Side
from depthdesk.data.models import OrderSubmissionOutcome


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    DIM = "\033[2m"


def _fmt(value: Decimal | None, places: int = 3) -> str:
    if value is None:
        return "---"
    return f"{value:,.{places}f}"


def _paint(text: str, color: str, use_color: bool) -> str:
    return f"{color}{text}{Colors.RESET}" if use_color else text


def render_view(view: MarketView, use_color: bool = True) -> str:
    """Render ladder, spread, stats and feed health as a block of text."""
    lines: list[str] = []
    stats = view.stats

    change_color = Colors.GREEN if stats.price_change >= 0 else Colors.RED
    lines.append(
        f"Last {_fmt(stats.current_price)}  "
        + _paint(
            f"{stats.price_change:+,.3f} ({stats.price_change_percent:+.2f}%)",
            change_color,
            use_color,
        )
        + f"  24h vol {_fmt(stats.volume_24h, 2)}"
    )
    lines.append(f"{'Price':>14} {'Size':>10} {'Total':>10}")

    # asks print furthest first so the best ask sits on the spread line
    for row in reversed(view.depth.asks):
        text = f"{_fmt(row.price):>14} {row.quantity:>10,} {row.cumulative:>10,}"
        lines.append(_paint(text, Colors.RED, use_color))

    depth = view.depth
    if depth.has_liquidity:
        spread = f"Spread {_fmt(depth.spread)} ({depth.spread_percent:.3f}%)"
    else:
        spread = "Spread ---"
    lines.append(_paint(spread, Colors.BOLD, use_color))

    for row in depth.bids:
        text = f"{_fmt(row.price):>14} {row.quantity:>10,} {row.cumulative:>10,}"
        lines.append(_paint(text, Colors.GREEN, use_color))

    if view.my_orders:
        lines.append(f"Open orders: {len(view.my_orders)}")
        for order in view.my_orders[:5]:
            color = Colors.GREEN if order.side == Side.BUY else Colors.RED
            text = f"  #{order.id} {order.side.value} {order.quantity} @ {_fmt(order.price)}"
            lines.append(_paint(text, color, use_color))

    if view.recent_trades:
        lines.append("Recent trades:")
        for row in view.recent_trades[:5]:
            color = Colors.GREEN if row.side_hint == Side.BUY else Colors.RED
            text = f"  {_fmt(row.trade.price)} x {row.trade.quantity}"
            lines.append(_paint(text, color, use_color))

    candles = list(view.candles)
    if candles:
        last = candles[-1]
        color = Colors.GREEN if last.is_up else Colors.RED
        text = (
            f"Candle O {_fmt(last.open)} H {_fmt(last.high)} L {_fmt(last.low)} "
            f"C {_fmt(last.close)} V {last.volume:,}"
        )
        lines.append(_paint(text, color, use_color))

    for asset, balance in sorted(view.balances.items()):
        lines.append(
            f"{asset}: {_fmt(balance.available, 4)} available, {_fmt(balance.locked, 4)} locked"
        )

    unhealthy = {k: v for k, v in view.status.items() if v != FeedStatus.LIVE}
    if unhealthy:
        text = ", ".join(f"{k}={v.value}" for k, v in unhealthy.items())
        lines.append(_paint(f"Feeds: {text}", Colors.YELLOW, use_color))

    return "\n".join(lines)


def render_outcome(outcome: OrderSubmissionOutcome, use_color: bool = True) -> str:
    """One line per outcome plus one per fill."""
    color = Colors.RED if outcome.is_error else Colors.GREEN
    lines = [_paint(outcome.message, color, use_color)]
    for i, fill in enumerate(outcome.fills, start=1):
        lines.append(f"  fill #{i}: {fill.quantity} @ {fill.price}")
    return "\n".join(lines)
