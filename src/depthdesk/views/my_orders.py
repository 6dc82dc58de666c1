"""The user's own resting orders, filtered out of the current snapshot."""

from __future__ import annotations

from depthdesk.data.models import Order, OrderBookSnapshot


def my_orders(snapshot: OrderBookSnapshot, owner: str | None = None) -> list[Order]:
    """
    Orders carrying an ownership tag, newest (highest id) first.

    With ``owner`` set only that owner's orders are kept; otherwise any owned
    order counts, since simulated liquidity carries no owner at all.
    """
    if owner is None:
        owned = [o for o in snapshot.orders() if o.is_owned]
    else:
        owned = [o for o in snapshot.orders() if o.owner == owner]
    return sorted(owned, key=lambda o: o.id, reverse=True)
