"""Price level aggregation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from depthdesk.data.models import Order, PriceLevel


def aggregate_level(price: Decimal, orders: Iterable[Order]) -> PriceLevel:
    """Group the orders resting at one price into a single level."""
    return PriceLevel(price=price, orders=tuple(orders))


def aggregate_side(side: Mapping[Decimal, Iterable[Order]]) -> list[PriceLevel]:
    """Aggregate every price of one book side. Order follows the mapping."""
    return [aggregate_level(price, orders) for price, orders in side.items()]
