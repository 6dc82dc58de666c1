"""Order submission outcome classification.

Advisory only: the authoritative fill state is the book snapshot that arrives
independently over the push feed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from depthdesk.constants import OutcomeKind, Side
from depthdesk.data.models import OrderSubmissionOutcome, Trade
from depthdesk.errors import DepthDeskError, SubmissionNetworkError, SubmissionRejected

logger = logging.getLogger(__name__)


def average_fill_price(fills: Iterable[Trade]) -> Decimal | None:
    """Quantity-weighted average execution price, or None without fills."""
    fills = list(fills)
    total = sum(f.quantity for f in fills)
    if total <= 0:
        return None
    return sum((f.notional for f in fills), Decimal("0")) / total


def classify(
    requested_quantity: int,
    fills: Iterable[Trade],
    *,
    side: Side | None = None,
    price: Decimal | None = None,
) -> OrderSubmissionOutcome:
    """Classify an accepted submission by how much of it filled."""
    fills = tuple(fills)
    total_filled = sum(f.quantity for f in fills)

    if not fills:
        where = f" ({side.value} {requested_quantity} @ {price})" if side and price is not None else ""
        return OrderSubmissionOutcome(
            kind=OutcomeKind.RESTING,
            message=f"Order resting on the book{where}",
            requested_quantity=requested_quantity,
        )

    avg_price = average_fill_price(fills)

    if total_filled < requested_quantity:
        return OrderSubmissionOutcome(
            kind=OutcomeKind.PARTIAL_FILL,
            message=f"Partial fill: {total_filled}/{requested_quantity} filled",
            requested_quantity=requested_quantity,
            fills=fills,
            total_filled=total_filled,
            average_price=avg_price,
        )

    if total_filled > requested_quantity:
        logger.warning(
            f"Fills exceed requested quantity: {total_filled} > {requested_quantity}"
        )

    return OrderSubmissionOutcome(
        kind=OutcomeKind.FULL_FILL,
        message=f"Filled {total_filled} @ avg {avg_price:.3f}",
        requested_quantity=requested_quantity,
        fills=fills,
        total_filled=total_filled,
        average_price=avg_price,
    )


def classify_failure(error: DepthDeskError, requested_quantity: int = 0) -> OrderSubmissionOutcome:
    """Turn a failed submission into an outcome with no fills."""
    if isinstance(error, SubmissionRejected):
        return OrderSubmissionOutcome(
            kind=OutcomeKind.REJECTED,
            message=f"Order rejected: {error.message}",
            requested_quantity=requested_quantity,
        )
    if isinstance(error, SubmissionNetworkError):
        return OrderSubmissionOutcome(
            kind=OutcomeKind.NETWORK_ERROR,
            message=f"Order status unknown, connection failed: {error.message}",
            requested_quantity=requested_quantity,
        )
    raise TypeError(f"Not a submission failure: {type(error).__name__}")
