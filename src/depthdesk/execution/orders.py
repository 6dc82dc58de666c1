"""Order placement and cancellation with classified results."""

from __future__ import annotations

import logging
from decimal import ROUND_FLOOR, Decimal

from depthdesk.constants import HUNDRED, OrderType, Side
from depthdesk.data.models import Balance, OrderSubmissionOutcome
from depthdesk.errors import (
    SubmissionNetworkError,
    SubmissionRejected,
    TransportFailure,
)
from depthdesk.execution.classifier import classify, classify_failure
from depthdesk.feeds.base import ExchangeApi

logger = logging.getLogger(__name__)


def size_from_balance(available: Decimal, percent: int | Decimal, side: Side, price: Decimal) -> int:
    """
    Whole-unit order size for ``percent`` of an available balance.

    Buys spend the quote asset, so the amount is divided by ``price``; sells
    spend the base asset directly.
    """
    percent = Decimal(percent)
    if not 0 <= percent <= 100:
        raise ValueError(f"percent must be within 0-100, got: {percent}")
    budget = available * percent / HUNDRED
    if side == Side.BUY:
        if price <= 0:
            return 0
        budget = budget / price
    return int(budget.to_integral_value(rounding=ROUND_FLOOR))


def sizing_balance(side: Side, quote: Balance, base: Balance) -> Balance:
    """The balance an order on ``side`` draws from."""
    return quote if side == Side.BUY else base


class OrderClient:
    """Submits orders and turns every result, including failures, into an outcome."""

    def __init__(self, api: ExchangeApi):
        self.api = api

    async def submit(
        self,
        price: Decimal,
        quantity: int,
        side: Side,
        order_type: OrderType = OrderType.LIMIT,
    ) -> OrderSubmissionOutcome:
        """Place an order. Never raises for rejection or connectivity problems."""
        if quantity <= 0:
            return classify_failure(
                SubmissionRejected(f"quantity must be positive, got {quantity}"), quantity
            )
        if order_type == OrderType.LIMIT and price <= 0:
            return classify_failure(
                SubmissionRejected(f"limit price must be positive, got {price}"), quantity
            )

        logger.info(f"Submitting {order_type.value} {side.value} {quantity} @ {price}")
        try:
            fills = await self.api.place_order(price, quantity, side, order_type)
        except (SubmissionRejected, SubmissionNetworkError) as e:
            logger.warning(f"Order submission failed: {e.to_dict()}")
            return classify_failure(e, quantity)

        outcome = classify(quantity, fills, side=side, price=price)
        logger.info(f"Order outcome: {outcome.kind.value} - {outcome.message}")
        return outcome

    async def cancel(self, order_id: int) -> bool:
        """Cancel a resting order; the book feed reflects the result independently."""
        try:
            cancelled = await self.api.cancel_order(order_id)
        except TransportFailure as e:
            logger.warning(f"Cancel of order {order_id} failed: {e.message}")
            return False
        if cancelled:
            logger.info(f"Order {order_id} cancelled")
        return cancelled
