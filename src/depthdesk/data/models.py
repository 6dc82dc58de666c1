"""Market data structures and types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from depthdesk.constants import ZERO, OrderType, OutcomeKind, Side


@dataclass(frozen=True)
class Order:
    """A resting order as observed in a book snapshot."""

    id: int
    price: Decimal
    quantity: int
    side: Side
    owner: str | None = None
    order_type: OrderType = OrderType.LIMIT

    @property
    def is_owned(self) -> bool:
        return bool(self.owner)


@dataclass(frozen=True)
class PriceLevel:
    """All resting orders at one exact price on one side."""

    price: Decimal
    orders: tuple[Order, ...] = ()

    @property
    def quantity(self) -> int:
        return sum(o.quantity for o in self.orders)

    @property
    def order_count(self) -> int:
        return len(self.orders)


def _freeze_side(side: Mapping[Decimal, tuple[Order, ...]]) -> Mapping[Decimal, tuple[Order, ...]]:
    return MappingProxyType({price: tuple(orders) for price, orders in side.items()})


@dataclass(frozen=True)
class OrderBookSnapshot:
    """
    Complete state of the book at one instant.

    Never a diff: a new snapshot entirely supersedes the previous one.
    """

    bids: Mapping[Decimal, tuple[Order, ...]] = field(default_factory=dict)
    asks: Mapping[Decimal, tuple[Order, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bids", _freeze_side(self.bids))
        object.__setattr__(self, "asks", _freeze_side(self.asks))

    @classmethod
    def empty(cls) -> OrderBookSnapshot:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.bids and not self.asks

    def orders(self) -> list[Order]:
        """Every order in the snapshot, bids first."""
        result: list[Order] = []
        for side in (self.bids, self.asks):
            for orders in side.values():
                result.extend(orders)
        return result


@dataclass(frozen=True)
class Trade:
    """A single execution between a resting (maker) and incoming (taker) order."""

    maker_id: int
    taker_id: int
    price: Decimal
    quantity: int
    timestamp: int  # epoch millis

    @property
    def notional(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class Balance:
    """Balance of one asset."""

    asset: str
    available: Decimal = ZERO
    locked: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.available + self.locked


@dataclass(frozen=True)
class MarketStats:
    """Headline statistics derived from the trade list."""

    current_price: Decimal = ZERO
    price_change: Decimal = ZERO
    price_change_percent: Decimal = ZERO
    volume_24h: Decimal = ZERO
    start_price: Decimal = ZERO


@dataclass(frozen=True)
class Candle:
    """OHLCV candle for one time bucket."""

    bucket_start: int  # epoch seconds
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal

    @property
    def is_up(self) -> bool:
        return self.close >= self.open


@dataclass(frozen=True)
class OrderSubmissionOutcome:
    """Advisory classification of what happened to a submitted order."""

    kind: OutcomeKind
    message: str
    requested_quantity: int = 0
    fills: tuple[Trade, ...] = ()
    total_filled: int = 0
    average_price: Decimal | None = None

    @property
    def is_error(self) -> bool:
        return self.kind in (OutcomeKind.REJECTED, OutcomeKind.NETWORK_ERROR)

    @property
    def remaining_quantity(self) -> int:
        return max(0, self.requested_quantity - self.total_filled)
