"""OHLCV candle aggregation for charting."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from decimal import Decimal

from depthdesk.constants import DEFAULT_CANDLE_INTERVAL_SEC
from depthdesk.data.models import Candle, Trade


class CandleSeries:
    """
    Lazy, finite, restartable candle sequence.

    Holds the trade list it was built from; every iteration re-runs the
    aggregation from scratch, so nothing is carried over between passes.
    """

    def __init__(self, trades: Iterable[Trade], interval_seconds: int):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got: {interval_seconds}")
        self._trades = tuple(trades)
        self.interval_seconds = interval_seconds

    def __iter__(self) -> Iterator[Candle]:
        return _aggregate(self._trades, self.interval_seconds)

    def __len__(self) -> int:
        return len({self.bucket_of(t) for t in self._trades})

    def __bool__(self) -> bool:
        return bool(self._trades)

    def bucket_of(self, trade: Trade) -> int:
        interval_ms = self.interval_seconds * 1000
        return (trade.timestamp // interval_ms) * self.interval_seconds


def _aggregate(trades: tuple[Trade, ...], interval_seconds: int) -> Iterator[Candle]:
    # ascending order is what makes the last trade in a bucket its close
    ordered = sorted(trades, key=lambda t: t.timestamp)
    interval_ms = interval_seconds * 1000

    bucket: int | None = None
    open_ = high = low = close = Decimal("0")
    volume = Decimal("0")

    for trade in ordered:
        trade_bucket = (trade.timestamp // interval_ms) * interval_seconds
        if trade_bucket != bucket:
            if bucket is not None:
                yield Candle(bucket, open_, high, low, close, volume)
            bucket = trade_bucket
            open_ = high = low = close = trade.price
            volume = Decimal(trade.quantity)
            continue

        high = max(high, trade.price)
        low = min(low, trade.price)
        close = trade.price
        volume += trade.quantity

    if bucket is not None:
        yield Candle(bucket, open_, high, low, close, volume)


def compute_candles(
    trades: Iterable[Trade],
    interval_seconds: int = DEFAULT_CANDLE_INTERVAL_SEC,
) -> CandleSeries:
    """Bucket trades into fixed-width intervals. Empty input gives an empty series."""
    return CandleSeries(trades, interval_seconds)
