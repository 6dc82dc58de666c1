"""Single-writer stores for the current snapshot, trade list and balances.

Each store holds exactly one immutable value and replaces it by whole-value
swap, so a reader of ``current()`` sees either the old or the new value and
never a mixture. Listeners run synchronously right after the swap, with no
suspension point in between.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Generic, TypeVar

from depthdesk.data.codec import parse_order_book
from depthdesk.data.models import Balance, OrderBookSnapshot, Trade
from depthdesk.errors import MalformedPayload

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SwapStore(Generic[T]):
    """Holds one value, replaced atomically, with optional sequence gating."""

    def __init__(self, initial: T, name: str):
        self.name = name
        self._initial = initial
        self._value: T = initial
        self._applied_sequence = 0
        self._version = 0
        self._listeners: list[Callable[[T], None]] = []

    def current(self) -> T:
        return self._value

    @property
    def version(self) -> int:
        """Number of replacements applied so far."""
        return self._version

    @property
    def applied_sequence(self) -> int:
        return self._applied_sequence

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def replace(self, value: T) -> None:
        self._value = value
        self._version += 1
        self._notify(value)

    def apply(self, sequence: int, value: T) -> bool:
        """
        Replace only if ``sequence`` is newer than the last applied one.

        Responses are applied in completion order; one that was issued before
        an already-applied response is stale and gets discarded.
        """
        if sequence <= self._applied_sequence:
            logger.debug(
                f"{self.name}: discarding stale response #{sequence} "
                f"(already applied #{self._applied_sequence})"
            )
            return False
        self._applied_sequence = sequence
        self.replace(value)
        return True

    def reset(self) -> None:
        """Drop back to the initial value."""
        self.replace(self._initial)

    def _notify(self, value: T) -> None:
        for callback in list(self._listeners):
            try:
                callback(value)
            except Exception as e:
                logger.error(f"{self.name}: listener {callback!r} failed: {e}")


class OrderBookStore(SwapStore[OrderBookSnapshot]):
    """Current order-book snapshot."""

    def __init__(self) -> None:
        super().__init__(OrderBookSnapshot.empty(), name="orderbook")

    def apply_message(self, raw: str | bytes) -> bool:
        """
        Parse a push message and swap it in.

        A malformed message is dropped and the previous snapshot stays.
        """
        try:
            snapshot = parse_order_book(raw)
        except MalformedPayload as e:
            logger.debug(f"Dropping malformed order book message: {e.message}")
            return False
        self.replace(snapshot)
        return True


class TradeFeed(SwapStore[tuple[Trade, ...]]):
    """Most recent full trade list. Each poll replaces it wholesale."""

    def __init__(self, name: str = "trades") -> None:
        super().__init__((), name=name)

    def replace(self, value: Iterable[Trade]) -> None:  # type: ignore[override]
        super().replace(tuple(value))


class BalanceStore(SwapStore[Mapping[str, Balance]]):
    """Latest per-asset balances, as reported by the account service."""

    def __init__(self) -> None:
        super().__init__(MappingProxyType({}), name="balances")

    def replace(self, value: Mapping[str, Balance]) -> None:  # type: ignore[override]
        super().replace(MappingProxyType(dict(value)))

    def get(self, asset: str) -> Balance:
        return self._value.get(asset.upper()) or Balance(asset=asset.upper())
