"""Wire codec for the feed and order payloads.

Decimal values travel as strings and are parsed with ``parse_decimal``; no
fixed number of fractional digits is assumed. Anything structurally invalid
raises ``MalformedPayload``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from depthdesk.constants import OrderType, Side
from depthdesk.data.models import Balance, Order, OrderBookSnapshot, Trade
from depthdesk.errors import MalformedPayload

_AVAILABLE_SUFFIX = "_available"
_LOCKED_SUFFIX = "_locked"


def loads(raw: str | bytes) -> Any:
    """Decode JSON, keeping any bare numbers exact."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayload("payload is not valid UTF-8", e) from e
    try:
        return json.loads(raw, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise MalformedPayload(f"invalid JSON: {e.msg}", e) from e


def parse_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Parse a decimal string (or integer) without passing through binary float."""
    if isinstance(value, bool) or isinstance(value, float):
        raise MalformedPayload(f"{field_name} must be a decimal string, got {type(value).__name__}")
    if isinstance(value, (str, int, Decimal)):
        try:
            result = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation as e:
            raise MalformedPayload(f"{field_name} is not a decimal: {value!r}", e) from e
        if not result.is_finite():
            raise MalformedPayload(f"{field_name} is not finite: {value!r}")
        return result
    raise MalformedPayload(f"{field_name} must be a decimal string, got {type(value).__name__}")


def _parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise MalformedPayload(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise MalformedPayload(f"{field_name} must be an integer, got {value!r}")


def _require(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise MalformedPayload(f"missing field: {key}")
    return data[key]


def parse_side(value: Any) -> Side:
    if isinstance(value, str):
        for side in Side:
            if value.lower() == side.value.lower():
                return side
    raise MalformedPayload(f"unknown side: {value!r}")


def parse_order(data: Any) -> Order:
    if not isinstance(data, Mapping):
        raise MalformedPayload("order must be an object")
    quantity = _parse_int(_require(data, "quantity"), "quantity")
    if quantity <= 0:
        raise MalformedPayload(f"order quantity must be positive, got {quantity}")
    owner = data.get("user_id")
    order_type = data.get("order_type", OrderType.LIMIT.value)
    try:
        parsed_type = OrderType(order_type)
    except ValueError as e:
        raise MalformedPayload(f"unknown order type: {order_type!r}", e) from e
    return Order(
        id=_parse_int(_require(data, "id"), "id"),
        price=parse_decimal(_require(data, "price"), "price"),
        quantity=quantity,
        side=parse_side(_require(data, "side")),
        owner=str(owner) if owner else None,
        order_type=parsed_type,
    )


def _parse_book_side(data: Any, name: str) -> dict[Decimal, tuple[Order, ...]]:
    if not isinstance(data, Mapping):
        raise MalformedPayload(f"{name} must be an object keyed by price")
    side: dict[Decimal, tuple[Order, ...]] = {}
    for price_key, orders in data.items():
        price = parse_decimal(price_key, f"{name} price")
        if price in side:
            # "100" and "100.0" would otherwise overwrite each other's orders
            raise MalformedPayload(f"{name} has duplicate price level: {price_key!r}")
        if not isinstance(orders, list):
            raise MalformedPayload(f"{name}[{price_key}] must be a list of orders")
        side[price] = tuple(parse_order(o) for o in orders)
    return side


def parse_order_book(payload: str | bytes | Mapping[str, Any]) -> OrderBookSnapshot:
    """Parse a full order-book push message."""
    data = loads(payload) if isinstance(payload, (str, bytes)) else payload
    if not isinstance(data, Mapping):
        raise MalformedPayload("order book must be an object")
    return OrderBookSnapshot(
        bids=_parse_book_side(_require(data, "bids"), "bids"),
        asks=_parse_book_side(_require(data, "asks"), "asks"),
    )


def parse_trade(data: Any) -> Trade:
    if not isinstance(data, Mapping):
        raise MalformedPayload("trade must be an object")
    return Trade(
        maker_id=_parse_int(_require(data, "maker_id"), "maker_id"),
        taker_id=_parse_int(_require(data, "taker_id"), "taker_id"),
        price=parse_decimal(_require(data, "price"), "price"),
        quantity=_parse_int(_require(data, "quantity"), "quantity"),
        timestamp=_parse_int(_require(data, "timestamp"), "timestamp"),
    )


def parse_trades(payload: str | bytes | Any) -> tuple[Trade, ...]:
    """Parse a trade list. Order is preserved as received."""
    data = loads(payload) if isinstance(payload, (str, bytes)) else payload
    if not isinstance(data, list):
        raise MalformedPayload("trades must be a list")
    return tuple(parse_trade(t) for t in data)


def parse_balances(payload: str | bytes | Mapping[str, Any]) -> dict[str, Balance]:
    """
    Parse the balance response.

    Fields are named ``<asset>_available`` / ``<asset>_locked``; assets are
    returned upper-cased, e.g. ``{"USDC": Balance(...), "BAD": Balance(...)}``.
    """
    data = loads(payload) if isinstance(payload, (str, bytes)) else payload
    if not isinstance(data, Mapping):
        raise MalformedPayload("balance must be an object")

    available: dict[str, Decimal] = {}
    locked: dict[str, Decimal] = {}
    for key, value in data.items():
        if key.endswith(_AVAILABLE_SUFFIX):
            asset = key[: -len(_AVAILABLE_SUFFIX)].upper()
            available[asset] = parse_decimal(value, key)
        elif key.endswith(_LOCKED_SUFFIX):
            asset = key[: -len(_LOCKED_SUFFIX)].upper()
            locked[asset] = parse_decimal(value, key)

    if not available and not locked:
        raise MalformedPayload("balance payload carries no assets")

    return {
        asset: Balance(
            asset=asset,
            available=available.get(asset, Decimal("0")),
            locked=locked.get(asset, Decimal("0")),
        )
        for asset in sorted(set(available) | set(locked))
    }


def encode_order(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "price": str(order.price),
        "quantity": order.quantity,
        "side": order.side.value,
        "user_id": order.owner,
        "order_type": order.order_type.value,
    }


def encode_order_book(snapshot: OrderBookSnapshot) -> str:
    """Serialize a snapshot the way the push feed sends it."""
    return json.dumps(
        {
            "bids": {str(p): [encode_order(o) for o in orders] for p, orders in snapshot.bids.items()},
            "asks": {str(p): [encode_order(o) for o in orders] for p, orders in snapshot.asks.items()},
        }
    )


def encode_trade(trade: Trade) -> dict[str, Any]:
    return {
        "maker_id": trade.maker_id,
        "taker_id": trade.taker_id,
        "price": str(trade.price),
        "quantity": trade.quantity,
        "timestamp": trade.timestamp,
    }


def encode_order_request(
    price: Decimal,
    quantity: int,
    side: Side,
    order_type: OrderType = OrderType.LIMIT,
) -> dict[str, Any]:
    """Build the placement request body. Price goes out as a decimal string."""
    return {
        "price": str(price),
        "quantity": int(quantity),
        "side": side.value,
        "order_type": order_type.value,
    }
