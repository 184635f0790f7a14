from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from replaybt.backtest.core.errors import InvalidTransition
from replaybt.backtest.core.types import Asset

"""
{#!filepath: replaybt/backtest/core/events.py}

Order / Fill world model (FINAL)

- Order kind is a closed set of frozen variants.
- Order status is a closed Enum; every legal transition is listed in
  _TRANSITIONS. Anything else raises InvalidTransition.
- Fill is an immutable historical fact.
"""


# -------------------------
# Order kinds
# -------------------------
@dataclass(frozen=True)
class MarketOrder:
    pass


@dataclass(frozen=True)
class LimitOrder:
    limit_price: float


@dataclass(frozen=True)
class StopOrder:
    stop_price: float


@dataclass(frozen=True)
class StopLimitOrder:
    stop_price: float
    limit_price: float


OrderKind = Union[MarketOrder, LimitOrder, StopOrder, StopLimitOrder]

MARKET = MarketOrder()


def kind_name(kind: OrderKind) -> str:
    return {
        MarketOrder: "market",
        LimitOrder: "limit",
        StopOrder: "stop",
        StopLimitOrder: "stop_limit",
    }[type(kind)]


def kind_prices(kind: OrderKind) -> tuple[Optional[float], Optional[float]]:
    """(limit_price, stop_price) of a kind; None where not applicable."""
    if isinstance(kind, LimitOrder):
        return kind.limit_price, None
    if isinstance(kind, StopOrder):
        return None, kind.stop_price
    if isinstance(kind, StopLimitOrder):
        return kind.limit_price, kind.stop_price
    return None, None


# -------------------------
# Order status
# -------------------------
class OrderStatus(str, Enum):
    CREATED = "created"
    SUBMITTED = "submitted"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELLED = "cancelled"
    REJECTED = "rejected"

    @property
    def is_open(self) -> bool:
        return self in _OPEN

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_OPEN = frozenset({OrderStatus.CREATED, OrderStatus.SUBMITTED, OrderStatus.PARTIALLY_FILLED})
_TERMINAL = frozenset({OrderStatus.FILLED, OrderStatus.CANCELLED, OrderStatus.REJECTED})

_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.SUBMITTED, OrderStatus.REJECTED}),
    OrderStatus.SUBMITTED: frozenset({
        OrderStatus.PARTIALLY_FILLED,
        OrderStatus.FILLED,
        OrderStatus.CANCELLED,
        OrderStatus.REJECTED,
    }),
    OrderStatus.PARTIALLY_FILLED: frozenset({
        OrderStatus.PARTIALLY_FILLED,
        OrderStatus.FILLED,
        OrderStatus.CANCELLED,
        OrderStatus.REJECTED,
    }),
    OrderStatus.FILLED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}


# -------------------------
# Order
# -------------------------
@dataclass
class Order:
    """
    Mutable order state, owned by the OrderRegistry.

    quantity / filled are signed (buy > 0, sell < 0) and always share a sign;
    |filled| <= |quantity|.
    """
    id: int
    asset: Asset
    quantity: float
    kind: OrderKind
    created_at: datetime
    created_step: int = 0
    status: OrderStatus = OrderStatus.CREATED
    filled: float = 0.0
    avg_fill_price: float = 0.0
    commission: float = 0.0
    stop_triggered: bool = False
    updated_at: Optional[datetime] = None
    reason: Optional[str] = None

    @property
    def is_buy(self) -> bool:
        return self.quantity > 0

    @property
    def direction(self) -> int:
        return 1 if self.quantity > 0 else -1

    @property
    def remaining(self) -> float:
        """Signed quantity still to fill."""
        return self.quantity - self.filled

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    def transition(self, new: OrderStatus, ts: Optional[datetime] = None, reason: Optional[str] = None) -> None:
        if new not in _TRANSITIONS[self.status]:
            raise InvalidTransition(
                f"order {self.id}: {self.status.value} -> {new.value} is not allowed"
            )
        self.status = new
        if ts is not None:
            self.updated_at = ts
        if reason is not None:
            self.reason = reason

    def record_fill(self, quantity: float, price: float, commission: float, ts: datetime) -> None:
        """
        Accumulate one fill: VWAP, filled quantity, status.
        """
        if quantity == 0 or (quantity > 0) != (self.quantity > 0):
            raise InvalidTransition(f"order {self.id}: fill quantity {quantity} has wrong sign")
        new_filled = self.filled + quantity
        if abs(new_filled) > abs(self.quantity):
            raise InvalidTransition(
                f"order {self.id}: overfill {new_filled} > {self.quantity}"
            )

        self.avg_fill_price = (
            self.avg_fill_price * abs(self.filled) + price * abs(quantity)
        ) / abs(new_filled)
        self.filled = new_filled
        self.commission += commission

        done = abs(self.filled) >= abs(self.quantity)
        self.transition(OrderStatus.FILLED if done else OrderStatus.PARTIALLY_FILLED, ts)

    def snapshot(self) -> "Order":
        return replace(self)

    def to_record(self) -> dict:
        limit_price, stop_price = kind_prices(self.kind)
        return {
            "order_id": self.id,
            "sid": self.asset.id,
            "symbol": self.asset.symbol,
            "kind": kind_name(self.kind),
            "quantity": self.quantity,
            "limit_price": limit_price,
            "stop_price": stop_price,
            "status": self.status.value,
            "filled": self.filled,
            "avg_fill_price": self.avg_fill_price,
            "commission": self.commission,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "reason": self.reason,
        }


# -------------------------
# Fill
# -------------------------
@dataclass(frozen=True)
class Fill:
    order_id: int
    asset: Asset
    quantity: float
    price: float
    commission: float
    timestamp: datetime

    @property
    def notional(self) -> float:
        """Signed traded value (buy > 0)."""
        return self.quantity * self.price

    @property
    def cash_delta(self) -> float:
        """Cash change this fill causes, commission included."""
        return -self.quantity * self.price - self.commission

    def is_valid(self) -> bool:
        return (
            self.quantity != 0
            and math.isfinite(self.quantity)
            and math.isfinite(self.price)
            and self.price >= 0.0
            and math.isfinite(self.commission)
            and self.commission >= 0.0
        )

    def to_record(self) -> dict:
        return {
            "order_id": self.order_id,
            "sid": self.asset.id,
            "symbol": self.asset.symbol,
            "quantity": self.quantity,
            "price": self.price,
            "commission": self.commission,
            "timestamp": self.timestamp,
        }
