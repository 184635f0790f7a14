from __future__ import annotations

import math
import numbers
from datetime import datetime
from typing import Callable, Dict, List, Optional

from replaybt.backtest.core.errors import BacktestError, InvalidOrder
from replaybt.backtest.core.events import (
    Fill,
    LimitOrder,
    Order,
    OrderKind,
    OrderStatus,
    StopLimitOrder,
    StopOrder,
    kind_name,
)
from replaybt.backtest.core.types import Asset
from replaybt.utils.logger import logs

"""
{#!filepath: replaybt/backtest/orders/registry.py}

OrderRegistry (FINAL)

Role:
- Issue order ids (ascending integers, never reused within a run).
- Own every Order of the run and its lifecycle state.
- Hold the open (pending) set in id order.

Invariants:
- Created -> Submitted happens inside create(); callers never see Created.
- Invalid requests still get an id and land directly in Rejected.
- Terminal orders never re-enter the open set.
"""


def validate_request(quantity: float, kind: OrderKind) -> None:
    if not isinstance(quantity, numbers.Real) or isinstance(quantity, bool):
        raise InvalidOrder(f"quantity must be a number, got {type(quantity).__name__}")
    if not math.isfinite(quantity):
        raise InvalidOrder(f"quantity must be finite, got {quantity}")
    if quantity == 0:
        raise InvalidOrder("quantity must be non-zero")

    prices: list[tuple[str, float]] = []
    if isinstance(kind, LimitOrder):
        prices.append(("limit_price", kind.limit_price))
    elif isinstance(kind, StopOrder):
        prices.append(("stop_price", kind.stop_price))
    elif isinstance(kind, StopLimitOrder):
        prices.append(("stop_price", kind.stop_price))
        prices.append(("limit_price", kind.limit_price))

    for name, px in prices:
        if px is None or not math.isfinite(px) or px <= 0.0:
            raise InvalidOrder(f"{name} must be finite and > 0, got {px}")


class OrderRegistry:

    def __init__(self) -> None:
        self._next_id = 1
        self._orders: Dict[int, Order] = {}
        self._open: Dict[int, Order] = {}

    # --------------------------------------------------
    # creation
    # --------------------------------------------------
    def create(
        self,
        asset: Asset,
        quantity: float,
        kind: OrderKind,
        ts: datetime,
        step: int = 0,
        validate: Optional[Callable[[Order], None]] = None,
    ) -> Order:
        """
        `validate` runs after the built-in request checks, on the order with
        its quantity already a float; raising InvalidOrder rejects it.
        """
        order_id = self._next_id
        self._next_id += 1

        order = Order(
            id=order_id,
            asset=asset,
            quantity=quantity,
            kind=kind,
            created_at=ts,
            created_step=step,
            updated_at=ts,
        )
        self._orders[order_id] = order

        try:
            validate_request(quantity, kind)
            order.quantity = float(quantity)
            if validate is not None:
                validate(order)
        except InvalidOrder as exc:
            order.transition(OrderStatus.REJECTED, ts, reason=str(exc))
            logs.warning(f"[Registry] reject order={order_id} {asset} reason={exc}")
            return order

        order.transition(OrderStatus.SUBMITTED, ts)
        self._open[order_id] = order
        logs.debug(
            f"[Registry] submit order={order_id} {asset} qty={order.quantity} kind={kind_name(kind)}"
        )
        return order

    # --------------------------------------------------
    # lookups
    # --------------------------------------------------
    def get(self, order_id: int) -> Optional[Order]:
        return self._orders.get(order_id)

    def open_orders(self, asset: Optional[Asset] = None) -> List[Order]:
        orders = [self._open[i] for i in sorted(self._open)]
        if asset is None:
            return orders
        return [o for o in orders if o.asset.id == asset.id]

    def eligible(self, step: int, *, next_bar: bool = False) -> List[Order]:
        """
        Open orders the broker may resolve at `step`, ascending id.

        next_bar=True: orders created during this step wait for the next one.
        """
        orders = self.open_orders()
        if not next_bar:
            return orders
        return [o for o in orders if o.created_step < step]

    def all_orders(self) -> List[Order]:
        return [self._orders[i] for i in sorted(self._orders)]

    def __len__(self) -> int:
        return len(self._orders)

    # --------------------------------------------------
    # transitions
    # --------------------------------------------------
    def cancel(self, order_id: int, ts: datetime, reason: str = "cancelled by strategy") -> Order:
        order = self._open.get(order_id)
        if order is None:
            raise InvalidOrder(f"order {order_id} not found or already closed")
        order.transition(OrderStatus.CANCELLED, ts, reason=reason)
        del self._open[order_id]
        logs.info(f"[Registry] cancel order={order_id} {order.asset} filled={order.filled}/{order.quantity}")
        return order

    def reject(self, order: Order, error: BacktestError, ts: datetime) -> None:
        order.transition(OrderStatus.REJECTED, ts, reason=f"{type(error).__name__}: {error}")
        self._open.pop(order.id, None)
        logs.warning(f"[Registry] reject order={order.id} {order.asset} reason={order.reason}")

    def apply_fill(self, order: Order, fill: Fill) -> None:
        order.record_fill(fill.quantity, fill.price, fill.commission, fill.timestamp)
        if not order.is_open:
            self._open.pop(order.id, None)
