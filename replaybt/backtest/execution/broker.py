from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Container, Dict, List, Mapping, Optional, Sequence, Tuple

from replaybt.backtest.core.errors import (
    AssetNotFound,
    BacktestError,
    DataUnavailable,
    ExecutionError,
)
from replaybt.backtest.core.events import (
    Fill,
    LimitOrder,
    MarketOrder,
    Order,
    StopLimitOrder,
    StopOrder,
)
from replaybt.backtest.core.types import Bar
from replaybt.backtest.execution.base import CommissionModel, SlippageModel
from replaybt.backtest.execution.commission import NoCommission
from replaybt.backtest.execution.slippage import NoSlippage
from replaybt.utils.logger import logs

"""
{#!filepath: replaybt/backtest/execution/broker.py}

SimulatedBroker (FINAL)

Role:
- Convert open orders + the current bar set into immutable Fill events.

Rules (reference price = bar.close):
- Market     : fill at close
- Limit buy  : bar.low  <= limit -> min(limit, close)
- Limit sell : bar.high >= limit -> max(limit, close)
- Stop buy   : bar.high >= stop  -> market
- Stop sell  : bar.low  <= stop  -> market
- StopLimit  : stop trigger is remembered on the order, then Limit rules

Invariants:
- Does NOT advance time.
- Does NOT mutate ledger or registry state (only the stop trigger flag);
  the caller does, through on_fill, one fill at a time.
- Fills are produced in ascending order id.
- A fill refused by on_fill with a recoverable error becomes a rejection
  and gives its volume share back to later orders of the same step.
"""


@dataclass
class Resolution:
    fills: List[Fill] = field(default_factory=list)
    rejections: List[Tuple[Order, BacktestError]] = field(default_factory=list)


class SimulatedBroker:

    def __init__(
        self,
        slippage: Optional[SlippageModel] = None,
        commission: Optional[CommissionModel] = None,
        *,
        max_volume_share: Optional[float] = None,
    ) -> None:
        if max_volume_share is not None and not (0.0 < max_volume_share <= 1.0):
            raise ValueError("max_volume_share must be in (0, 1]")
        self.slippage = slippage or NoSlippage()
        self.commission = commission or NoCommission()
        self.max_volume_share = max_volume_share

    @classmethod
    def default(cls) -> "SimulatedBroker":
        return cls(NoSlippage(), NoCommission())

    def with_policies(
        self,
        slippage: Optional[SlippageModel] = None,
        commission: Optional[CommissionModel] = None,
    ) -> "SimulatedBroker":
        """Copy with some models swapped; the volume cap carries over."""
        if slippage is None and commission is None:
            return self
        return SimulatedBroker(
            slippage or self.slippage,
            commission or self.commission,
            max_volume_share=self.max_volume_share,
        )

    # --------------------------------------------------
    def resolve(
        self,
        orders: Sequence[Order],
        bars: Mapping[int, Bar],
        ts: datetime,
        known_assets: Optional[Container[int]] = None,
        on_fill: Optional[Callable[[Fill], None]] = None,
    ) -> Resolution:
        out = Resolution()
        capacity: Dict[int, float] = {}

        for order in sorted(orders, key=lambda o: o.id):
            if not order.is_open:
                continue

            sid = order.asset.id
            if known_assets is not None and sid not in known_assets:
                out.rejections.append(
                    (order, AssetNotFound(f"{order.asset} is not provided by the data source"))
                )
                continue

            bar = bars.get(sid)
            if bar is None:
                if isinstance(order.kind, MarketOrder):
                    out.rejections.append(
                        (order, DataUnavailable(f"no bar for {order.asset} at {ts}"))
                    )
                continue

            base = self._base_price(order, bar)
            if base is None:
                continue

            qty = self._fill_quantity(order, bar, capacity)
            if qty == 0:
                continue

            fill = self._make_fill(order, base, bar, qty, ts)
            if on_fill is not None:
                try:
                    on_fill(fill)
                except BacktestError as exc:
                    if not exc.recoverable:
                        raise
                    self._release(order, qty, capacity)
                    out.rejections.append((order, exc))
                    continue
            out.fills.append(fill)

        return out

    # --------------------------------------------------
    # trigger / price rules
    # --------------------------------------------------
    @staticmethod
    def _stop_hit(order: Order, stop: float, bar: Bar) -> bool:
        return bar.high >= stop if order.is_buy else bar.low <= stop

    @staticmethod
    def _limit_price(order: Order, limit: float, bar: Bar) -> Optional[float]:
        if order.is_buy:
            return min(limit, bar.close) if bar.low <= limit else None
        return max(limit, bar.close) if bar.high >= limit else None

    def _base_price(self, order: Order, bar: Bar) -> Optional[float]:
        kind = order.kind
        if isinstance(kind, MarketOrder):
            return bar.close
        if isinstance(kind, LimitOrder):
            return self._limit_price(order, kind.limit_price, bar)
        if isinstance(kind, StopOrder):
            return bar.close if self._stop_hit(order, kind.stop_price, bar) else None
        if isinstance(kind, StopLimitOrder):
            if not order.stop_triggered and self._stop_hit(order, kind.stop_price, bar):
                order.stop_triggered = True
                logs.debug(f"[Broker] stop triggered order={order.id} stop={kind.stop_price}")
            if not order.stop_triggered:
                return None
            return self._limit_price(order, kind.limit_price, bar)
        raise ExecutionError(f"[Broker] unknown order kind: {kind!r}")

    def _fill_quantity(self, order: Order, bar: Bar, capacity: Dict[int, float]) -> float:
        remaining = order.remaining
        if self.max_volume_share is None:
            return remaining

        left = capacity.setdefault(order.asset.id, self.max_volume_share * bar.volume)
        size = min(abs(remaining), left)
        if size <= 0:
            return 0.0
        capacity[order.asset.id] = left - size
        return math.copysign(size, remaining)

    def _release(self, order: Order, qty: float, capacity: Dict[int, float]) -> None:
        if self.max_volume_share is not None:
            capacity[order.asset.id] += abs(qty)

    # --------------------------------------------------
    # fill construction + validation
    # --------------------------------------------------
    def _make_fill(self, order: Order, base: float, bar: Bar, qty: float, ts: datetime) -> Fill:
        price = self.slippage.execution_price(order, base, bar, qty)

        if not isinstance(price, (int, float)) or not math.isfinite(price) or price < 0.0:
            raise ExecutionError(f"[Broker] invalid execution price {price!r} for order={order.id}")
        if (order.is_buy and price < base) or (not order.is_buy and price > base):
            raise ExecutionError(
                f"[Broker] slippage moved price favourably for order={order.id}: "
                f"base={base} price={price}"
            )

        # limit 单不允许越过限价
        limit = getattr(order.kind, "limit_price", None)
        if limit is not None:
            price = min(price, limit) if order.is_buy else max(price, limit)

        commission = self.commission.calculate(order, qty, price)
        if not isinstance(commission, (int, float)) or not math.isfinite(commission) or commission < 0.0:
            raise ExecutionError(f"[Broker] invalid commission {commission!r} for order={order.id}")

        logs.debug(
            f"[Broker] fill order={order.id} {order.asset} qty={qty} "
            f"base={base} price={price} commission={commission} ts={ts}"
        )
        return Fill(
            order_id=order.id,
            asset=order.asset,
            quantity=float(qty),
            price=float(price),
            commission=float(commission),
            timestamp=ts,
        )
