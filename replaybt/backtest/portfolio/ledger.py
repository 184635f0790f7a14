from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional

from replaybt.backtest.core.errors import ExecutionError, InsufficientCash
from replaybt.backtest.core.events import Fill
from replaybt.backtest.core.types import Asset
from replaybt.utils.logger import logs

"""
{#!filepath: replaybt/backtest/portfolio/ledger.py}

Ledger (FINAL / FROZEN)

Accounting semantics:
  cash(t)   = starting_cash + Σ fill.cash_delta
  value(t)  = cash(t) + Σ position.quantity × position.last_price

Rules:
- The ONLY way to change cash or positions is apply_fill().
- InsufficientCash is raised BEFORE any mutation.
- Basis moves only on quantity-increasing fills (weighted average).
- Reducing fills book realized P&L against the basis.
- A position that returns to zero is kept flat, never deleted.
"""

# 数量归零判定
_QTY_EPS = 1e-9
# 现金允许的浮点负偏差
_CASH_EPS = 1e-9


@dataclass
class Position:
    asset: Asset
    quantity: float = 0.0
    cost_basis: float = 0.0
    realized_pnl: float = 0.0
    last_price: float = 0.0

    @property
    def is_flat(self) -> bool:
        return self.quantity == 0.0

    @property
    def market_value(self) -> float:
        return self.quantity * self.last_price

    @property
    def unrealized_pnl(self) -> float:
        return (self.last_price - self.cost_basis) * self.quantity

    def to_record(self) -> dict:
        return {
            "sid": self.asset.id,
            "symbol": self.asset.symbol,
            "quantity": self.quantity,
            "cost_basis": self.cost_basis,
            "last_price": self.last_price,
            "market_value": self.market_value,
            "realized_pnl": self.realized_pnl,
            "unrealized_pnl": self.unrealized_pnl,
        }


class Ledger:

    def __init__(self, starting_cash: float):
        if not isinstance(starting_cash, numbers.Real) or not math.isfinite(starting_cash) or starting_cash <= 0:
            raise ValueError(f"[Ledger] starting_cash must be finite and > 0, got {starting_cash!r}")
        self.starting_cash = float(starting_cash)
        self.cash = float(starting_cash)
        self._positions: Dict[int, Position] = {}
        self._fills: List[Fill] = []
        self._commission = 0.0

    # --------------------------------------------------
    # mutation
    # --------------------------------------------------
    def apply_fill(self, fill: Fill) -> None:
        if not fill.is_valid():
            raise ExecutionError(f"[Ledger] invalid fill: {fill}")

        delta = fill.cash_delta
        if self.cash + delta < -_CASH_EPS:
            raise InsufficientCash(required=-delta, available=self.cash)

        pos = self._positions.get(fill.asset.id)
        if pos is None:
            pos = Position(asset=fill.asset)
            self._positions[fill.asset.id] = pos

        self._update_position(pos, fill.quantity, fill.price)
        self.cash += delta
        self._commission += fill.commission
        self._fills.append(fill)

        logs.debug(
            f"[Ledger] apply order={fill.order_id} {fill.asset} qty={fill.quantity} "
            f"px={fill.price} cash={self.cash:.6f} pos={pos.quantity}"
        )

    @staticmethod
    def _update_position(pos: Position, qty: float, price: float) -> None:
        old = pos.quantity

        if old == 0.0 or (old > 0) == (qty > 0):
            # 加仓：加权平均成本
            pos.cost_basis = (
                pos.cost_basis * abs(old) + price * abs(qty)
            ) / (abs(old) + abs(qty))
            pos.quantity = old + qty
        else:
            closed = min(abs(qty), abs(old))
            sign = 1.0 if old > 0 else -1.0
            pos.realized_pnl += (price - pos.cost_basis) * closed * sign

            new = old + qty
            if abs(new) <= _QTY_EPS:
                pos.quantity = 0.0
                pos.cost_basis = 0.0
            elif abs(qty) > abs(old):
                # 穿越零点：剩余部分按成交价开新方向
                pos.quantity = new
                pos.cost_basis = price
            else:
                pos.quantity = new

        pos.last_price = price

    def mark_to_market(self, prices: Mapping[int, float]) -> None:
        """Revalue positions; assets missing from `prices` keep their last mark."""
        for sid, pos in self._positions.items():
            px = prices.get(sid)
            if px is not None:
                pos.last_price = float(px)

    # --------------------------------------------------
    # read-outs
    # --------------------------------------------------
    def get_position(self, asset: Asset) -> Optional[Position]:
        pos = self._positions.get(asset.id)
        return replace(pos) if pos is not None else None

    def positions(self) -> Dict[int, Position]:
        """Open (non-flat) positions, ascending asset id."""
        return {
            sid: replace(self._positions[sid])
            for sid in sorted(self._positions)
            if not self._positions[sid].is_flat
        }

    def snapshot(self) -> Dict[int, Position]:
        """Every position ever touched, flat ones included."""
        return {sid: replace(self._positions[sid]) for sid in sorted(self._positions)}

    @property
    def fills(self) -> List[Fill]:
        return list(self._fills)

    @property
    def positions_value(self) -> float:
        return sum(p.market_value for p in self._positions.values())

    @property
    def gross_exposure(self) -> float:
        return sum(abs(p.market_value) for p in self._positions.values())

    @property
    def portfolio_value(self) -> float:
        return self.cash + self.positions_value

    @property
    def realized_pnl(self) -> float:
        return sum(p.realized_pnl for p in self._positions.values())

    @property
    def unrealized_pnl(self) -> float:
        return sum(p.unrealized_pnl for p in self._positions.values())

    @property
    def total_commission(self) -> float:
        return self._commission

    @property
    def returns(self) -> float:
        return self.portfolio_value / self.starting_cash - 1.0

    @property
    def leverage(self) -> float:
        gross = self.gross_exposure
        if gross == 0.0:
            return 0.0
        pv = self.portfolio_value
        return gross / pv if pv > 0 else math.inf

    # --------------------------------------------------
    # audit
    # --------------------------------------------------
    @classmethod
    def replay(cls, starting_cash: float, fills: Iterable[Fill]) -> "Ledger":
        ledger = cls(starting_cash)
        for fill in fills:
            ledger.apply_fill(fill)
        return ledger

    def reconcile(self, tol: float = 1e-9) -> bool:
        """
        Rebuild from the fill history and compare.
        Raises ExecutionError on any mismatch.
        """
        rebuilt = Ledger.replay(self.starting_cash, self._fills)

        scale = max(1.0, abs(self.cash))
        if abs(rebuilt.cash - self.cash) > tol * scale:
            raise ExecutionError(
                f"[Ledger] cash drift: running={self.cash} replayed={rebuilt.cash}"
            )

        sids = set(self._positions) | set(rebuilt._positions)
        for sid in sorted(sids):
            mine = self._positions.get(sid)
            theirs = rebuilt._positions.get(sid)
            q1 = mine.quantity if mine else 0.0
            q2 = theirs.quantity if theirs else 0.0
            if abs(q1 - q2) > tol * max(1.0, abs(q1)):
                raise ExecutionError(
                    f"[Ledger] position drift sid={sid}: running={q1} replayed={q2}"
                )
        return True
