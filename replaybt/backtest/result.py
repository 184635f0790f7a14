from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd

from replaybt.backtest.core.events import Fill, Order
from replaybt.backtest.portfolio.ledger import Position

"""
{#!filepath: replaybt/backtest/result.py}

RunRecord (FINAL / FROZEN)

Raw facts of one run, handed to downstream analytics:
- value series: one (timestamp, portfolio value) sample per processed step
- fill ledger (append-only, replayable from starting_cash)
- every order with its final state
- final cash + position snapshot

No statistics are computed here.
"""


class RunStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class ValueSample:
    timestamp: datetime
    portfolio_value: float
    cash: float


@dataclass
class RunRecord:
    starting_cash: float
    values: List[ValueSample] = field(default_factory=list)
    fills: List[Fill] = field(default_factory=list)
    orders: List[Order] = field(default_factory=list)
    final_cash: float = 0.0
    positions: Dict[int, Position] = field(default_factory=dict)
    status: RunStatus = RunStatus.COMPLETED
    error: Optional[BaseException] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    # --------------------------------------------------
    @property
    def final_value(self) -> float:
        return self.final_cash + sum(p.market_value for p in self.positions.values())

    @property
    def total_commission(self) -> float:
        return sum(f.commission for f in self.fills)

    @property
    def n_steps(self) -> int:
        return len(self.values)

    @property
    def timestamps(self) -> List[datetime]:
        return [s.timestamp for s in self.values]

    @property
    def value_curve(self) -> List[float]:
        return [s.portfolio_value for s in self.values]

    # --------------------------------------------------
    # tabular views
    # --------------------------------------------------
    def values_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "portfolio_value": [s.portfolio_value for s in self.values],
                "cash": [s.cash for s in self.values],
            },
            index=pd.DatetimeIndex([s.timestamp for s in self.values], name="timestamp"),
        )

    def fills_frame(self) -> pd.DataFrame:
        cols = ["order_id", "sid", "symbol", "quantity", "price", "commission", "timestamp"]
        return pd.DataFrame([f.to_record() for f in self.fills], columns=cols)

    def orders_frame(self) -> pd.DataFrame:
        cols = [
            "order_id", "sid", "symbol", "kind", "quantity", "limit_price", "stop_price",
            "status", "filled", "avg_fill_price", "commission", "created_at",
            "updated_at", "reason",
        ]
        return pd.DataFrame([o.to_record() for o in self.orders], columns=cols)

    def positions_frame(self) -> pd.DataFrame:
        cols = [
            "sid", "symbol", "quantity", "cost_basis", "last_price",
            "market_value", "realized_pnl", "unrealized_pnl",
        ]
        return pd.DataFrame([p.to_record() for p in self.positions.values()], columns=cols)

    def summary(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "starting_cash": self.starting_cash,
            "final_cash": self.final_cash,
            "final_value": self.final_value,
            "steps": self.n_steps,
            "orders": len(self.orders),
            "fills": len(self.fills),
            "total_commission": self.total_commission,
            "start": self.values[0].timestamp.isoformat() if self.values else None,
            "end": self.values[-1].timestamp.isoformat() if self.values else None,
            "error": repr(self.error) if self.error is not None else None,
        }
