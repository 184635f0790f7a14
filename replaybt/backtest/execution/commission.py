# replaybt/backtest/execution/commission.py
from __future__ import annotations

from replaybt.backtest.core.events import Order
from replaybt.backtest.execution.base import CommissionModel


class NoCommission(CommissionModel):

    def calculate(self, order: Order, fill_quantity: float, fill_price: float) -> float:
        return 0.0


class PerShareCommission(CommissionModel):
    """
    cost_per_share * |fill_quantity|, with an optional minimum per order.

    The minimum applies once per order: later partial fills only pay the
    part not already covered by commission charged on that order.
    """

    def __init__(self, cost_per_share: float = 0.001, min_trade_cost: float = 0.0) -> None:
        if cost_per_share < 0 or min_trade_cost < 0:
            raise ValueError("commission parameters must be >= 0")
        self.cost_per_share = float(cost_per_share)
        self.min_trade_cost = float(min_trade_cost)

    def calculate(self, order: Order, fill_quantity: float, fill_price: float) -> float:
        raw = self.cost_per_share * abs(fill_quantity)
        total = raw + order.commission
        if total < self.min_trade_cost:
            return self.min_trade_cost - order.commission
        return raw


class PerTradeCommission(CommissionModel):
    """Flat fee per order, charged on its first fill."""

    def __init__(self, cost: float = 0.0) -> None:
        if cost < 0:
            raise ValueError("cost must be >= 0")
        self.cost = float(cost)

    def calculate(self, order: Order, fill_quantity: float, fill_price: float) -> float:
        return self.cost if order.filled == 0 else 0.0
