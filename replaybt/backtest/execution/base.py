# replaybt/backtest/execution/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from replaybt.backtest.core.events import Order
from replaybt.backtest.core.types import Bar


class SlippageModel(ABC):
    """
    (order, reference_price, bar) -> execution price.

    Contract: the result never favours the trader
      buy  -> price >= reference_price
      sell -> price <= reference_price
    The broker enforces this and raises ExecutionError on violation.
    """

    @abstractmethod
    def execution_price(
        self,
        order: Order,
        reference_price: float,
        bar: Bar,
        quantity: Optional[float] = None,
    ) -> float:
        """`quantity` is the signed size being filled; defaults to order.remaining."""


class CommissionModel(ABC):
    """(order, fill_quantity, fill_price) -> cost >= 0."""

    @abstractmethod
    def calculate(self, order: Order, fill_quantity: float, fill_price: float) -> float:
        ...
