# replaybt/backtest/strategy/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from replaybt.backtest.context import AlgoContext
    from replaybt.backtest.core.data import BarDataView


class Strategy(ABC):
    """
    Strategy (FINAL / FROZEN)

    Callback surface, in call order:
      initialize(ctx)                    once, before the first step
      before_trading_start(ctx, data)    first processed step of each session
      handle_data(ctx, data)             every processed step
      analyze(ctx)                       once, after the last step

    Only handle_data is mandatory. Anything raised out of a callback
    aborts the run as StrategyError.
    """

    def initialize(self, ctx: "AlgoContext") -> None:
        ...

    def before_trading_start(self, ctx: "AlgoContext", data: "BarDataView") -> None:
        ...

    @abstractmethod
    def handle_data(self, ctx: "AlgoContext", data: "BarDataView") -> None:
        ...

    def analyze(self, ctx: "AlgoContext") -> None:
        ...
