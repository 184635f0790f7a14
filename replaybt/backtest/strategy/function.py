# replaybt/backtest/strategy/function.py
from __future__ import annotations

from typing import Callable, Optional

from replaybt.backtest.strategy.base import Strategy


class FunctionStrategy(Strategy):
    """
    Strategy built from plain callables.

        FunctionStrategy(handle_data=fn, initialize=init)
    """

    def __init__(
        self,
        handle_data: Callable,
        initialize: Optional[Callable] = None,
        before_trading_start: Optional[Callable] = None,
        analyze: Optional[Callable] = None,
    ):
        self._handle_data = handle_data
        self._initialize = initialize
        self._before_trading_start = before_trading_start
        self._analyze = analyze

    def initialize(self, ctx) -> None:
        if self._initialize is not None:
            self._initialize(ctx)

    def before_trading_start(self, ctx, data) -> None:
        if self._before_trading_start is not None:
            self._before_trading_start(ctx, data)

    def handle_data(self, ctx, data) -> None:
        self._handle_data(ctx, data)

    def analyze(self, ctx) -> None:
        if self._analyze is not None:
            self._analyze(ctx)
