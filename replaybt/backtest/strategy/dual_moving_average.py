# replaybt/backtest/strategy/dual_moving_average.py
from __future__ import annotations

import math

import numpy as np

from replaybt.backtest.strategy.base import Strategy


class DualMovingAverageStrategy(Strategy):
    """
    Dual moving average crossover (long-only)

    - short MA > long MA and flat  -> buy whole shares with `fraction` of cash
    - short MA < long MA and long  -> close out

    Needs engine history_len >= long_window.
    """

    def __init__(
        self,
        symbol: str,
        short_window: int = 20,
        long_window: int = 50,
        fraction: float = 0.95,
    ):
        if short_window < 1 or long_window <= short_window:
            raise ValueError("require 1 <= short_window < long_window")
        self.symbol = symbol
        self.short_window = short_window
        self.long_window = long_window
        self.fraction = fraction

    def initialize(self, ctx) -> None:
        ctx.set("asset", ctx.symbol(self.symbol))

    def handle_data(self, ctx, data) -> None:
        asset = ctx.get("asset")
        if not data.has_data(asset) or data.history_len(asset) < self.long_window:
            return
        if ctx.get_open_orders(asset):
            return

        closes = np.asarray(data.history_prices(asset, self.long_window), dtype=float)
        short_ma = float(closes[-self.short_window:].mean())
        long_ma = float(closes.mean())
        ctx.set("short_ma", short_ma)
        ctx.set("long_ma", long_ma)

        held = ctx.portfolio.quantity(asset)
        if short_ma > long_ma and held == 0:
            qty = math.floor(ctx.portfolio.cash * self.fraction / closes[-1])
            if qty > 0:
                ctx.order(asset, qty)
        elif short_ma < long_ma and held > 0:
            ctx.order_target(asset, 0)
