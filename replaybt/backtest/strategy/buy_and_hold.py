# replaybt/backtest/strategy/buy_and_hold.py
from __future__ import annotations

import math

from replaybt.backtest.strategy.base import Strategy
from replaybt.utils.logger import logs


class BuyAndHoldStrategy(Strategy):
    """
    Buy whole shares with `fraction` of cash on the first bar, then hold.
    """

    def __init__(self, symbol: str, fraction: float = 1.0):
        if not (0.0 < fraction <= 1.0):
            raise ValueError("fraction must be in (0, 1]")
        self.symbol = symbol
        self.fraction = fraction

    def initialize(self, ctx) -> None:
        ctx.set("asset", ctx.symbol(self.symbol))
        ctx.set("invested", False)

    def handle_data(self, ctx, data) -> None:
        if ctx.get("invested"):
            return
        asset = ctx.get("asset")
        if not data.has_data(asset):
            return

        price = data.current_price(asset)
        qty = math.floor(ctx.portfolio.cash * self.fraction / price)
        if qty > 0:
            ctx.order(asset, qty)
            ctx.set("invested", True)
            logs.info(f"[BuyAndHold] {asset} qty={qty} @ ~{price}")
