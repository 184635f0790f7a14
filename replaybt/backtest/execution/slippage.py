# replaybt/backtest/execution/slippage.py
from __future__ import annotations

from typing import Optional

from replaybt.backtest.core.events import Order
from replaybt.backtest.core.types import Bar
from replaybt.backtest.execution.base import SlippageModel


class NoSlippage(SlippageModel):

    def execution_price(self, order: Order, reference_price: float, bar: Bar,
                        quantity: Optional[float] = None) -> float:
        return reference_price


class FixedSlippage(SlippageModel):
    """Fixed absolute offset: buys pay +spread, sells receive -spread."""

    def __init__(self, spread: float = 0.0) -> None:
        if spread < 0:
            raise ValueError("spread must be >= 0")
        self.spread = float(spread)

    def execution_price(self, order: Order, reference_price: float, bar: Bar,
                        quantity: Optional[float] = None) -> float:
        return reference_price + order.direction * self.spread


class VolumeShareSlippage(SlippageModel):
    """
    Market impact proportional to participation:

        share  = min(|quantity| / bar.volume, volume_limit)
        offset = rate * share

    A bar without volume is charged the full volume_limit share.
    """

    def __init__(self, rate: float = 0.1, volume_limit: float = 0.25) -> None:
        if rate < 0:
            raise ValueError("rate must be >= 0")
        if not 0.0 < volume_limit <= 1.0:
            raise ValueError("volume_limit must be in (0, 1]")
        self.rate = float(rate)
        self.volume_limit = float(volume_limit)

    def execution_price(self, order: Order, reference_price: float, bar: Bar,
                        quantity: Optional[float] = None) -> float:
        qty = order.remaining if quantity is None else quantity
        if bar.volume > 0:
            share = min(abs(qty) / bar.volume, self.volume_limit)
        else:
            share = self.volume_limit
        return reference_price + order.direction * self.rate * share
