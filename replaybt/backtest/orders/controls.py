from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from replaybt.backtest.core.errors import InvalidOrder
from replaybt.backtest.core.events import Order
from replaybt.backtest.core.types import Asset
from replaybt.backtest.portfolio.view import PortfolioView

"""
{#!filepath: replaybt/backtest/orders/controls.py}

Trading controls (FINAL)

Pre-trade checks registered by the strategy during initialize().
Each control sees the order being submitted, the asset's latest close
(None when no bar has arrived yet) and the read-only portfolio.

A violated control raises InvalidOrder; the registry then rejects the
order like any other invalid request. Checks that need a price are
skipped while no price is known.
"""

# 持仓归零判定
_EPS = 1e-9


class TradingControl(ABC):

    @abstractmethod
    def validate(self, order: Order, price: Optional[float], portfolio: PortfolioView) -> None:
        ...

    def _fail(self, order: Order, detail: str) -> None:
        raise InvalidOrder(f"{type(self).__name__}: {detail} (order for {order.asset})")


def _check_limit(name: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return float(value)


class MaxOrderSize(TradingControl):
    """Caps a single order by share count and/or notional."""

    def __init__(self, max_shares: Optional[float] = None, max_notional: Optional[float] = None):
        self.max_shares = _check_limit("max_shares", max_shares)
        self.max_notional = _check_limit("max_notional", max_notional)

    def validate(self, order: Order, price: Optional[float], portfolio: PortfolioView) -> None:
        size = abs(order.quantity)
        if self.max_shares is not None and size > self.max_shares:
            self._fail(order, f"{size} shares exceeds {self.max_shares}")
        if self.max_notional is not None and price is not None and size * price > self.max_notional:
            self._fail(order, f"notional {size * price:.2f} exceeds {self.max_notional:.2f}")


class MaxPositionSize(TradingControl):
    """Caps the position the order would leave behind."""

    def __init__(self, max_shares: Optional[float] = None, max_notional: Optional[float] = None):
        self.max_shares = _check_limit("max_shares", max_shares)
        self.max_notional = _check_limit("max_notional", max_notional)

    def validate(self, order: Order, price: Optional[float], portfolio: PortfolioView) -> None:
        target = abs(portfolio.quantity(order.asset) + order.quantity)
        if self.max_shares is not None and target > self.max_shares:
            self._fail(order, f"position of {target} shares exceeds {self.max_shares}")
        if self.max_notional is not None and price is not None and target * price > self.max_notional:
            self._fail(order, f"position notional {target * price:.2f} exceeds {self.max_notional:.2f}")


class LongOnly(TradingControl):
    """No order may take a position below zero."""

    def validate(self, order: Order, price: Optional[float], portfolio: PortfolioView) -> None:
        held = portfolio.quantity(order.asset)
        if held + order.quantity < -_EPS:
            self._fail(order, f"selling {-order.quantity} with only {held} held")


class RestrictedList(TradingControl):
    """Assets that may not be ordered at all."""

    def __init__(self, assets: Iterable[Asset]):
        self.ids = frozenset(a.id for a in assets)

    def validate(self, order: Order, price: Optional[float], portfolio: PortfolioView) -> None:
        if order.asset.id in self.ids:
            self._fail(order, "asset is on the restricted list")


class MaxLeverage(TradingControl):
    """
    Caps gross exposure / portfolio value as it would stand after the
    order fills at the latest close.
    """

    def __init__(self, max_leverage: float):
        if max_leverage <= 0:
            raise ValueError("max_leverage must be > 0")
        self.max_leverage = float(max_leverage)

    def validate(self, order: Order, price: Optional[float], portfolio: PortfolioView) -> None:
        if price is None:
            return
        held = portfolio.quantity(order.asset)
        pos = portfolio.position(order.asset)
        mark = pos.last_price if pos is not None else price

        gross = sum(abs(p.market_value) for p in portfolio.positions.values())
        gross += abs((held + order.quantity) * price) - abs(held * mark)
        value = portfolio.portfolio_value

        if value <= 0 or gross / value > self.max_leverage + _EPS:
            self._fail(order, f"leverage would reach {gross / value if value > 0 else float('inf'):.4f}")
