# replaybt/backtest/portfolio/view.py
from __future__ import annotations

from typing import Dict, Optional

from replaybt.backtest.core.types import Asset
from replaybt.backtest.portfolio.ledger import Ledger, Position


class PortfolioView:
    """
    Read-only window on the Ledger for strategy code.

    Positions handed out are copies; nothing here can mutate the ledger.
    """

    __slots__ = ("_ledger",)

    def __init__(self, ledger: Ledger):
        self._ledger = ledger

    @property
    def cash(self) -> float:
        return self._ledger.cash

    @property
    def starting_cash(self) -> float:
        return self._ledger.starting_cash

    @property
    def portfolio_value(self) -> float:
        return self._ledger.portfolio_value

    @property
    def positions_value(self) -> float:
        return self._ledger.positions_value

    @property
    def pnl(self) -> float:
        return self._ledger.portfolio_value - self._ledger.starting_cash

    @property
    def returns(self) -> float:
        return self._ledger.returns

    @property
    def leverage(self) -> float:
        return self._ledger.leverage

    @property
    def positions(self) -> Dict[int, Position]:
        return self._ledger.positions()

    def position(self, asset: Asset) -> Optional[Position]:
        return self._ledger.get_position(asset)

    def quantity(self, asset: Asset) -> float:
        pos = self._ledger.get_position(asset)
        return pos.quantity if pos is not None else 0.0

    def __repr__(self) -> str:
        return (
            f"PortfolioView(cash={self.cash:.2f}, value={self.portfolio_value:.2f}, "
            f"positions={len(self.positions)})"
        )
