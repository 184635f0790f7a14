from replaybt.backtest.portfolio.ledger import Ledger, Position
from replaybt.backtest.portfolio.view import PortfolioView

__all__ = ["Ledger", "Position", "PortfolioView"]
