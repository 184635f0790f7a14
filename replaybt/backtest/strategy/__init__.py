from replaybt.backtest.strategy.base import Strategy
from replaybt.backtest.strategy.buy_and_hold import BuyAndHoldStrategy
from replaybt.backtest.strategy.dual_moving_average import DualMovingAverageStrategy
from replaybt.backtest.strategy.factory import StrategyFactory
from replaybt.backtest.strategy.function import FunctionStrategy

__all__ = [
    "Strategy",
    "FunctionStrategy",
    "BuyAndHoldStrategy",
    "DualMovingAverageStrategy",
    "StrategyFactory",
]
