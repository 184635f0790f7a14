"""
Backtest simulation core.

    engine = SimulationEngine(EngineConfig(), SimulatedBroker(), WeekdayCalendar())
    record = engine.run(strategy, data_source, start, end)
"""
from replaybt.backtest.context import AlgoContext
from replaybt.backtest.engine import SimulationEngine
from replaybt.backtest.execution.broker import SimulatedBroker
from replaybt.backtest.orders.registry import OrderRegistry
from replaybt.backtest.portfolio.ledger import Ledger, Position
from replaybt.backtest.portfolio.view import PortfolioView
from replaybt.backtest.result import RunRecord, RunStatus, ValueSample
from replaybt.backtest.runner import build_engine, run_backtest
from replaybt.backtest.strategy.base import Strategy
from replaybt.backtest.strategy.function import FunctionStrategy

__all__ = [
    "SimulationEngine",
    "SimulatedBroker",
    "OrderRegistry",
    "Ledger",
    "Position",
    "PortfolioView",
    "AlgoContext",
    "RunRecord",
    "RunStatus",
    "ValueSample",
    "Strategy",
    "FunctionStrategy",
    "build_engine",
    "run_backtest",
]
