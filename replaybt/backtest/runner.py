# replaybt/backtest/runner.py
from __future__ import annotations

from typing import Optional

from replaybt.backtest.calendar.factory import CalendarFactory
from replaybt.backtest.core.data import DataSource
from replaybt.backtest.engine import SimulationEngine
from replaybt.backtest.execution.factory import build_broker
from replaybt.backtest.result import RunRecord
from replaybt.backtest.strategy.factory import StrategyFactory
from replaybt.config.app_config import AppConfig
from replaybt.observability.instrumentation import Instrumentation


def build_engine(cfg: AppConfig, inst: Optional[Instrumentation] = None) -> SimulationEngine:
    """AppConfig -> SimulationEngine (broker + calendar resolved through the registries)."""
    calendar = CalendarFactory.create(cfg.backtest.calendar.type, **cfg.backtest.calendar.params)
    return SimulationEngine(
        config=cfg.engine,
        broker=build_broker(cfg.broker),
        calendar=calendar,
        inst=inst,
    )


def run_backtest(
    cfg: AppConfig,
    data_source: DataSource,
    *,
    start: Optional[str] = None,
    end: Optional[str] = None,
    inst: Optional[Instrumentation] = None,
) -> RunRecord:
    """
    One configured run. Explicit start / end override backtest.start / end.
    """
    engine = build_engine(cfg, inst)
    strategy = StrategyFactory.create(dict(cfg.backtest.strategy))
    return engine.run(
        strategy,
        data_source,
        start=start or cfg.backtest.start,
        end=end or cfg.backtest.end,
    )
