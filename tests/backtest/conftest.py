# tests/backtest/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from replaybt.backtest.calendar.always_open import AlwaysOpenCalendar
from replaybt.backtest.core.types import Asset, Bar
from replaybt.backtest.data.in_memory import InMemoryDataSource
from replaybt.backtest.engine import SimulationEngine
from replaybt.backtest.execution.broker import SimulatedBroker
from replaybt.config.backtest_config import EngineConfig
from replaybt.observability.instrumentation import Instrumentation

UTC = timezone.utc
EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


def _day(n: int, hour: int = 0, minute: int = 0) -> datetime:
    return EPOCH + timedelta(days=n, hours=hour, minutes=minute)


def _bar(
    ts: datetime,
    close: float,
    *,
    open: Optional[float] = None,
    high: Optional[float] = None,
    low: Optional[float] = None,
    volume: float = 1_000_000.0,
) -> Bar:
    o = close if open is None else open
    h = max(o, close) if high is None else high
    l = min(o, close) if low is None else low
    return Bar(timestamp=ts, open=o, high=h, low=l, close=close, volume=volume)


@pytest.fixture
def day():
    """day(n) -> 2024-01-01 + n days, 00:00 UTC."""
    return _day


@pytest.fixture
def make_bar():
    return _bar


@pytest.fixture
def aaa() -> Asset:
    return Asset(id=1, symbol="AAA", exchange="TEST")


@pytest.fixture
def bbb() -> Asset:
    return Asset(id=2, symbol="BBB", exchange="TEST")


@pytest.fixture
def make_source():
    """
    make_source({asset: [close, ...]}) -> InMemoryDataSource

    One daily bar per close starting at day(1); None leaves a gap.
    """

    def _make(
        series: Dict[Asset, List[Optional[float]]],
        *,
        start: int = 1,
        volume: float = 1_000_000.0,
    ) -> InMemoryDataSource:
        src = InMemoryDataSource()
        for asset, closes in series.items():
            src.add_asset(asset)
            for i, close in enumerate(closes):
                if close is None:
                    continue
                src.add_bar(asset, _bar(_day(start + i), close, volume=volume))
        return src

    return _make


@pytest.fixture
def make_engine():
    """
    Daily engine on an always-open calendar (one step per day at 23:59 UTC).
    """

    def _make(
        *,
        starting_cash: float = 100_000.0,
        slippage=None,
        commission=None,
        max_volume_share: Optional[float] = None,
        inst: Optional[Instrumentation] = None,
        **cfg,
    ) -> SimulationEngine:
        return SimulationEngine(
            config=EngineConfig(starting_cash=starting_cash, **cfg),
            broker=SimulatedBroker(slippage, commission, max_volume_share=max_volume_share),
            calendar=AlwaysOpenCalendar(),
            inst=inst or Instrumentation(enabled=False),
        )

    return _make
