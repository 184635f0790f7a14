# tests/observability/conftest.py
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from replaybt.backtest.calendar.always_open import AlwaysOpenCalendar
from replaybt.backtest.core.types import Asset, Bar
from replaybt.backtest.data.in_memory import InMemoryDataSource
from replaybt.backtest.engine import SimulationEngine
from replaybt.backtest.strategy.function import FunctionStrategy
from replaybt.observability.instrumentation import Instrumentation


@pytest.fixture
def aaa_asset() -> Asset:
    return Asset(id=1, symbol="AAA")


@pytest.fixture
def engine_with_inst(aaa_asset):
    """(Instrumentation, run) for a two-day replay with timing enabled."""
    inst = Instrumentation(enabled=True)
    src = InMemoryDataSource()
    for day, close in ((2, 10.0), (3, 11.0)):
        ts = datetime(2024, 1, day, tzinfo=timezone.utc)
        src.add_bar(aaa_asset, Bar(timestamp=ts, open=close, high=close, low=close, close=close, volume=1e6))

    engine = SimulationEngine(calendar=AlwaysOpenCalendar(), inst=inst)

    def run():
        return engine.run(FunctionStrategy(lambda ctx, data: None), src)

    return inst, run
