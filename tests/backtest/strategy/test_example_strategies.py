# tests/backtest/strategy/test_example_strategies.py
from __future__ import annotations

import pytest

from replaybt.backtest.core.events import OrderStatus
from replaybt.backtest.result import RunStatus
from replaybt.backtest.strategy.buy_and_hold import BuyAndHoldStrategy
from replaybt.backtest.strategy.dual_moving_average import DualMovingAverageStrategy
from replaybt.backtest.strategy.function import FunctionStrategy


def test_buy_and_hold(aaa, make_source, make_engine):
    engine = make_engine(starting_cash=10_000)
    record = engine.run(BuyAndHoldStrategy("AAA"), make_source({aaa: [100.0, 110.0, 120.0]}))

    assert record.status == RunStatus.COMPLETED
    assert len(record.fills) == 1
    assert record.fills[0].quantity == 100
    assert record.final_cash == pytest.approx(0.0)
    assert record.final_value == pytest.approx(12_000.0)


def test_buy_and_hold_unknown_symbol_aborts(aaa, make_source, make_engine):
    from replaybt.backtest.core.errors import RunAborted, StrategyError

    with pytest.raises(RunAborted) as info:
        make_engine().run(BuyAndHoldStrategy("ZZZ"), make_source({aaa: [1.0]}))

    assert isinstance(info.value.error, StrategyError)
    assert info.value.error.callback == "initialize"


def test_dual_moving_average_round_trip(aaa, make_source, make_engine):
    closes = [10.0, 10.0, 10.0, 12.0, 14.0, 8.0, 6.0, 6.0]
    engine = make_engine(starting_cash=10_000, history_len=10)
    strategy = DualMovingAverageStrategy("AAA", short_window=2, long_window=3)

    record = engine.run(strategy, make_source({aaa: closes}))

    # buy 791 @ 12 on the cross up, sell 791 @ 8 on the cross down
    assert [(f.quantity, f.price) for f in record.fills] == [(791, 12.0), (-791, 8.0)]
    assert all(o.status == OrderStatus.FILLED for o in record.orders)
    assert record.final_value == pytest.approx(10_000 - 791 * 4)
    assert record.positions[aaa.id].is_flat


def test_function_strategy_forwards_callbacks(aaa, make_source, make_engine):
    calls = []

    strategy = FunctionStrategy(
        handle_data=lambda ctx, data: calls.append("handle_data"),
        initialize=lambda ctx: calls.append("initialize"),
        before_trading_start=lambda ctx, data: calls.append("before_trading_start"),
        analyze=lambda ctx: calls.append("analyze"),
    )
    make_engine().run(strategy, make_source({aaa: [1.0, 2.0]}))

    assert calls == [
        "initialize",
        "before_trading_start", "handle_data",
        "before_trading_start", "handle_data",
        "analyze",
    ]
