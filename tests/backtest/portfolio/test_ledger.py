# tests/backtest/portfolio/test_ledger.py
from __future__ import annotations

from datetime import datetime, timezone

import numpy as np
import pytest

from replaybt.backtest.core.errors import ExecutionError, InsufficientCash
from replaybt.backtest.core.events import Fill
from replaybt.backtest.portfolio.ledger import Ledger
from replaybt.backtest.portfolio.view import PortfolioView

TS = datetime(2024, 1, 2, tzinfo=timezone.utc)


def _fill(asset, qty, price, commission=0.0, order_id=1) -> Fill:
    return Fill(order_id, asset, qty, price, commission, TS)


def test_buy_moves_cash_and_opens_position(aaa):
    ledger = Ledger(100_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0, 1.0))

    assert ledger.cash == pytest.approx(98_999.0)
    pos = ledger.get_position(aaa)
    assert pos.quantity == 10
    assert pos.cost_basis == pytest.approx(100.0)
    assert ledger.total_commission == pytest.approx(1.0)


def test_weighted_basis_and_realized_pnl(aaa):
    ledger = Ledger(100_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0))
    ledger.apply_fill(_fill(aaa, 10, 110.0))
    assert ledger.get_position(aaa).cost_basis == pytest.approx(105.0)

    # 减仓：成本不变，记已实现盈亏
    ledger.apply_fill(_fill(aaa, -5, 120.0))
    pos = ledger.get_position(aaa)
    assert pos.quantity == 15
    assert pos.cost_basis == pytest.approx(105.0)
    assert pos.realized_pnl == pytest.approx(75.0)


def test_flat_position_is_kept(aaa, bbb):
    ledger = Ledger(100_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0))
    ledger.apply_fill(_fill(aaa, -10, 90.0))

    pos = ledger.get_position(aaa)
    assert pos is not None
    assert pos.is_flat
    assert pos.realized_pnl == pytest.approx(-100.0)
    assert aaa.id not in ledger.positions()
    assert aaa.id in ledger.snapshot()

    assert ledger.get_position(bbb) is None


def test_crossing_zero_opens_other_side_at_fill_price(aaa):
    ledger = Ledger(100_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0))
    ledger.apply_fill(_fill(aaa, -15, 110.0))

    pos = ledger.get_position(aaa)
    assert pos.quantity == -5
    assert pos.cost_basis == pytest.approx(110.0)
    assert pos.realized_pnl == pytest.approx(100.0)


def test_short_round_trip(aaa):
    ledger = Ledger(10_000)
    ledger.apply_fill(_fill(aaa, -10, 50.0))
    assert ledger.cash == pytest.approx(10_500.0)

    ledger.apply_fill(_fill(aaa, 10, 40.0))
    pos = ledger.get_position(aaa)
    assert pos.is_flat
    assert pos.realized_pnl == pytest.approx(100.0)
    assert ledger.cash == pytest.approx(10_100.0)


def test_insufficient_cash_leaves_state_untouched(aaa):
    ledger = Ledger(1_000)

    with pytest.raises(InsufficientCash) as info:
        ledger.apply_fill(_fill(aaa, 20, 100.0, 1.0))

    assert info.value.required == pytest.approx(2_001.0)
    assert info.value.available == pytest.approx(1_000.0)
    assert ledger.cash == 1_000
    assert ledger.get_position(aaa) is None
    assert ledger.fills == []


def test_spending_all_cash_is_allowed(aaa):
    ledger = Ledger(1_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0))

    assert ledger.cash == pytest.approx(0.0)


def test_invalid_fill_is_fatal(aaa):
    with pytest.raises(ExecutionError):
        Ledger(1_000).apply_fill(_fill(aaa, 1, float("nan")))


@pytest.mark.parametrize("cash", [0, -1, float("inf"), float("nan")])
def test_starting_cash_must_be_positive_finite(cash):
    with pytest.raises(ValueError):
        Ledger(cash)


def test_mark_to_market_keeps_last_mark_for_missing_prices(aaa, bbb):
    ledger = Ledger(100_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0))
    ledger.apply_fill(_fill(bbb, 5, 20.0))

    ledger.mark_to_market({aaa.id: 120.0})

    assert ledger.get_position(aaa).last_price == 120.0
    assert ledger.get_position(bbb).last_price == 20.0
    assert ledger.positions_value == pytest.approx(1_300.0)
    assert ledger.portfolio_value == pytest.approx(100_000 - 1_100 + 1_300)
    assert ledger.unrealized_pnl == pytest.approx(200.0)
    assert ledger.returns == pytest.approx(200.0 / 100_000)


def test_conservation_and_replay(aaa, bbb):
    fills = [
        _fill(aaa, 10, 100.0, 1.0, 1),
        _fill(bbb, -4, 50.0, 0.5, 2),
        _fill(aaa, -3, 105.0, 1.0, 3),
        _fill(bbb, 4, 45.0, 0.5, 4),
        _fill(aaa, 7, 99.0, 1.0, 5),
    ]
    ledger = Ledger(50_000)
    for f in fills:
        ledger.apply_fill(f)

    expected_cash = 50_000 - sum(f.quantity * f.price + f.commission for f in fills)
    assert ledger.cash == pytest.approx(expected_cash)
    assert ledger.get_position(aaa).quantity == 14
    assert ledger.get_position(bbb).is_flat

    rebuilt = Ledger.replay(50_000, ledger.fills)
    assert rebuilt.cash == pytest.approx(ledger.cash)
    assert ledger.reconcile()


def test_leverage(aaa):
    ledger = Ledger(1_000)
    assert ledger.leverage == 0.0

    ledger.apply_fill(_fill(aaa, -10, 100.0))
    # gross 1000 / value 1000
    assert ledger.leverage == pytest.approx(1.0)


def test_portfolio_view_is_read_only_copy(aaa):
    ledger = Ledger(10_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0))
    view = PortfolioView(ledger)

    pos = view.position(aaa)
    pos.quantity = 999

    assert view.quantity(aaa) == 10
    assert view.cash == pytest.approx(9_000.0)
    assert view.pnl == pytest.approx(0.0)
    assert list(view.positions) == [aaa.id]
    with pytest.raises(AttributeError):
        view.cash = 1


def test_sell_commission_beyond_proceeds_needs_cash(aaa):
    ledger = Ledger(1_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0))
    assert ledger.cash == pytest.approx(0.0)

    # proceeds 1.0, commission 5.0
    with pytest.raises(InsufficientCash) as info:
        ledger.apply_fill(_fill(aaa, -1, 1.0, 5.0, 2))

    assert info.value.required == pytest.approx(4.0)
    assert ledger.cash == pytest.approx(0.0)
    assert ledger.get_position(aaa).quantity == 10
    assert len(ledger.fills) == 1


def test_sell_with_commission_inside_proceeds_is_allowed(aaa):
    ledger = Ledger(1_000)
    ledger.apply_fill(_fill(aaa, 10, 100.0))
    ledger.apply_fill(_fill(aaa, -1, 100.0, 5.0, 2))

    assert ledger.cash == pytest.approx(95.0)


def test_reconcile_catches_small_cash_drift(aaa):
    ledger = Ledger(1_000)
    ledger.apply_fill(_fill(aaa, 5, 100.0))
    assert ledger.reconcile()

    ledger.cash += 5e-4
    with pytest.raises(ExecutionError):
        ledger.reconcile()


def test_reconcile_catches_small_position_drift(aaa):
    ledger = Ledger(1_000)
    ledger.apply_fill(_fill(aaa, 5, 100.0))

    ledger._positions[aaa.id].quantity += 1e-7
    with pytest.raises(ExecutionError):
        ledger.reconcile()


def test_numpy_starting_cash_is_accepted():
    ledger = Ledger(np.int64(10_000))

    assert ledger.cash == 10_000.0
    assert isinstance(ledger.cash, float)
