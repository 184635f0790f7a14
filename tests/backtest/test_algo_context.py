# tests/backtest/test_algo_context.py
from __future__ import annotations

import pytest

from replaybt.backtest.context import AlgoContext
from replaybt.backtest.core.data import BarData
from replaybt.backtest.core.errors import (
    AssetNotFound,
    DataUnavailable,
    InvalidOrder,
    RegistrationError,
)
from replaybt.backtest.core.events import (
    Fill,
    LimitOrder,
    MarketOrder,
    OrderStatus,
    StopLimitOrder,
    StopOrder,
)
from replaybt.backtest.execution.commission import PerTradeCommission
from replaybt.backtest.execution.slippage import FixedSlippage, VolumeShareSlippage
from replaybt.backtest.orders.cancel_policy import EODCancel
from replaybt.backtest.orders.controls import LongOnly, MaxOrderSize
from replaybt.backtest.orders.registry import OrderRegistry
from replaybt.backtest.portfolio.ledger import Ledger


@pytest.fixture
def world(aaa, bbb, day, make_bar):
    reg = OrderRegistry()
    ledger = Ledger(100_000)
    data = BarData(max_history_len=5)
    ts = day(1)
    data.advance(ts, [(aaa, make_bar(ts, 100.0))])

    ctx = AlgoContext(reg, ledger, data, [aaa, bbb])
    ctx._advance(ts, ts.date(), 0)
    return ctx, reg, ledger


def test_order_kind_follows_prices(world, aaa):
    ctx, reg, _ = world

    kinds = [
        reg.get(ctx.order(aaa, 10)).kind,
        reg.get(ctx.order(aaa, 10, limit_price=99.0)).kind,
        reg.get(ctx.order(aaa, 10, stop_price=101.0)).kind,
        reg.get(ctx.order(aaa, 10, limit_price=102.0, stop_price=101.0)).kind,
    ]

    assert isinstance(kinds[0], MarketOrder)
    assert kinds[1] == LimitOrder(99.0)
    assert kinds[2] == StopOrder(101.0)
    assert kinds[3] == StopLimitOrder(stop_price=101.0, limit_price=102.0)


def test_invalid_order_returns_rejected_id(world, aaa):
    ctx, _, _ = world

    oid = ctx.order(aaa, 0)

    assert oid == 1
    assert ctx.get_order(oid).status == OrderStatus.REJECTED
    assert ctx.get_open_orders() == []


def test_order_target_is_exact_delta(world, aaa):
    ctx, reg, ledger = world
    ledger.apply_fill(Fill(99, aaa, 30, 100.0, 0.0, ctx.timestamp))

    assert ctx.order_target(aaa, 30) is None
    oid = ctx.order_target(aaa, 50)
    assert reg.get(oid).quantity == 20
    oid = ctx.order_target(aaa, -10)
    assert reg.get(oid).quantity == -40


def test_value_and_percent_helpers(world, aaa):
    ctx, reg, _ = world

    assert reg.get(ctx.order_value(aaa, 1_000)).quantity == pytest.approx(10)
    assert reg.get(ctx.order_percent(aaa, 0.5)).quantity == pytest.approx(500)
    assert reg.get(ctx.order_target_value(aaa, 2_000)).quantity == pytest.approx(20)
    assert reg.get(ctx.order_target_percent(aaa, 0.1)).quantity == pytest.approx(100)
    assert reg.get(ctx.order_value(aaa, 1_000, limit_price=95.0)).kind == LimitOrder(95.0)


def test_value_helpers_need_a_current_bar(world, bbb):
    ctx, _, _ = world

    with pytest.raises(DataUnavailable):
        ctx.order_value(bbb, 1_000)


def test_symbol_lookup(world, aaa):
    ctx, _, _ = world

    assert ctx.symbol("AAA") == aaa
    with pytest.raises(AssetNotFound):
        ctx.symbol("ZZZ")


def test_user_store(world):
    ctx, _, _ = world

    ctx.set("counter", 3)

    assert ctx.get("counter") == 3
    assert ctx.get("missing") is None
    assert ctx.get("missing", 7) == 7


def test_cancel_and_open_orders(world, aaa, bbb):
    ctx, _, _ = world
    a = ctx.order(aaa, 10, limit_price=90.0)
    b = ctx.order(bbb, 5, limit_price=10.0)

    assert [o.id for o in ctx.get_open_orders()] == [a, b]
    assert [o.id for o in ctx.get_open_orders(bbb)] == [b]

    ctx.cancel_order(a)
    assert ctx.get_order(a).status == OrderStatus.CANCELLED
    with pytest.raises(InvalidOrder):
        ctx.cancel_order(a)


def test_order_snapshots_do_not_leak(world, aaa):
    ctx, reg, _ = world
    oid = ctx.order(aaa, 10)

    snap = ctx.get_order(oid)
    snap.quantity = 1_000

    assert reg.get(oid).quantity == 10
    assert ctx.get_order(12345) is None


def test_no_orders_before_replay_starts(aaa):
    ctx = AlgoContext(OrderRegistry(), Ledger(1_000), BarData(3), [aaa])

    with pytest.raises(InvalidOrder):
        ctx.order(aaa, 1)


def test_portfolio_and_clock(world, day):
    ctx, _, _ = world

    assert ctx.portfolio.cash == 100_000
    assert ctx.timestamp == day(1)
    assert ctx.session == day(1).date()
    assert ctx.step == 0


# --------------------------------------------------
# run-wide policies / controls
# --------------------------------------------------
@pytest.fixture
def fresh_ctx(aaa, bbb):
    return AlgoContext(OrderRegistry(), Ledger(100_000), BarData(3), [aaa, bbb])


def test_policies_set_during_setup(fresh_ctx):
    fresh_ctx.set_slippage(FixedSlippage(0.05))
    fresh_ctx.set_commission({"type": "per_trade", "cost": 2.0})
    fresh_ctx.set_cancel_policy("eod")

    assert isinstance(fresh_ctx._slippage, FixedSlippage)
    assert isinstance(fresh_ctx._commission, PerTradeCommission)
    assert fresh_ctx._commission.cost == 2.0
    assert isinstance(fresh_ctx._cancel_policy, EODCancel)


def test_slippage_spec_goes_through_factory(fresh_ctx):
    fresh_ctx.set_slippage({"type": "volume_share", "params": {"rate": 0.3}})

    assert isinstance(fresh_ctx._slippage, VolumeShareSlippage)
    assert fresh_ctx._slippage.rate == 0.3


def test_unknown_cancel_policy(fresh_ctx):
    with pytest.raises(ValueError):
        fresh_ctx.set_cancel_policy("gtc")


@pytest.mark.parametrize(
    "setter",
    [
        lambda ctx: ctx.set_slippage(FixedSlippage(0.1)),
        lambda ctx: ctx.set_commission(PerTradeCommission(1.0)),
        lambda ctx: ctx.set_cancel_policy("eod"),
        lambda ctx: ctx.set_long_only(),
        lambda ctx: ctx.set_max_order_size(max_shares=10),
    ],
)
def test_policies_are_locked_once_replay_starts(world, setter):
    ctx, _, _ = world

    with pytest.raises(RegistrationError):
        setter(ctx)


def test_controls_reject_at_submission(aaa, bbb, day, make_bar):
    reg = OrderRegistry()
    data = BarData(3)
    ctx = AlgoContext(reg, Ledger(100_000), data, [aaa, bbb])
    ctx.set_long_only()
    ctx.set_max_order_size(max_notional=5_000)
    ctx.set_do_not_order_list([bbb])
    assert [type(c) for c in ctx._controls][:2] == [LongOnly, MaxOrderSize]

    ts = day(1)
    data.advance(ts, [(aaa, make_bar(ts, 100.0)), (bbb, make_bar(ts, 10.0))])
    ctx._advance(ts, ts.date(), 0)

    ok = ctx.get_order(ctx.order(aaa, 10))
    short = ctx.get_order(ctx.order(aaa, -1))
    large = ctx.get_order(ctx.order(aaa, 60))
    banned = ctx.get_order(ctx.order(bbb, 1))

    assert ok.status == OrderStatus.SUBMITTED
    assert short.status == OrderStatus.REJECTED and "LongOnly" in short.reason
    assert large.status == OrderStatus.REJECTED and "MaxOrderSize" in large.reason
    assert banned.status == OrderStatus.REJECTED and "RestrictedList" in banned.reason
    assert [o.id for o in ctx.get_open_orders()] == [ok.id]
