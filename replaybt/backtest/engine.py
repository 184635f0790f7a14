from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterator, List, Optional, Set, Tuple

from replaybt.backtest.calendar.weekday import WeekdayCalendar
from replaybt.backtest.context import AlgoContext
from replaybt.backtest.core.calendar import TradingCalendar
from replaybt.backtest.core.data import BarData, DataSource
from replaybt.backtest.core.errors import (
    LookAheadError,
    RunAborted,
    StrategyError,
)
from replaybt.backtest.core.events import Fill
from replaybt.backtest.core.types import Asset, Bar
from replaybt.backtest.execution.broker import SimulatedBroker
from replaybt.backtest.orders.cancel_policy import CancelPolicy, CancelPolicyFactory
from replaybt.backtest.orders.registry import OrderRegistry
from replaybt.backtest.portfolio.ledger import Ledger
from replaybt.backtest.result import RunRecord, RunStatus, ValueSample
from replaybt.backtest.strategy.base import Strategy
from replaybt.config.backtest_config import EngineConfig
from replaybt.observability.instrumentation import Instrumentation
from replaybt.utils.datetime_utils import DateTimeUtils
from replaybt.utils.logger import logs

"""
{#!filepath: replaybt/backtest/engine.py}

SimulationEngine (FINAL / FROZEN)

Before the replay:
  - initialize() may swap slippage / commission / cancel policy for this run

Per step (strictly increasing timestamps from the calendar):
  1. data source -> new bars (as-of ts, ascending asset id)
     first step of a new session: cancel policy drops stale open orders
  2. before_trading_start (first step of a session) -> handle_data
  3. orders placed in callbacks -> OrderRegistry (Submitted)
  4. eligible open orders + current bars -> broker -> fills / rejections
  5. each fill -> Ledger -> Registry, ascending order id
  6. Ledger marked to market
  7. (ts, portfolio value) sample appended

Invariants:
- A bar newer than the step timestamp is a LookAheadError.
- A bar already seen for an asset is never current again.
- Steps without any new bar are skipped (no callbacks, no sample).
- Ledger state evolves ONLY by applying Fill events.
- Each run owns its ledger / registry / store; the engine is reusable.

Failure:
- recoverable errors against one order -> that order is Rejected
- anything else -> RunAborted(error, partial record), chained
"""

Cancel = Any


class SimulationEngine:

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        broker: Optional[SimulatedBroker] = None,
        calendar: Optional[TradingCalendar] = None,
        inst: Optional[Instrumentation] = None,
        cancel_policy: Optional[CancelPolicy] = None,
    ):
        self.config = config or EngineConfig()
        self.broker = broker or SimulatedBroker.default()
        self.calendar = calendar or WeekdayCalendar()
        self.inst = inst or Instrumentation()
        self.cancel_policy = cancel_policy or CancelPolicyFactory.create(self.config.cancel_policy)

    # --------------------------------------------------
    # public entry
    # --------------------------------------------------
    def run(
        self,
        strategy: Strategy,
        data_source: DataSource,
        start=None,
        end=None,
        cancel: Cancel = None,
    ) -> RunRecord:
        cfg = self.config
        inst = self.inst
        inst.reset()

        ledger = Ledger(cfg.starting_cash)
        registry = OrderRegistry()
        bar_data = BarData(cfg.history_len)
        values: List[ValueSample] = []
        status = RunStatus.COMPLETED
        label = type(strategy).__name__

        try:
            assets = list(data_source.known_assets())
            known_ids: Set[int] = {a.id for a in assets}
            first, last = self._resolve_range(data_source, start, end)

            ctx = AlgoContext(registry, ledger, bar_data, assets)
            view = bar_data.view()

            logs.info(
                f"[Engine] run start strategy={label} range={first}..{last} "
                f"cash={cfg.starting_cash} freq={cfg.frequency} fill_timing={cfg.fill_timing}"
            )

            with inst.timer("initialize"):
                self._callback("initialize", strategy.initialize, ctx)

            # 本次运行的策略覆盖，引擎自身的 broker 不变
            broker = self.broker.with_policies(ctx._slippage, ctx._commission)
            cancel_policy = ctx._cancel_policy or self.cancel_policy

            # replay bounds wall time; the per-step leaves accumulate
            with inst.timer("replay", record=False):
                step = 0
                last_session: Optional[date] = None
                step_sessions: List[date] = []

                for session, ts in self._clock(first, last):
                    if self._cancel_requested(cancel):
                        status = RunStatus.CANCELLED
                        logs.info(f"[Engine] cancelled before ts={ts} after steps={step}")
                        break

                    with inst.timer("fetch"):
                        new_bars = self._fetch(data_source, ts, bar_data)
                    if not new_bars:
                        continue

                    bar_data.advance(ts, new_bars)
                    ctx._advance(ts, session, step)
                    step_sessions.append(session)

                    if last_session is not None and session != last_session:
                        self._expire_orders(cancel_policy, registry, step_sessions, session, ts)

                    with inst.timer("strategy"):
                        if session != last_session:
                            self._callback("before_trading_start", strategy.before_trading_start, ctx, view)
                            last_session = session
                        self._callback("handle_data", strategy.handle_data, ctx, view)

                    with inst.timer("execution"):
                        self._resolve_orders(broker, step, ts, registry, ledger, bar_data, known_ids)

                    with inst.timer("mark"):
                        ledger.mark_to_market(bar_data.current_prices())
                        values.append(ValueSample(ts, ledger.portfolio_value, ledger.cash))
                    inst.metrics.incr("steps")
                    step += 1

            if status == RunStatus.COMPLETED:
                with inst.timer("analyze"):
                    self._callback("analyze", strategy.analyze, ctx)

            if cfg.reconcile:
                ledger.reconcile()
                logs.debug(f"[Engine] reconcile ok fills={len(ledger.fills)}")

        except Exception as exc:
            record = self._record(ledger, registry, values, RunStatus.FAILED, exc)
            logs.error(f"[Engine] run aborted strategy={label}: {type(exc).__name__}: {exc}")
            raise RunAborted(exc, record) from exc

        record = self._record(ledger, registry, values, status, None)
        logs.info(
            f"[Engine] run {status.value} strategy={label} steps={record.n_steps} "
            f"fills={len(record.fills)} final_value={record.final_value:.2f}"
        )
        inst.generate_timeline_report(label)
        return record

    # --------------------------------------------------
    # clock
    # --------------------------------------------------
    def _resolve_range(self, data_source: DataSource, start, end) -> Tuple[date, date]:
        data_start, data_end = data_source.date_range()
        first = DateTimeUtils.parse(data_start).date()
        last = DateTimeUtils.parse(data_end).date()

        # 以数据覆盖区间为界
        if start is not None:
            first = max(first, DateTimeUtils.to_date(start))
        if end is not None:
            last = min(last, DateTimeUtils.to_date(end))
        return first, last

    def _clock(self, first: date, last: date) -> Iterator[Tuple[date, datetime]]:
        if last < first:
            return
        minute = timedelta(minutes=1)
        for session in self.calendar.sessions_in_range(first, last):
            times = self.calendar.session_times(session)
            if self.config.frequency == "daily":
                yield session, times.close
                continue
            ts = times.open + minute
            while ts <= times.close:
                yield session, ts
                ts += minute

    @staticmethod
    def _cancel_requested(cancel: Cancel) -> bool:
        if cancel is None:
            return False
        is_set = getattr(cancel, "is_set", None)
        if callable(is_set):
            return bool(is_set())
        return bool(cancel())

    # --------------------------------------------------
    # per-step pieces
    # --------------------------------------------------
    @staticmethod
    def _fetch(data_source: DataSource, ts: datetime, bar_data: BarData) -> List[Tuple[Asset, Bar]]:
        fresh: List[Tuple[Asset, Bar]] = []
        for asset, bar in data_source.bars_at(ts):
            if bar.timestamp > ts:
                raise LookAheadError(
                    f"data source returned {asset} bar @ {bar.timestamp} for query ts={ts}"
                )
            seen = bar_data.last_timestamp(asset)
            if seen is not None and bar.timestamp <= seen:
                continue
            fresh.append((asset, bar))
        fresh.sort(key=lambda pair: pair[0].id)
        return fresh

    def _expire_orders(
        self,
        policy: CancelPolicy,
        registry: OrderRegistry,
        step_sessions: List[date],
        session: date,
        ts: datetime,
    ) -> None:
        for order in registry.open_orders():
            if policy.should_cancel(order, step_sessions[order.created_step], session):
                registry.cancel(order.id, ts, reason="cancelled at end of session")
                self.inst.metrics.incr("cancelled")

    def _resolve_orders(
        self,
        broker: SimulatedBroker,
        step: int,
        ts: datetime,
        registry: OrderRegistry,
        ledger: Ledger,
        bar_data: BarData,
        known_ids: Set[int],
    ) -> None:
        orders = registry.eligible(step, next_bar=self.config.fill_timing == "next_bar")
        if not orders:
            return

        def book(fill: Fill) -> None:
            # InsufficientCash propagates to the broker before any mutation
            ledger.apply_fill(fill)
            registry.apply_fill(registry.get(fill.order_id), fill)
            self.inst.metrics.incr("fills")

        resolution = broker.resolve(orders, bar_data.current_bars(), ts, known_ids, on_fill=book)

        for order, error in resolution.rejections:
            registry.reject(order, error, ts)
            self.inst.metrics.incr("rejected")

    @staticmethod
    def _callback(name: str, fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception as exc:
            raise StrategyError(name, exc) from exc

    # --------------------------------------------------
    # record
    # --------------------------------------------------
    def _record(
        self,
        ledger: Ledger,
        registry: OrderRegistry,
        values: List[ValueSample],
        status: RunStatus,
        error: Optional[BaseException],
    ) -> RunRecord:
        return RunRecord(
            starting_cash=ledger.starting_cash,
            values=list(values),
            fills=ledger.fills,
            orders=[o.snapshot() for o in registry.all_orders()],
            final_cash=ledger.cash,
            positions=ledger.snapshot(),
            status=status,
            error=error,
            metrics=self.inst.metrics.snapshot(),
        )
