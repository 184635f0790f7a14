from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from replaybt.backtest.core.data import BarData
from replaybt.backtest.core.errors import (
    AssetNotFound,
    DataUnavailable,
    InvalidOrder,
    RegistrationError,
)
from replaybt.backtest.core.events import (
    MARKET,
    LimitOrder,
    Order,
    OrderKind,
    StopLimitOrder,
    StopOrder,
)
from replaybt.backtest.core.types import Asset
from replaybt.backtest.execution.base import CommissionModel, SlippageModel
from replaybt.backtest.execution.factory import CommissionFactory, SlippageFactory
from replaybt.backtest.orders.cancel_policy import CancelPolicy, CancelPolicyFactory
from replaybt.backtest.orders.controls import (
    LongOnly,
    MaxLeverage,
    MaxOrderSize,
    MaxPositionSize,
    RestrictedList,
    TradingControl,
)
from replaybt.backtest.orders.registry import OrderRegistry
from replaybt.backtest.portfolio.ledger import Ledger
from replaybt.backtest.portfolio.view import PortfolioView

"""
{#!filepath: replaybt/backtest/context.py}

AlgoContext (FINAL)

The strategy's only handle on the run:
- order placement (always through the OrderRegistry)
- read-only portfolio
- per-run key/value store
- run-wide policies and trading controls (initialize() only)

Quantities are signed (buy > 0, sell < 0) and not rounded.
Orders placed here never touch the ledger directly.
"""


def _kind(limit_price: Optional[float], stop_price: Optional[float]) -> OrderKind:
    if limit_price is not None and stop_price is not None:
        return StopLimitOrder(stop_price=stop_price, limit_price=limit_price)
    if limit_price is not None:
        return LimitOrder(limit_price=limit_price)
    if stop_price is not None:
        return StopOrder(stop_price=stop_price)
    return MARKET


class AlgoContext:

    def __init__(
        self,
        registry: OrderRegistry,
        ledger: Ledger,
        data: BarData,
        assets: Sequence[Asset] = (),
    ):
        self._registry = registry
        self._ledger = ledger
        self._data = data
        self._portfolio = PortfolioView(ledger)
        self._by_symbol: Dict[str, Asset] = {a.symbol: a for a in assets}
        self._store: Dict[str, Any] = {}

        self._ts: Optional[datetime] = None
        self._session: Optional[date] = None
        self._step: int = -1

        # initialize() 内设置，引擎在回放前读取
        self._controls: List[TradingControl] = []
        self._slippage: Optional[SlippageModel] = None
        self._commission: Optional[CommissionModel] = None
        self._cancel_policy: Optional[CancelPolicy] = None

    # --------------------------------------------------
    # engine side
    # --------------------------------------------------
    def _advance(self, ts: datetime, session: date, step: int) -> None:
        self._ts = ts
        self._session = session
        self._step = step

    # --------------------------------------------------
    # clock / state
    # --------------------------------------------------
    @property
    def timestamp(self) -> Optional[datetime]:
        return self._ts

    @property
    def session(self) -> Optional[date]:
        return self._session

    @property
    def step(self) -> int:
        return self._step

    @property
    def portfolio(self) -> PortfolioView:
        return self._portfolio

    def symbol(self, symbol: str) -> Asset:
        asset = self._by_symbol.get(symbol)
        if asset is None:
            raise AssetNotFound(f"unknown symbol: {symbol}")
        return asset

    # --------------------------------------------------
    # user store
    # --------------------------------------------------
    def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._store.get(key, default)

    # --------------------------------------------------
    # run-wide policies (initialize only)
    # --------------------------------------------------
    def _require_setup(self, name: str) -> None:
        if self._ts is not None:
            raise RegistrationError(f"{name}() can only be called from initialize()")

    def set_slippage(self, model: Union[SlippageModel, Mapping[str, Any]]) -> None:
        self._require_setup("set_slippage")
        self._slippage = model if isinstance(model, SlippageModel) else SlippageFactory.create(model)

    def set_commission(self, model: Union[CommissionModel, Mapping[str, Any]]) -> None:
        self._require_setup("set_commission")
        self._commission = (
            model if isinstance(model, CommissionModel) else CommissionFactory.create(model)
        )

    def set_cancel_policy(self, policy: Union[CancelPolicy, str]) -> None:
        self._require_setup("set_cancel_policy")
        self._cancel_policy = CancelPolicyFactory.create(policy)

    def add_trading_control(self, control: TradingControl) -> None:
        self._require_setup("add_trading_control")
        self._controls.append(control)

    def set_max_order_size(self, max_shares: Optional[float] = None,
                           max_notional: Optional[float] = None) -> None:
        self.add_trading_control(MaxOrderSize(max_shares, max_notional))

    def set_max_position_size(self, max_shares: Optional[float] = None,
                              max_notional: Optional[float] = None) -> None:
        self.add_trading_control(MaxPositionSize(max_shares, max_notional))

    def set_long_only(self) -> None:
        self.add_trading_control(LongOnly())

    def set_do_not_order_list(self, assets: Iterable[Asset]) -> None:
        self.add_trading_control(RestrictedList(assets))

    def set_max_leverage(self, max_leverage: float) -> None:
        self.add_trading_control(MaxLeverage(max_leverage))

    def _check_controls(self, order: Order) -> None:
        if not self._controls:
            return
        price = self._data.current(order.asset).close if self._data.has_data(order.asset) else None
        for control in self._controls:
            control.validate(order, price, self._portfolio)

    # --------------------------------------------------
    # order placement
    # --------------------------------------------------
    def order(
        self,
        asset: Asset,
        quantity: float,
        limit_price: Optional[float] = None,
        stop_price: Optional[float] = None,
    ) -> int:
        """
        Submit an order; returns its id.

        Invalid requests (zero / non-finite quantity, bad prices) and orders
        breaking a trading control are still assigned an id and come back
        already Rejected.
        """
        if self._ts is None:
            raise InvalidOrder("orders can only be placed once the replay has started")
        order = self._registry.create(
            asset,
            quantity,
            _kind(limit_price, stop_price),
            self._ts,
            step=self._step,
            validate=self._check_controls,
        )
        return order.id

    def order_target(
        self,
        asset: Asset,
        target: float,
        limit_price: Optional[float] = None,
        stop_price: Optional[float] = None,
    ) -> Optional[int]:
        """Order the difference to `target`; None when already there."""
        delta = target - self._portfolio.quantity(asset)
        if delta == 0:
            return None
        return self.order(asset, delta, limit_price, stop_price)

    def order_value(self, asset: Asset, value: float, **prices) -> int:
        return self.order(asset, value / self._price(asset), **prices)

    def order_percent(self, asset: Asset, percent: float, **prices) -> int:
        value = self._portfolio.portfolio_value * percent
        return self.order_value(asset, value, **prices)

    def order_target_value(self, asset: Asset, target_value: float, **prices) -> Optional[int]:
        return self.order_target(asset, target_value / self._price(asset), **prices)

    def order_target_percent(self, asset: Asset, target_percent: float, **prices) -> Optional[int]:
        value = self._portfolio.portfolio_value * target_percent
        return self.order_target_value(asset, value, **prices)

    def _price(self, asset: Asset) -> float:
        # DataUnavailable 直接抛给策略
        px = self._data.current(asset).close
        if px <= 0:
            raise DataUnavailable(f"cannot size an order for {asset} at price {px}")
        return px

    # --------------------------------------------------
    # order queries
    # --------------------------------------------------
    def cancel_order(self, order_id: int) -> None:
        self._registry.cancel(order_id, self._ts)

    def get_order(self, order_id: int) -> Optional[Order]:
        order = self._registry.get(order_id)
        return order.snapshot() if order is not None else None

    def get_open_orders(self, asset: Optional[Asset] = None) -> List[Order]:
        return [o.snapshot() for o in self._registry.open_orders(asset)]
