"""
Core World Model (FINAL)

Defines WHAT the world is, independent of any strategy or engine.

Invariants:
- Time is a timezone-aware UTC datetime.
- Bars, Fills and Assets are immutable facts.
- Orders evolve only through the closed status transition table.
- Ledger state evolves ONLY by applying Fills.
- BarData defines all observable facts at time t.

Core explicitly does NOT:
- Perform IO or data loading
- Contain strategy or execution logic
- Decide how or when time advances
"""
from replaybt.backtest.core.calendar import SessionTimes, TradingCalendar
from replaybt.backtest.core.data import BarData, BarDataView, DataSource
from replaybt.backtest.core.errors import (
    AssetNotFound,
    BacktestError,
    CalendarError,
    DataUnavailable,
    ExecutionError,
    InsufficientCash,
    InvalidOrder,
    InvalidTransition,
    LookAheadError,
    RegistrationError,
    RunAborted,
    StrategyError,
)
from replaybt.backtest.core.events import (
    Fill,
    LimitOrder,
    MarketOrder,
    Order,
    OrderKind,
    OrderStatus,
    StopLimitOrder,
    StopOrder,
)
from replaybt.backtest.core.types import Asset, Bar

__all__ = [
    "Asset", "Bar",
    "Order", "OrderKind", "OrderStatus", "Fill",
    "MarketOrder", "LimitOrder", "StopOrder", "StopLimitOrder",
    "DataSource", "BarData", "BarDataView",
    "TradingCalendar", "SessionTimes",
    "BacktestError", "AssetNotFound", "InvalidOrder", "InsufficientCash",
    "DataUnavailable", "CalendarError", "ExecutionError", "LookAheadError",
    "InvalidTransition", "RegistrationError", "StrategyError", "RunAborted",
]
