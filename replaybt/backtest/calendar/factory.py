# replaybt/backtest/calendar/factory.py
from __future__ import annotations

from typing import Any, Dict, Type

from replaybt.backtest.calendar.always_open import AlwaysOpenCalendar
from replaybt.backtest.calendar.nyse import NYSECalendar
from replaybt.backtest.calendar.weekday import WeekdayCalendar
from replaybt.backtest.core.calendar import TradingCalendar


class CalendarFactory:
    """
    Registry-based calendar construction.

    All calendars are registered here explicitly; adding one is a
    deliberate code change.
    """

    _REGISTRY: Dict[str, Type[TradingCalendar]] = {
        "nyse": NYSECalendar,
        "weekday": WeekdayCalendar,
        "always_open": AlwaysOpenCalendar,
    }

    @classmethod
    def create(cls, name: str, **params: Any) -> TradingCalendar:
        if name not in cls._REGISTRY:
            raise ValueError(f"[CalendarFactory] unknown calendar: {name}")
        return cls._REGISTRY[name](**params)
