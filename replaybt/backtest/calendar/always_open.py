# replaybt/backtest/calendar/always_open.py
from __future__ import annotations

from datetime import date, time

from replaybt.backtest.core.calendar import SessionTimes, TradingCalendar
from replaybt.utils.datetime_utils import DateTimeUtils


class AlwaysOpenCalendar(TradingCalendar):
    """Every day is a session, 00:00 - 23:59 UTC (crypto / synthetic data)."""

    name = "always_open"

    def _is_session(self, d: date) -> bool:
        return True

    def _session_times(self, d: date) -> SessionTimes:
        return SessionTimes(
            open=DateTimeUtils.localize(d, time(0, 0), "UTC"),
            close=DateTimeUtils.localize(d, time(23, 59), "UTC"),
        )
