# replaybt/backtest/calendar/weekday.py
from __future__ import annotations

from datetime import date, time
from typing import Iterable, Optional, Union

from replaybt.backtest.core.calendar import SessionTimes, TradingCalendar
from replaybt.utils.datetime_utils import DateTimeUtils


class WeekdayCalendar(TradingCalendar):
    """
    Monday-Friday sessions with a fixed open / close in one timezone,
    minus an explicit holiday set.
    """

    name = "weekday"

    def __init__(
        self,
        *,
        open_time: Union[time, str] = time(9, 30),
        close_time: Union[time, str] = time(16, 0),
        tz: str = "America/New_York",
        holidays: Optional[Iterable[date]] = None,
        first_date: Optional[date] = None,
        last_date: Optional[date] = None,
    ) -> None:
        open_time = DateTimeUtils.parse_time(open_time)
        close_time = DateTimeUtils.parse_time(close_time)
        if close_time <= open_time:
            raise ValueError("close_time must be after open_time")
        self.open_time = open_time
        self.close_time = close_time
        self.tz = tz
        self._holidays = {DateTimeUtils.to_date(d) for d in (holidays or ())}
        if first_date is not None:
            self.first_date = DateTimeUtils.to_date(first_date)
        if last_date is not None:
            self.last_date = DateTimeUtils.to_date(last_date)

    def add_holiday(self, d: date) -> None:
        self._holidays.add(d)

    def _is_session(self, d: date) -> bool:
        return d.weekday() < 5 and d not in self._holidays

    def _session_times(self, d: date) -> SessionTimes:
        return SessionTimes(
            open=DateTimeUtils.localize(d, self.open_time, self.tz),
            close=DateTimeUtils.localize(d, self.close_time, self.tz),
        )
