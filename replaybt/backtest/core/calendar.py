from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

from replaybt.backtest.core.errors import CalendarError

"""
{#!filepath: replaybt/backtest/core/calendar.py}

TradingCalendar (FINAL)

Answers:
- is `d` a trading session?
- when does the session on `d` open / close (UTC)?

Dates outside [first_date, last_date] are unknown to the calendar and
raise CalendarError.
"""

_MAX_SCAN_DAYS = 366


@dataclass(frozen=True)
class SessionTimes:
    open: datetime
    close: datetime
    early_close: bool = False


class TradingCalendar(ABC):
    name: str = "base"
    first_date: date = date(1900, 1, 1)
    last_date: date = date(2100, 12, 31)

    @abstractmethod
    def _is_session(self, d: date) -> bool:
        ...

    @abstractmethod
    def _session_times(self, d: date) -> SessionTimes:
        ...

    # --------------------------------------------------
    def check_bounds(self, d: date) -> None:
        if d < self.first_date or d > self.last_date:
            raise CalendarError(
                f"[{self.name}] {d} outside calendar range "
                f"{self.first_date}..{self.last_date}"
            )

    def is_trading_day(self, d: date) -> bool:
        self.check_bounds(d)
        return self._is_session(d)

    def session_times(self, d: date) -> Optional[SessionTimes]:
        if not self.is_trading_day(d):
            return None
        return self._session_times(d)

    def sessions_in_range(self, start: date, end: date) -> List[date]:
        days: List[date] = []
        d = start
        while d <= end:
            if self.is_trading_day(d):
                days.append(d)
            d += timedelta(days=1)
        return days

    def next_trading_day(self, d: date) -> date:
        cur = d
        for _ in range(_MAX_SCAN_DAYS):
            cur += timedelta(days=1)
            if self.is_trading_day(cur):
                return cur
        raise CalendarError(f"[{self.name}] no trading day within {_MAX_SCAN_DAYS} days after {d}")

    def previous_trading_day(self, d: date) -> date:
        cur = d
        for _ in range(_MAX_SCAN_DAYS):
            cur -= timedelta(days=1)
            if self.is_trading_day(cur):
                return cur
        raise CalendarError(f"[{self.name}] no trading day within {_MAX_SCAN_DAYS} days before {d}")
