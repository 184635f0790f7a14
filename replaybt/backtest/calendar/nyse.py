# replaybt/backtest/calendar/nyse.py
from __future__ import annotations

from datetime import date, time, timedelta
from functools import lru_cache
from typing import FrozenSet

from replaybt.backtest.core.calendar import SessionTimes, TradingCalendar
from replaybt.utils.datetime_utils import DateTimeUtils

_TZ = "America/New_York"
_OPEN = time(9, 30)
_CLOSE = time(16, 0)
_EARLY_CLOSE = time(13, 0)

# 非规则休市（9/11、Sandy、国葬日）
_SPECIAL_CLOSURES = frozenset({
    date(2001, 9, 11), date(2001, 9, 12), date(2001, 9, 13), date(2001, 9, 14),
    date(2004, 6, 11),
    date(2007, 1, 2),
    date(2012, 10, 29), date(2012, 10, 30),
    date(2018, 12, 5),
    date(2025, 1, 9),
})


def _observed(d: date) -> date:
    if d.weekday() == 5:
        return d - timedelta(days=1)
    if d.weekday() == 6:
        return d + timedelta(days=1)
    return d


def _nth_weekday(year: int, month: int, weekday: int, n: int) -> date:
    first = date(year, month, 1)
    offset = (weekday - first.weekday()) % 7
    return first + timedelta(days=offset + 7 * (n - 1))


def _last_weekday(year: int, month: int, weekday: int) -> date:
    nxt = date(year + (month == 12), month % 12 + 1, 1)
    last = nxt - timedelta(days=1)
    return last - timedelta(days=(last.weekday() - weekday) % 7)


def _good_friday(year: int) -> date:
    # Anonymous Gregorian algorithm (Meeus/Jones/Butcher)
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1) - timedelta(days=2)


@lru_cache(maxsize=None)
def _holidays(year: int) -> FrozenSet[date]:
    days = {
        _nth_weekday(year, 1, 0, 3),         # MLK Day
        _nth_weekday(year, 2, 0, 3),         # Presidents Day
        _good_friday(year),
        _last_weekday(year, 5, 0),           # Memorial Day
        _observed(date(year, 7, 4)),         # Independence Day
        _nth_weekday(year, 9, 0, 1),         # Labor Day
        _nth_weekday(year, 11, 3, 4),        # Thanksgiving
        _observed(date(year, 12, 25)),       # Christmas
    }
    # New Year on Saturday is not observed on the prior Friday
    new_year = date(year, 1, 1)
    if new_year.weekday() != 5:
        days.add(_observed(new_year))
    if year >= 2022:
        days.add(_observed(date(year, 6, 19)))  # Juneteenth
    return frozenset(days)


@lru_cache(maxsize=None)
def _early_closes(year: int) -> FrozenSet[date]:
    days = set()
    july3 = date(year, 7, 3)
    if july3.weekday() < 5 and date(year, 7, 4).weekday() != 5:
        days.add(july3)
    days.add(_nth_weekday(year, 11, 3, 4) + timedelta(days=1))  # Black Friday
    xmas_eve = date(year, 12, 24)
    if xmas_eve.weekday() < 5:
        days.add(xmas_eve)
    return frozenset(days)


class NYSECalendar(TradingCalendar):
    """
    Rule-based NYSE sessions: 09:30-16:00 New York, 13:00 on early-close days.
    """

    name = "nyse"
    first_date = date(1990, 1, 1)
    last_date = date(2050, 12, 31)

    def is_holiday(self, d: date) -> bool:
        return d in _holidays(d.year) or d in _SPECIAL_CLOSURES

    def is_early_close(self, d: date) -> bool:
        return d in _early_closes(d.year) and not self.is_holiday(d)

    def _is_session(self, d: date) -> bool:
        return d.weekday() < 5 and not self.is_holiday(d)

    def _session_times(self, d: date) -> SessionTimes:
        early = self.is_early_close(d)
        return SessionTimes(
            open=DateTimeUtils.localize(d, _OPEN, _TZ),
            close=DateTimeUtils.localize(d, _EARLY_CLOSE if early else _CLOSE, _TZ),
            early_close=early,
        )
