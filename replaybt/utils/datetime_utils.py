#!filepath: replaybt/utils/datetime_utils.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone, date, time
from typing import Iterator, Union
from zoneinfo import ZoneInfo

import pandas as pd

TimeLike = Union[int, float, str, date, datetime, pd.Timestamp]


class DateTimeUtils:
    """
    Time normalisation helpers.

    All simulation timestamps are timezone-aware UTC datetimes.
    Naive inputs are interpreted as UTC.
    """

    UTC = timezone.utc

    # ================================================================
    # parse(): str / int epoch / date / datetime / pd.Timestamp -> UTC
    # ================================================================
    @classmethod
    def parse(cls, ts: TimeLike) -> datetime:
        if isinstance(ts, pd.Timestamp):
            ts = ts.to_pydatetime()

        if isinstance(ts, datetime):
            return ts.astimezone(cls.UTC) if ts.tzinfo else ts.replace(tzinfo=cls.UTC)

        if isinstance(ts, date):
            return datetime.combine(ts, time.min, tzinfo=cls.UTC)

        # epoch seconds / ms / us / ns，按位数区分
        if isinstance(ts, (int, float)) and not isinstance(ts, bool):
            digits = len(str(int(abs(ts))))
            if digits <= 10:
                return datetime.fromtimestamp(ts, cls.UTC)
            if digits <= 13:
                return datetime.fromtimestamp(ts / 1_000, cls.UTC)
            if digits <= 16:
                return datetime.fromtimestamp(ts / 1_000_000, cls.UTC)
            return datetime.fromtimestamp(ts / 1_000_000_000, cls.UTC)

        if isinstance(ts, str):
            s = ts.strip()
            try:
                parsed = pd.Timestamp(s)
            except ValueError as exc:
                raise ValueError(f"cannot parse timestamp: {ts!r}") from exc
            if parsed is pd.NaT:
                raise ValueError(f"cannot parse timestamp: {ts!r}")
            return cls.parse(parsed)

        raise TypeError(f"unsupported time type: {type(ts)}")

    @classmethod
    def to_date(cls, ts: TimeLike) -> date:
        if isinstance(ts, date) and not isinstance(ts, datetime):
            return ts
        return cls.parse(ts).date()

    @classmethod
    def parse_time(cls, t: Union[str, time]) -> time:
        """"HH:MM" / "HH:MM:SS" / time -> time"""
        if isinstance(t, time):
            return t
        return time.fromisoformat(str(t).strip())

    @classmethod
    def localize(cls, d: date, t: time, tz: str) -> datetime:
        """Wall-clock time `t` on day `d` in zone `tz`, converted to UTC."""
        return datetime.combine(d, t, tzinfo=ZoneInfo(tz)).astimezone(cls.UTC)

    @classmethod
    def iter_days(cls, start: date, end: date) -> Iterator[date]:
        d = start
        while d <= end:
            yield d
            d += timedelta(days=1)

    @classmethod
    def add_minutes(cls, dt_: TimeLike, minutes: int) -> datetime:
        return cls.parse(dt_) + timedelta(minutes=minutes)

    @classmethod
    def iso(cls, dt_: datetime | None) -> str | None:
        if dt_ is None:
            return None
        return cls.parse(dt_).isoformat().replace("+00:00", "Z")
