# replaybt/backtest/core/types.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime

from replaybt.utils.datetime_utils import DateTimeUtils


@dataclass(frozen=True, order=True)
class Asset:
    """
    Immutable asset identity. Lookup key only.

    Ordering / equality / hash use the integer id alone.
    """
    id: int
    symbol: str = field(compare=False)
    exchange: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"{self.symbol}#{self.id}"


@dataclass(frozen=True)
class Bar:
    """
    One OHLCV sample for one asset at one timestamp.

    Invariants (checked on construction):
      - all prices / volume finite and >= 0
      - high >= max(open, close) >= min(open, close) >= low
      - timestamp is timezone-aware UTC
    """
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", DateTimeUtils.parse(self.timestamp))
        for name in ("open", "high", "low", "close", "volume"):
            v = float(getattr(self, name))
            if not math.isfinite(v) or v < 0.0:
                raise ValueError(f"[Bar] {name} must be finite and >= 0, got {v}")
            object.__setattr__(self, name, v)

        if not (self.high >= max(self.open, self.close)
                and min(self.open, self.close) >= self.low):
            raise ValueError(
                f"[Bar] inconsistent OHLC at {self.timestamp}: "
                f"o={self.open} h={self.high} l={self.low} c={self.close}"
            )

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3.0

    @property
    def range(self) -> float:
        return self.high - self.low
