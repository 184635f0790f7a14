from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime
from typing import Deque, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from replaybt.backtest.core.errors import DataUnavailable
from replaybt.backtest.core.types import Asset, Bar

"""
{#!filepath: replaybt/backtest/core/data.py}

DataSource / BarData (FINAL)

DataSource answers ONE question:
- As of time t, what is the latest bar of every asset?

Contract:
- bars_at(ts) MUST NOT return a bar whose timestamp > ts
- known_assets() is the full asset universe of the source
- date_range() is the inclusive (start, end) covered by the source

BarData is the engine-owned observable state (current bars + bounded
history). Strategies only ever see the read-only BarDataView.
"""


class DataSource(ABC):

    @abstractmethod
    def bars_at(self, ts: datetime) -> Sequence[Tuple[Asset, Bar]]:
        """Latest bar per asset with bar.timestamp <= ts."""

    @abstractmethod
    def known_assets(self) -> Sequence[Asset]:
        """Every asset the source can ever return."""

    @abstractmethod
    def date_range(self) -> Tuple[datetime, datetime]:
        """Inclusive (start, end)."""


class BarData:
    """
    Observable market state at the current step.

    - current: bars that are NEW at this step, keyed by asset id
    - history: last `max_history_len` bars per asset (bounded deque)
    """

    def __init__(self, max_history_len: int):
        if max_history_len < 1:
            raise ValueError("max_history_len must be >= 1")
        self._max_history_len = int(max_history_len)
        self._current: Dict[int, Bar] = {}
        self._assets: Dict[int, Asset] = {}
        self._history: Dict[int, Deque[Bar]] = {}
        self._ts: Optional[datetime] = None

    # --------------------------------------------------
    # engine side
    # --------------------------------------------------
    def advance(self, ts: datetime, bars: Iterable[Tuple[Asset, Bar]]) -> None:
        """Replace the current bar set. `bars` must already be in asset id order."""
        self._ts = ts
        self._current = {}
        for asset, bar in bars:
            self._assets[asset.id] = asset
            self._current[asset.id] = bar
            hist = self._history.get(asset.id)
            if hist is None:
                hist = deque(maxlen=self._max_history_len)
                self._history[asset.id] = hist
            hist.append(bar)

    def last_timestamp(self, asset: Asset) -> Optional[datetime]:
        hist = self._history.get(asset.id)
        return hist[-1].timestamp if hist else None

    def current_bars(self) -> Dict[int, Bar]:
        return dict(self._current)

    def current_prices(self) -> Dict[int, float]:
        return {sid: bar.close for sid, bar in self._current.items()}

    def view(self) -> "BarDataView":
        return BarDataView(self)

    # --------------------------------------------------
    # read side (delegated by BarDataView)
    # --------------------------------------------------
    @property
    def timestamp(self) -> Optional[datetime]:
        return self._ts

    @property
    def max_history_len(self) -> int:
        return self._max_history_len

    def assets(self) -> List[Asset]:
        return [self._assets[sid] for sid in sorted(self._current)]

    def has_data(self, asset: Asset) -> bool:
        return asset.id in self._current

    def current(self, asset: Asset) -> Bar:
        bar = self._current.get(asset.id)
        if bar is None:
            raise DataUnavailable(f"no current bar for {asset}")
        return bar

    def history(self, asset: Asset, n: int) -> List[Bar]:
        hist = self._history.get(asset.id)
        if not hist:
            raise DataUnavailable(f"no history for {asset}")
        if n <= 0:
            return []
        return list(hist)[-n:]

    def history_len(self, asset: Asset) -> int:
        hist = self._history.get(asset.id)
        return len(hist) if hist else 0


class BarDataView:
    """
    Read-only snapshot handed to strategy callbacks.

    Exposes current bars (ascending asset id) and bounded history.
    """

    __slots__ = ("_data",)

    def __init__(self, data: BarData):
        self._data = data

    @property
    def timestamp(self) -> Optional[datetime]:
        return self._data.timestamp

    def assets(self) -> List[Asset]:
        return self._data.assets()

    def has_data(self, asset: Asset) -> bool:
        return self._data.has_data(asset)

    can_trade = has_data

    def current(self, asset: Asset) -> Bar:
        return self._data.current(asset)

    def current_price(self, asset: Asset) -> float:
        return self._data.current(asset).close

    def history(self, asset: Asset, n: int) -> List[Bar]:
        return self._data.history(asset, n)

    def history_prices(self, asset: Asset, n: int) -> List[float]:
        return [bar.close for bar in self._data.history(asset, n)]

    def history_len(self, asset: Asset) -> int:
        return self._data.history_len(asset)

    def history_frame(self, asset: Asset, n: int) -> pd.DataFrame:
        """History as a DataFrame indexed by timestamp (OHLCV columns)."""
        bars = self._data.history(asset, n)
        return pd.DataFrame(
            {
                "open": [b.open for b in bars],
                "high": [b.high for b in bars],
                "low": [b.low for b in bars],
                "close": [b.close for b in bars],
                "volume": [b.volume for b in bars],
            },
            index=pd.DatetimeIndex([b.timestamp for b in bars], name="timestamp"),
        )

    def __iter__(self):
        for asset in self._data.assets():
            yield asset, self._data.current(asset)

    def __len__(self) -> int:
        return len(self._data.assets())
