# replaybt/backtest/data/in_memory.py
from __future__ import annotations

import bisect
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from replaybt.backtest.core.data import DataSource
from replaybt.backtest.core.types import Asset, Bar
from replaybt.utils.datetime_utils import DateTimeUtils
from replaybt.utils.logger import logs


class InMemoryDataSource(DataSource):
    """
    Bars held in memory, per asset sorted by timestamp.

    bars_at(ts) is an as-of lookup: for each asset, the latest bar with
    bar.timestamp <= ts (bisect). Output is in ascending asset id.
    """

    def __init__(self) -> None:
        self._assets: Dict[int, Asset] = {}
        self._times: Dict[int, List[datetime]] = {}
        self._bars: Dict[int, List[Bar]] = {}
        self._range: Optional[Tuple[datetime, datetime]] = None

    # --------------------------------------------------
    # building
    # --------------------------------------------------
    def add_asset(self, asset: Asset) -> None:
        known = self._assets.get(asset.id)
        if known is not None and known.symbol != asset.symbol:
            raise ValueError(f"[InMemoryDataSource] sid {asset.id} already bound to {known.symbol}")
        self._assets[asset.id] = asset
        self._times.setdefault(asset.id, [])
        self._bars.setdefault(asset.id, [])

    def add_bar(self, asset: Asset, bar: Bar) -> None:
        if asset.id not in self._assets:
            self.add_asset(asset)

        times = self._times[asset.id]
        bars = self._bars[asset.id]
        i = bisect.bisect_left(times, bar.timestamp)
        if i < len(times) and times[i] == bar.timestamp:
            # 同一时刻重复 bar：后写覆盖
            logs.debug(f"[InMemoryDataSource] replace bar {asset} @ {bar.timestamp}")
            bars[i] = bar
            return
        times.insert(i, bar.timestamp)
        bars.insert(i, bar)

    def add_bars(self, asset: Asset, bars: Sequence[Bar]) -> None:
        for bar in bars:
            self.add_bar(asset, bar)

    def set_date_range(self, start, end) -> None:
        start, end = DateTimeUtils.parse(start), DateTimeUtils.parse(end)
        if end < start:
            raise ValueError("[InMemoryDataSource] end before start")
        self._range = (start, end)

    # --------------------------------------------------
    # DataSource contract
    # --------------------------------------------------
    def bars_at(self, ts: datetime) -> List[Tuple[Asset, Bar]]:
        out: List[Tuple[Asset, Bar]] = []
        for sid in sorted(self._assets):
            times = self._times[sid]
            i = bisect.bisect_right(times, ts)
            if i == 0:
                continue
            out.append((self._assets[sid], self._bars[sid][i - 1]))
        return out

    def known_assets(self) -> List[Asset]:
        return [self._assets[sid] for sid in sorted(self._assets)]

    def date_range(self) -> Tuple[datetime, datetime]:
        if self._range is not None:
            return self._range
        firsts = [t[0] for t in self._times.values() if t]
        lasts = [t[-1] for t in self._times.values() if t]
        if not firsts:
            raise ValueError("[InMemoryDataSource] empty source has no date range")
        return min(firsts), max(lasts)

    def __len__(self) -> int:
        return sum(len(b) for b in self._bars.values())
