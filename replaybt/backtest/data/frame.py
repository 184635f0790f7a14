# replaybt/backtest/data/frame.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import pyarrow.parquet as pq

from replaybt.backtest.core.types import Asset, Bar
from replaybt.backtest.data.in_memory import InMemoryDataSource
from replaybt.utils.logger import logs

REQUIRED_COLUMNS: tuple[str, ...] = (
    "timestamp",
    "symbol",
    "open",
    "high",
    "low",
    "close",
    "volume",
)

OPTIONAL_COLUMNS: tuple[str, ...] = (
    "sid",
    "exchange",
)


class FrameDataSource(InMemoryDataSource):
    """
    DataSource built from a long-format frame:

        timestamp | symbol | open | high | low | close | volume [| sid | exchange]

    Without a `sid` column, ids are assigned 1..N in sorted symbol order.
    """

    def __init__(self, df: pd.DataFrame, *, default_exchange: str = "") -> None:
        super().__init__()
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"[FrameDataSource] missing columns: {missing}")

        frame = df.copy()
        frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True)
        frame["symbol"] = frame["symbol"].astype(str)
        frame = frame.sort_values(["timestamp", "symbol"], kind="mergesort")

        assets = self._resolve_assets(frame, default_exchange)

        for row in frame.itertuples(index=False):
            asset = assets[row.symbol]
            self.add_bar(
                asset,
                Bar(
                    timestamp=row.timestamp.to_pydatetime(),
                    open=row.open,
                    high=row.high,
                    low=row.low,
                    close=row.close,
                    volume=row.volume,
                ),
            )

        logs.info(
            f"[FrameDataSource] loaded rows={len(frame)} assets={len(assets)}"
        )

    @staticmethod
    def _resolve_assets(frame: pd.DataFrame, default_exchange: str) -> Dict[str, Asset]:
        symbols = sorted(frame["symbol"].unique())
        if "sid" in frame.columns:
            pairs = frame[["symbol", "sid"]].drop_duplicates()
            if pairs["symbol"].duplicated().any() or pairs["sid"].duplicated().any():
                raise ValueError("[FrameDataSource] symbol <-> sid mapping is not one-to-one")
            sids = {str(s): int(i) for s, i in zip(pairs["symbol"], pairs["sid"])}
        else:
            sids = {s: n for n, s in enumerate(symbols, start=1)}

        exchanges: Dict[str, str] = {}
        if "exchange" in frame.columns:
            for s, ex in frame[["symbol", "exchange"]].drop_duplicates("symbol").itertuples(index=False):
                exchanges[str(s)] = str(ex)

        return {
            s: Asset(id=sids[s], symbol=s, exchange=exchanges.get(s, default_exchange))
            for s in symbols
        }

    # --------------------------------------------------
    # loaders
    # --------------------------------------------------
    @classmethod
    def from_csv(cls, path: str | Path, **kwargs) -> "FrameDataSource":
        return cls(pd.read_csv(path), **kwargs)

    @classmethod
    def from_parquet(cls, path: str | Path, *, columns: Optional[list[str]] = None, **kwargs) -> "FrameDataSource":
        table = pq.read_table(path, columns=columns)
        return cls(table.to_pandas(), **kwargs)

    @classmethod
    def from_path(cls, path: str | Path, **kwargs) -> "FrameDataSource":
        p = Path(path)
        if p.suffix.lower() in {".parquet", ".pq"}:
            return cls.from_parquet(p, **kwargs)
        return cls.from_csv(p, **kwargs)
