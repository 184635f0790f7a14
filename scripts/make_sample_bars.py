#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np
import pandas as pd

from replaybt.backtest.calendar.weekday import WeekdayCalendar
from replaybt.utils.datetime_utils import DateTimeUtils


# =============================================================================
# 配置
# =============================================================================
SYMBOLS = ["AAPL", "MSFT", "SPY"]
START_PRICE = 100.0
DAILY_VOL = 0.02
RANDOM_SEED = 42


# =============================================================================
# 核心逻辑
# =============================================================================
def random_walk_bars(symbols, start: str, end: str, seed: int = RANDOM_SEED) -> pd.DataFrame:
    """
    Geometric random walk, one bar per weekday session, long format:
        timestamp | symbol | open | high | low | close | volume
    """
    rng = np.random.default_rng(seed)
    sessions = list(
        WeekdayCalendar().sessions_in_range(DateTimeUtils.to_date(start), DateTimeUtils.to_date(end))
    )
    n = len(sessions)

    frames = []
    for symbol in symbols:
        close = START_PRICE * np.exp(np.cumsum(rng.normal(0.0, DAILY_VOL, n)))
        open_ = np.concatenate([[START_PRICE], close[:-1]])
        wick = np.abs(rng.normal(0.0, DAILY_VOL / 2, n)) * close
        frames.append(
            pd.DataFrame(
                {
                    "timestamp": [d.isoformat() for d in sessions],
                    "symbol": symbol,
                    "open": open_.round(4),
                    "high": (np.maximum(open_, close) + wick).round(4),
                    "low": (np.minimum(open_, close) - wick).round(4),
                    "close": close.round(4),
                    "volume": rng.integers(100_000, 5_000_000, n),
                }
            )
        )
    return pd.concat(frames, ignore_index=True).sort_values(["timestamp", "symbol"])


def main():
    parser = argparse.ArgumentParser(description="write synthetic daily bars for replaybt")
    parser.add_argument("--out", default="bars.csv")
    parser.add_argument("--start", default="2023-01-02")
    parser.add_argument("--end", default="2023-12-29")
    parser.add_argument("--seed", type=int, default=RANDOM_SEED)
    args = parser.parse_args()

    df = random_walk_bars(SYMBOLS, args.start, args.end, args.seed)
    out = Path(args.out)
    df.to_csv(out, index=False)
    print(f"[SAMPLE] wrote {len(df)} rows ({len(SYMBOLS)} symbols) -> {out}")


if __name__ == "__main__":
    main()
