# tests/backtest/data/test_data_sources.py
from __future__ import annotations

from datetime import timedelta

import pandas as pd
import pytest

from replaybt.backtest.core.data import BarData
from replaybt.backtest.core.errors import DataUnavailable
from replaybt.backtest.core.types import Asset
from replaybt.backtest.data.frame import FrameDataSource
from replaybt.backtest.data.in_memory import InMemoryDataSource


# --------------------------------------------------
# InMemoryDataSource
# --------------------------------------------------
def test_bars_at_is_as_of_and_sorted(aaa, bbb, day, make_bar):
    src = InMemoryDataSource()
    src.add_bar(bbb, make_bar(day(1), 20.0))
    src.add_bar(aaa, make_bar(day(3), 11.0))
    src.add_bar(aaa, make_bar(day(1), 10.0))

    assert src.bars_at(day(0)) == []

    got = src.bars_at(day(2) + timedelta(hours=12))
    assert [a.id for a, _ in got] == [1, 2]
    assert [b.close for _, b in got] == [10.0, 20.0]

    got = src.bars_at(day(3))
    assert [b.close for _, b in got] == [11.0, 20.0]


def test_duplicate_timestamp_replaces(aaa, day, make_bar):
    src = InMemoryDataSource()
    src.add_bar(aaa, make_bar(day(1), 10.0))
    src.add_bar(aaa, make_bar(day(1), 12.0))

    assert len(src) == 1
    assert src.bars_at(day(1))[0][1].close == 12.0


def test_date_range(aaa, bbb, day, make_bar):
    src = InMemoryDataSource()
    with pytest.raises(ValueError):
        src.date_range()

    src.add_bar(aaa, make_bar(day(2), 1.0))
    src.add_bar(bbb, make_bar(day(5), 1.0))
    assert src.date_range() == (day(2), day(5))

    src.set_date_range("2024-01-03", "2024-01-04")
    assert src.date_range() == (day(2), day(3))


def test_sid_conflict(aaa):
    src = InMemoryDataSource()
    src.add_asset(aaa)

    with pytest.raises(ValueError):
        src.add_asset(Asset(aaa.id, "OTHER"))


# --------------------------------------------------
# FrameDataSource
# --------------------------------------------------
@pytest.fixture
def frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "timestamp": ["2024-01-02", "2024-01-02", "2024-01-03", "2024-01-03"],
            "symbol": ["BBB", "AAA", "BBB", "AAA"],
            "open": [20.0, 10.0, 21.0, 11.0],
            "high": [21.0, 11.0, 22.0, 12.0],
            "low": [19.0, 9.0, 20.0, 10.0],
            "close": [20.5, 10.5, 21.5, 11.5],
            "volume": [1000, 2000, 1000, 2000],
        }
    )


def test_frame_assigns_sids_by_symbol(frame):
    src = FrameDataSource(frame, default_exchange="XNYS")

    assets = src.known_assets()
    assert [(a.id, a.symbol) for a in assets] == [(1, "AAA"), (2, "BBB")]
    assert all(a.exchange == "XNYS" for a in assets)
    assert len(src) == 4


def test_frame_honours_sid_column(frame):
    frame["sid"] = frame["symbol"].map({"AAA": 10, "BBB": 5})

    src = FrameDataSource(frame)

    assert [(a.id, a.symbol) for a in src.known_assets()] == [(5, "BBB"), (10, "AAA")]


def test_frame_missing_columns(frame):
    with pytest.raises(ValueError, match="missing columns"):
        FrameDataSource(frame.drop(columns=["volume"]))


def test_frame_from_csv_and_parquet(frame, tmp_path):
    csv_path = tmp_path / "bars.csv"
    pq_path = tmp_path / "bars.parquet"
    frame.to_csv(csv_path, index=False)
    frame.to_parquet(pq_path, index=False)

    for src in (FrameDataSource.from_path(csv_path), FrameDataSource.from_path(pq_path)):
        start, end = src.date_range()
        assert start.isoformat() == "2024-01-02T00:00:00+00:00"
        assert end.isoformat() == "2024-01-03T00:00:00+00:00"
        last = dict((a.symbol, b.close) for a, b in src.bars_at(end))
        assert last == {"AAA": 11.5, "BBB": 21.5}


# --------------------------------------------------
# BarData
# --------------------------------------------------
def test_bar_data_history_is_bounded(aaa, bbb, day, make_bar):
    data = BarData(max_history_len=2)
    for n, px in enumerate([10.0, 11.0, 12.0], start=1):
        data.advance(day(n), [(aaa, make_bar(day(n), px))])

    view = data.view()
    assert view.history_prices(aaa, 5) == [11.0, 12.0]
    assert view.history_len(aaa) == 2
    assert view.current_price(aaa) == 12.0
    assert data.last_timestamp(aaa) == day(3)

    assert not view.has_data(bbb)
    with pytest.raises(DataUnavailable):
        view.current(bbb)

    frame = view.history_frame(aaa, 2)
    assert list(frame.columns) == ["open", "high", "low", "close", "volume"]
    assert frame["close"].tolist() == [11.0, 12.0]


def test_bar_data_current_only_holds_latest_step(aaa, bbb, day, make_bar):
    data = BarData(max_history_len=5)
    data.advance(day(1), [(aaa, make_bar(day(1), 10.0)), (bbb, make_bar(day(1), 20.0))])
    data.advance(day(2), [(aaa, make_bar(day(2), 11.0))])

    view = data.view()
    assert [a.id for a in view.assets()] == [aaa.id]
    assert len(view) == 1
    assert [(a.id, b.close) for a, b in view] == [(1, 11.0)]
    assert view.history_prices(bbb, 1) == [20.0]


def test_bar_data_rejects_zero_history():
    with pytest.raises(ValueError):
        BarData(0)
