# replaybt/backtest/report/artifacts.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict

from replaybt.backtest.report.base import Report, ReportPipeline
from replaybt.backtest.result import RunRecord
from replaybt.utils.logger import logs


class ValueSeriesReport(Report):
    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, record: RunRecord) -> None:
        record.values_frame().to_csv(self._path)


class FillsReport(Report):
    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, record: RunRecord) -> None:
        record.fills_frame().to_csv(self._path, index=False)


class OrdersReport(Report):
    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, record: RunRecord) -> None:
        record.orders_frame().to_csv(self._path, index=False)


class PositionsReport(Report):
    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, record: RunRecord) -> None:
        record.positions_frame().to_csv(self._path, index=False)


class SummaryReport(Report):
    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, record: RunRecord) -> None:
        payload = {**record.summary(), "metrics": record.metrics}
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)


ARTIFACTS: Dict[str, type] = {
    "values.csv": ValueSeriesReport,
    "fills.csv": FillsReport,
    "orders.csv": OrdersReport,
    "positions.csv": PositionsReport,
    "summary.json": SummaryReport,
}


def write_run_artifacts(record: RunRecord, out_dir) -> Dict[str, Path]:
    """
    Write the raw artifacts of one run into `out_dir`.

    Returns {file name: path}.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths = {name: out / name for name in ARTIFACTS}
    ReportPipeline([cls(paths[name]) for name, cls in ARTIFACTS.items()]).render_all(record)

    logs.info(f"[Report] wrote {len(paths)} artifacts to {out}")
    return paths
