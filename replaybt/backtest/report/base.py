# replaybt/backtest/report/base.py
from __future__ import annotations

from abc import ABC, abstractmethod

from replaybt.backtest.result import RunRecord


class Report(ABC):
    """
    Report (FINAL / FROZEN)

    RunRecord -> side effects (files)

    - Reports are read-only consumers of RunRecord.
    - Reports must not alter execution state.
    - Deleting reports must not affect reproducibility.
    """

    @abstractmethod
    def render(self, record: RunRecord) -> None:
        ...


class ReportPipeline:
    def __init__(self, reports: list[Report]):
        self._reports = reports

    def render_all(self, record: RunRecord) -> None:
        for r in self._reports:
            r.render(record)
