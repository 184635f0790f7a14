from replaybt.backtest.report.artifacts import (
    FillsReport,
    OrdersReport,
    PositionsReport,
    SummaryReport,
    ValueSeriesReport,
    write_run_artifacts,
)
from replaybt.backtest.report.base import Report, ReportPipeline

__all__ = [
    "Report",
    "ReportPipeline",
    "ValueSeriesReport",
    "FillsReport",
    "OrdersReport",
    "PositionsReport",
    "SummaryReport",
    "write_run_artifacts",
]
