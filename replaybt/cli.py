#!filepath: replaybt/cli.py
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.table import Table

from replaybt import __version__
from replaybt.backtest.core.errors import RunAborted
from replaybt.backtest.data.frame import FrameDataSource
from replaybt.backtest.report.artifacts import write_run_artifacts
from replaybt.backtest.result import RunRecord
from replaybt.backtest.runner import run_backtest
from replaybt.config.app_config import AppConfig
from replaybt.utils.datetime_utils import DateTimeUtils
from replaybt.utils.errors import UserInputError
from replaybt.utils.logger import init_logging

app = typer.Typer(help="replaybt backtest CLI")


@app.command()
def version():
    print(f"v{__version__}")


def _load(config: Optional[Path], data: Path) -> tuple[AppConfig, FrameDataSource]:
    if not data.exists():
        raise UserInputError(f"data file not found: {data}", hint="--data expects a CSV or parquet bars file")
    try:
        cfg = AppConfig.load(str(config) if config else None)
    except FileNotFoundError as exc:
        raise UserInputError(str(exc)) from exc
    except ValidationError as exc:
        raise UserInputError(f"invalid config: {exc.error_count()} error(s)\n{exc}") from exc

    try:
        source = FrameDataSource.from_path(data)
    except (ValueError, KeyError) as exc:
        raise UserInputError(
            f"cannot load bars from {data}: {exc}",
            hint="columns: timestamp,symbol,open,high,low,close,volume[,sid,exchange]",
        ) from exc
    return cfg, source


def _check_date(name: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        DateTimeUtils.to_date(value)
    except (ValueError, TypeError) as exc:
        raise UserInputError(f"--{name}: not a date: {value!r}", hint="use YYYY-MM-DD") from exc
    return value


def _summary_table(record: RunRecord) -> Table:
    table = Table(title="Run summary")
    table.add_column("field")
    table.add_column("value", justify="right")
    for key, value in record.summary().items():
        if isinstance(value, float):
            value = f"{value:,.2f}"
        table.add_row(key, str(value))
    return table


@app.command()
def run(
    data: Path = typer.Option(..., "--data", help="bars file (CSV or parquet)"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML config (default: packaged base.yml)"),
    out: Optional[Path] = typer.Option(None, "--out", help="directory for run artifacts"),
    start: Optional[str] = typer.Option(None, "--start", help="YYYY-MM-DD"),
    end: Optional[str] = typer.Option(None, "--end", help="YYYY-MM-DD"),
):
    """
    回放历史数据运行一次回测
    """
    try:
        start = _check_date("start", start)
        end = _check_date("end", end)
        cfg, source = _load(config, data)
        init_logging(cfg.log)

        print(f"[green]Running backtest {cfg.backtest.name} on {data}[/green]")
        record = run_backtest(cfg, source, start=start, end=end)
    except UserInputError as exc:
        print(f"[red]Error:[/red] {exc}")
        if exc.hint:
            print(f"[yellow]Hint:[/yellow] {exc.hint}")
        raise typer.Exit(code=2)
    except RunAborted as exc:
        print(f"[red]Run aborted:[/red] {type(exc.error).__name__}: {exc.error}")
        if out is not None and exc.record is not None:
            write_run_artifacts(exc.record, out)
        raise typer.Exit(code=1)

    print(_summary_table(record))

    if out is not None:
        paths = write_run_artifacts(record, out)
        print(f"[blue]Artifacts written to {out} ({len(paths)} files)[/blue]")


if __name__ == "__main__":
    app()

# python -m replaybt.cli run --data bars.csv --config my.yml --out runs/demo
