# replaybt/backtest/core/errors.py
"""
Error taxonomy of the simulation core.

Recoverable per order (the order is Rejected, the run continues):
    AssetNotFound, InvalidOrder, InsufficientCash, DataUnavailable

Fatal (the run aborts, RunAborted carries the partial record):
    StrategyError, ExecutionError, CalendarError, LookAheadError,
    InvalidTransition, RegistrationError
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from replaybt.backtest.result import RunRecord


class BacktestError(Exception):
    """Base class for every simulation-core error."""

    recoverable: bool = False


# -------------------------
# Recoverable (single order)
# -------------------------
class AssetNotFound(BacktestError):
    recoverable = True


class InvalidOrder(BacktestError):
    recoverable = True


class InsufficientCash(BacktestError):
    recoverable = True

    def __init__(self, required: float, available: float):
        super().__init__(
            f"insufficient cash: required {required:.6f}, available {available:.6f}"
        )
        self.required = required
        self.available = available


class DataUnavailable(BacktestError):
    recoverable = True


# -------------------------
# Fatal
# -------------------------
class CalendarError(BacktestError):
    pass


class ExecutionError(BacktestError):
    pass


class LookAheadError(BacktestError):
    pass


class InvalidTransition(BacktestError):
    pass


class RegistrationError(BacktestError):
    """A run-wide policy was set after initialize() returned."""


class StrategyError(BacktestError):
    """Wraps an exception raised inside a strategy callback."""

    def __init__(self, callback: str, cause: BaseException):
        super().__init__(f"strategy callback {callback}() failed: {cause!r}")
        self.callback = callback
        self.cause = cause


class RunAborted(BacktestError):
    """
    A fatal error stopped the run.

    `record` holds the value series and fill ledger accumulated up to the
    last fully processed step; `error` is the fatal error itself.
    """

    def __init__(self, error: BaseException, record: Optional["RunRecord"]):
        super().__init__(f"run aborted: {error}")
        self.error = error
        self.record = record
