#!filepath: replaybt/observability/instrumentation.py
from __future__ import annotations

from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict

from replaybt.observability.metrics import MetricRecorder
from replaybt.observability.timeline_reporter import TimelineReporter
from replaybt.observability.timer import Timer


@dataclass
class Instrumentation:
    """
    Phase timers + run counters for one engine.

    Rules:
    1. Timeline records leaf timers only (record=True); a leaf timed on
       every step accumulates into one entry.
    2. record=False timers only bound wall time, no side effects.
    3. Instrumentation never logs on the hot path.
    4. reset() at the start of every run; nothing leaks between runs.
    """

    enabled: bool = True

    def __post_init__(self):
        self._timer = Timer(enabled=self.enabled)
        self.metrics = MetricRecorder(enabled=self.enabled)

        # timeline: OrderedDict[leaf_name, accumulated seconds]
        self.timeline: Dict[str, float] = OrderedDict()

    def reset(self):
        self._timer.reset()
        self.metrics.reset()
        self.timeline.clear()

    @property
    def laps(self) -> Dict[str, int]:
        return dict(self._timer.laps)

    # ---------------------------------------------------------
    # Context Manager Timer（唯一入口）
    # ---------------------------------------------------------
    def timer(self, name: str, *, record: bool = True):
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            inst._timer.start(name)
            try:
                yield
            finally:
                inst._timer.end(name)
                if record:
                    inst.timeline[name] = inst._timer.totals[name]

        return _ctx()

    # ---------------------------------------------------------
    # Timeline output (cold path)
    # ---------------------------------------------------------
    def generate_timeline_report(self, label: str):
        if not self.enabled:
            return
        TimelineReporter(self.timeline, label, self.laps).print()
