#!filepath: replaybt/observability/timer.py
import time
from typing import Dict


class Timer:
    """
    累计计时器（按名称）

    A name may be started / ended many times, one lap per replay step.
    end(name) returns the lap; totals / laps keep adding up until reset().
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._open: Dict[str, float] = {}
        self.totals: Dict[str, float] = {}
        self.laps: Dict[str, int] = {}

    def start(self, name: str):
        if not self.enabled:
            return
        self._open[name] = time.perf_counter()

    def end(self, name: str) -> float:
        if not self.enabled or name not in self._open:
            return 0.0
        lap = time.perf_counter() - self._open.pop(name)
        self.totals[name] = self.totals.get(name, 0.0) + lap
        self.laps[name] = self.laps.get(name, 0) + 1
        return lap

    def reset(self):
        self._open.clear()
        self.totals.clear()
        self.laps.clear()
