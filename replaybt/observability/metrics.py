#!filepath: replaybt/observability/metrics.py
from dataclasses import dataclass, field
from typing import Dict, Any

from replaybt.utils.logger import logs


@dataclass
class MetricRecorder:
    """
    Run counters (steps / fills / rejected ...) and one-off values.

    incr() sits on the replay hot path and never logs.
    """

    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        self.metrics[name] = value
        logs.debug(f"[Metric] {name} = {value}")

    def incr(self, name: str, by: int = 1):
        if not self.enabled:
            return
        self.metrics[name] = self.metrics.get(name, 0) + by

    def get(self, name: str, default: Any = 0) -> Any:
        return self.metrics.get(name, default)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.metrics)

    def reset(self):
        self.metrics.clear()
