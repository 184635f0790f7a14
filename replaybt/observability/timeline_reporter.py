#!filepath: replaybt/observability/timeline_reporter.py
from typing import Dict, Optional

from replaybt.utils.logger import logs


class TimelineReporter:
    """
    Run timeline report (cold path, once per run):

        phase | total seconds | laps | share of the run
    """

    def __init__(self, timeline: Dict[str, float], label: str, laps: Optional[Dict[str, int]] = None):
        self.timeline = timeline
        self.label = label
        self.laps = laps or {}

    def lines(self) -> list[str]:
        total = sum(self.timeline.values())
        out = [f"[Timeline] ===== Run timeline for {self.label} ====="]
        for name, sec in self.timeline.items():
            share = sec / total * 100 if total > 0 else 0.0
            out.append(
                f"[Timeline] {str(name):<20} {sec:>8.3f}s  x{self.laps.get(name, 1):<7} {share:>5.1f}%"
            )
        out.append(f"[Timeline] Total{'':<15} {total:>8.3f}s")
        out.append("[Timeline] ===========================================")
        return out

    def print(self):
        for line in self.lines():
            logs.info(line)
