#!filepath: tests/observability/test_timer.py
import time

from replaybt.observability.timer import Timer


def test_timer_measures_elapsed():
    t = Timer(enabled=True)
    t.start("replay")
    time.sleep(0.005)

    assert t.end("replay") > 0


def test_laps_accumulate_per_name():
    t = Timer(enabled=True)
    laps = []
    for _ in range(3):
        t.start("execution")
        laps.append(t.end("execution"))

    assert t.laps["execution"] == 3
    assert abs(t.totals["execution"] - sum(laps)) < 1e-12

    t.reset()
    assert t.totals == {} and t.laps == {}


def test_timer_unknown_or_disabled_returns_zero():
    assert Timer(enabled=True).end("never_started") == 0.0

    t = Timer(enabled=False)
    t.start("x")
    assert t.end("x") == 0.0
    assert t.laps == {}
