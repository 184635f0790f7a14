#!filepath: tests/observability/test_metrics.py

from replaybt.observability.metrics import MetricRecorder


def test_metric_record():
    m = MetricRecorder(enabled=True)
    m.record("final_value", 101_000.0)

    assert m.metrics["final_value"] == 101_000.0


def test_metric_incr():
    m = MetricRecorder(enabled=True)
    m.incr("fills")
    m.incr("fills", by=2)

    assert m.metrics["fills"] == 3


def test_metric_disabled():
    m = MetricRecorder(enabled=False)
    m.record("x", 1)
    m.incr("steps")

    # Nothing should be recorded
    assert m.metrics == {}


def test_snapshot_is_a_copy():
    m = MetricRecorder(enabled=True)
    m.incr("fills")
    snap = m.snapshot()
    m.incr("fills")

    assert snap == {"fills": 1}
    assert m.get("fills") == 2
    assert m.get("rejected") == 0
