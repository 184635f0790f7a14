#!filepath: tests/observability/test_instrumentation.py

import time

from loguru import logger

from replaybt.observability.instrumentation import Instrumentation
from replaybt.observability.timeline_reporter import TimelineReporter


def test_instrumentation_timer():
    inst = Instrumentation(enabled=True)

    with inst.timer("initialize"):
        time.sleep(0.01)

    assert "initialize" in inst.timeline
    assert inst.timeline["initialize"] > 0


def test_repeated_leaf_accumulates():
    inst = Instrumentation(enabled=True)

    for _ in range(4):
        with inst.timer("strategy"):
            time.sleep(0.001)

    assert list(inst.timeline) == ["strategy"]
    assert inst.laps["strategy"] == 4
    assert inst.timeline["strategy"] >= 0.004


def test_unrecorded_timer_leaves_timeline_empty():
    inst = Instrumentation(enabled=True)

    with inst.timer("replay", record=False):
        pass

    assert inst.timeline == {}


def test_reset_clears_everything():
    inst = Instrumentation(enabled=True)
    with inst.timer("fetch"):
        pass
    inst.metrics.incr("steps")

    inst.reset()

    assert inst.timeline == {}
    assert inst.laps == {}
    assert inst.metrics.snapshot() == {}


def test_disabled_instrumentation_is_inert():
    inst = Instrumentation(enabled=False)

    with inst.timer("replay"):
        pass
    inst.metrics.incr("steps")

    assert inst.timeline == {}
    assert inst.metrics.metrics == {}


def test_timeline_log_output():
    reporter = TimelineReporter(
        {"initialize": 0.5, "execution": 1.5}, "BuyAndHoldStrategy", laps={"execution": 250}
    )

    captured = []

    # 临时添加一个 sink 捕获 Loguru 输出
    sink_id = logger.add(lambda msg: captured.append(str(msg)))
    reporter.print()
    logger.remove(sink_id)

    output = "\n".join(captured)

    assert "Run timeline for BuyAndHoldStrategy" in output
    assert "execution" in output
    assert "1.500s" in output
    assert "x250" in output
    assert "75.0%" in output
    assert "2.000s" in output


def test_engine_run_fills_timeline(engine_with_inst):
    inst, run = engine_with_inst
    record = run()

    assert list(inst.timeline) == ["initialize", "fetch", "strategy", "execution", "mark", "analyze"]
    assert inst.laps["strategy"] == 2
    assert record.metrics["steps"] == 2
