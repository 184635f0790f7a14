#!filepath: tests/utils/test_logger.py
import pytest
from loguru import logger

from replaybt.config.log_config import LogConfig
from replaybt.utils.logger import Logging, init_logging, logs


@pytest.fixture
def captured():
    lines = []
    sink_id = logger.add(lambda msg: lines.append(str(msg)))
    yield lines
    logger.remove(sink_id)


def test_catch_logs_and_reraises(captured):
    @logs.catch(msg="replay failed", log_time=False)
    def boom():
        raise RuntimeError("x")

    with pytest.raises(RuntimeError):
        boom()

    assert any("replay failed" in line for line in captured)


def test_catch_logs_time(captured):
    @logs.catch()
    def ok():
        return 42

    assert ok() == 42
    assert any("[TIME] ok" in line for line in captured)


def test_init_logging_file_sink(tmp_path):
    log = init_logging(LogConfig(dir=str(tmp_path / "logs"), level="DEBUG"))

    assert isinstance(log, Logging)
    assert log.level == "DEBUG"
    assert (tmp_path / "logs").is_dir()
    logger.remove()
