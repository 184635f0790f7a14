from replaybt.backtest.data.frame import FrameDataSource
from replaybt.backtest.data.in_memory import InMemoryDataSource

__all__ = ["FrameDataSource", "InMemoryDataSource"]
