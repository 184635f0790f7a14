from replaybt.config.app_config import AppConfig
from replaybt.config.backtest_config import (
    BacktestConfig,
    BrokerConfig,
    EngineConfig,
    PolicySpec,
)
from replaybt.config.log_config import LogConfig

__all__ = [
    "AppConfig",
    "LogConfig",
    "EngineConfig",
    "PolicySpec",
    "BrokerConfig",
    "BacktestConfig",
]
