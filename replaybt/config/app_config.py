#!filepath: replaybt/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .backtest_config import BacktestConfig, BrokerConfig, EngineConfig
from .log_config import LogConfig
from replaybt.utils.logger import logs

ENV_LOG_LEVEL = "REPLAYBT_LOG_LEVEL"


def package_config_dir() -> str:
    """
    replaybt/config/app_config.py → replaybt/config
    """
    return os.path.abspath(os.path.dirname(__file__))


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    broker: BrokerConfig = Field(default_factory=BrokerConfig)
    backtest: BacktestConfig

    @classmethod
    def load(cls, path: str | None = None, env_file: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用包内 replaybt/config/base.yml
        - .env 默认取当前工作目录
        - REPLAYBT_LOG_LEVEL 覆盖 log.level
        """
        # 1) 先加载 .env
        load_dotenv(env_file or os.path.join(os.getcwd(), ".env"))

        # 2) 决定配置文件路径
        if path is None:
            path = os.path.join(package_config_dir(), "base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        level = os.getenv(ENV_LOG_LEVEL)
        if level:
            raw.setdefault("log", {})
            raw["log"] = {**(raw["log"] or {}), "level": level.upper()}

        logs.debug(f"[AppConfig] loaded {path}")
        return cls(**raw)
