# replaybt/backtest/strategy/factory.py
from __future__ import annotations

from typing import Dict, Type

from replaybt.backtest.strategy.base import Strategy
from replaybt.backtest.strategy.buy_and_hold import BuyAndHoldStrategy
from replaybt.backtest.strategy.dual_moving_average import DualMovingAverageStrategy


class StrategyFactory:
    """
    StrategyFactory (FINAL / FROZEN)

    注册式 Strategy 构造器

    All strategies must be explicitly registered in StrategyFactory._REGISTRY.
    No dynamic discovery or side-effect-based registration.
    """

    _REGISTRY: Dict[str, Type[Strategy]] = {
        "buy_and_hold": BuyAndHoldStrategy,
        "dual_moving_average": DualMovingAverageStrategy,
    }

    # --------------------------------------------------
    @classmethod
    def create(cls, cfg: Dict) -> Strategy:
        """
        cfg:
          backtest.strategy（完整 dict）

        - cfg["type"] 必须存在
        - 未注册 type -> crash
        """
        if "type" not in cfg:
            raise KeyError("[StrategyFactory] missing 'type' in strategy config")

        typ = cfg["type"]

        if typ not in cls._REGISTRY:
            raise ValueError(
                f"[StrategyFactory] unknown strategy type: {typ}"
            )

        strategy_cls = cls._REGISTRY[typ]

        # type 字段不传给 Strategy 本体
        params = {k: v for k, v in cfg.items() if k != "type"}

        return strategy_cls(**params)
