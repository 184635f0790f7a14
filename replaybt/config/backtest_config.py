from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EngineConfig(BaseModel):
    """
    EngineConfig（FINAL / FROZEN）

    - starting_cash   : finite, > 0
    - history_len     : bars of history kept per asset (bounded)
    - frequency       : daily = one step per session close
                        minute = open+1min .. close, every minute
    - fill_timing     : same_bar = orders may fill on the bar they were placed
                        next_bar = orders wait for the next processed step
    - cancel_policy   : never = open orders live until filled or cancelled
                        eod   = open orders are cancelled when their session ends
    """

    model_config = ConfigDict(frozen=True)

    starting_cash: float = Field(100_000.0, gt=0, allow_inf_nan=False)
    history_len: int = Field(252, ge=1, le=1_000_000)
    frequency: Literal["daily", "minute"] = "daily"
    fill_timing: Literal["same_bar", "next_bar"] = "same_bar"
    cancel_policy: Literal["never", "eod"] = "never"
    reconcile: bool = True


class PolicySpec(BaseModel):
    """
    Registry selector: `type` picks the class, `params` go to its __init__.
    """

    type: str = "none"
    params: Dict[str, Any] = Field(default_factory=dict)


class BrokerConfig(BaseModel):
    slippage: PolicySpec = Field(default_factory=PolicySpec)
    commission: PolicySpec = Field(default_factory=PolicySpec)

    # 单步单资产最大成交占比（None = 不限）
    max_volume_share: Optional[float] = Field(None, gt=0, le=1)


class BacktestConfig(BaseModel):
    """
    BacktestConfig（FINAL / FROZEN）

    语义：
      - 回测“实验定义”
      - 不定义路径（数据由 CLI / 调用方注入）
      - start / end 缺省时取数据源的 date_range
    """

    # 实验名
    name: str = "default"

    start: Optional[str] = None
    end: Optional[str] = None

    calendar: PolicySpec = Field(default_factory=lambda: PolicySpec(type="weekday"))

    # strategy 参数（opaque，交给 StrategyFactory）
    strategy: Dict[str, Any]

    @model_validator(mode="after")
    def _check_strategy(self) -> "BacktestConfig":
        if "type" not in self.strategy:
            raise ValueError("backtest.strategy must contain 'type'")
        return self
