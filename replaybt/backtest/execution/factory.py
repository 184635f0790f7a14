# replaybt/backtest/execution/factory.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Type

from replaybt.backtest.execution.base import CommissionModel, SlippageModel
from replaybt.backtest.execution.broker import SimulatedBroker
from replaybt.backtest.execution.commission import (
    NoCommission,
    PerShareCommission,
    PerTradeCommission,
)
from replaybt.backtest.execution.slippage import (
    FixedSlippage,
    NoSlippage,
    VolumeShareSlippage,
)


def _split(spec: Any, owner: str) -> tuple[str, Dict[str, Any]]:
    """
    Accept a PolicySpec-like object (type / params) or a plain dict
    {"type": ..., **params}.
    """
    if isinstance(spec, Mapping):
        if "type" not in spec:
            raise KeyError(f"[{owner}] missing 'type' in policy config")
        params = dict(spec.get("params") or {})
        params.update({k: v for k, v in spec.items() if k not in ("type", "params")})
        return spec["type"], params
    return spec.type, dict(spec.params or {})


class SlippageFactory:
    """
    SlippageFactory (FINAL)

    All slippage policies are registered here explicitly.
    """

    _REGISTRY: Dict[str, Type[SlippageModel]] = {
        "none": NoSlippage,
        "fixed": FixedSlippage,
        "volume_share": VolumeShareSlippage,
    }

    @classmethod
    def create(cls, spec) -> SlippageModel:
        typ, params = _split(spec, "SlippageFactory")
        if typ not in cls._REGISTRY:
            raise ValueError(f"[SlippageFactory] unknown slippage type: {typ}")
        return cls._REGISTRY[typ](**params)


class CommissionFactory:
    """
    CommissionFactory (FINAL)
    """

    _REGISTRY: Dict[str, Type[CommissionModel]] = {
        "none": NoCommission,
        "per_share": PerShareCommission,
        "per_trade": PerTradeCommission,
    }

    @classmethod
    def create(cls, spec) -> CommissionModel:
        typ, params = _split(spec, "CommissionFactory")
        if typ not in cls._REGISTRY:
            raise ValueError(f"[CommissionFactory] unknown commission type: {typ}")
        return cls._REGISTRY[typ](**params)


def build_broker(cfg) -> SimulatedBroker:
    """BrokerConfig -> SimulatedBroker."""
    return SimulatedBroker(
        SlippageFactory.create(cfg.slippage),
        CommissionFactory.create(cfg.commission),
        max_volume_share=cfg.max_volume_share,
    )
