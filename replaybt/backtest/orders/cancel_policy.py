# replaybt/backtest/orders/cancel_policy.py
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Type, Union

from replaybt.backtest.core.events import Order


class CancelPolicy(ABC):
    """
    Decides, at the first step of a new session, whether an open order
    placed in `placed_session` is dropped.
    """

    @abstractmethod
    def should_cancel(self, order: Order, placed_session: date, session: date) -> bool:
        ...


class NeverCancel(CancelPolicy):
    """Orders stay open until filled, cancelled or rejected."""

    def should_cancel(self, order: Order, placed_session: date, session: date) -> bool:
        return False


class EODCancel(CancelPolicy):
    """Day orders: whatever is still open when its session ends is cancelled."""

    def should_cancel(self, order: Order, placed_session: date, session: date) -> bool:
        return session != placed_session


class CancelPolicyFactory:
    """
    CancelPolicyFactory (FINAL)
    """

    _REGISTRY: Dict[str, Type[CancelPolicy]] = {
        "never": NeverCancel,
        "eod": EODCancel,
    }

    @classmethod
    def create(cls, policy: Union[str, CancelPolicy]) -> CancelPolicy:
        if isinstance(policy, CancelPolicy):
            return policy
        if policy not in cls._REGISTRY:
            raise ValueError(f"[CancelPolicyFactory] unknown cancel policy: {policy}")
        return cls._REGISTRY[policy]()
