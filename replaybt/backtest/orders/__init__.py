from replaybt.backtest.orders.cancel_policy import (
    CancelPolicy,
    CancelPolicyFactory,
    EODCancel,
    NeverCancel,
)
from replaybt.backtest.orders.controls import (
    LongOnly,
    MaxLeverage,
    MaxOrderSize,
    MaxPositionSize,
    RestrictedList,
    TradingControl,
)
from replaybt.backtest.orders.registry import OrderRegistry, validate_request

__all__ = [
    "OrderRegistry", "validate_request",
    "CancelPolicy", "NeverCancel", "EODCancel", "CancelPolicyFactory",
    "TradingControl", "MaxOrderSize", "MaxPositionSize", "LongOnly",
    "RestrictedList", "MaxLeverage",
]
