from replaybt.backtest.execution.base import CommissionModel, SlippageModel
from replaybt.backtest.execution.broker import Resolution, SimulatedBroker
from replaybt.backtest.execution.commission import (
    NoCommission,
    PerShareCommission,
    PerTradeCommission,
)
from replaybt.backtest.execution.factory import (
    CommissionFactory,
    SlippageFactory,
    build_broker,
)
from replaybt.backtest.execution.slippage import (
    FixedSlippage,
    NoSlippage,
    VolumeShareSlippage,
)

__all__ = [
    "SlippageModel", "CommissionModel",
    "NoSlippage", "FixedSlippage", "VolumeShareSlippage",
    "NoCommission", "PerShareCommission", "PerTradeCommission",
    "SimulatedBroker", "Resolution",
    "SlippageFactory", "CommissionFactory", "build_broker",
]
