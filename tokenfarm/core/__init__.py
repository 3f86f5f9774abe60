"""
Core staking algorithms
"""

from .fees import (
    BPS_DENOM,
    FeeBreakdown,
    PenaltyBreakdown,
    early_exit_penalty,
    split_withdrawal_fee,
)
from .farm import (
    CallParams,
    FarmConfig,
    FarmState,
    StepResult,
    initial_state,
)
from .farm import step as farm_step

__all__ = [
    "BPS_DENOM",
    "FeeBreakdown",
    "PenaltyBreakdown",
    "early_exit_penalty",
    "split_withdrawal_fee",
    "CallParams",
    "FarmConfig",
    "FarmState",
    "StepResult",
    "initial_state",
    "farm_step",
]
