"""`farm`: deterministic, integer-only proportional staking-reward ledger.

- immutable state (frozen dataclasses); every call returns a new state,
- the current step is an explicit input, never read from a clock,
- fail-closed guards and invariant checks on every post-state,
- asset movements are returned as `Transfer`s for the caller to perform.

Public API:
- `initial_state(owner, config=None) -> FarmState`
- `step(state, params, authorizer=None) -> StepResult`
- `step_or_raise(state, params, authorizer=None) -> StepResult` (raises on rejection)
"""

from .accrual import preview_pending, settle, settle_all
from .config import config_from_mapping, load_farm_config
from .engine import step, step_or_raise
from .errors import (
    EmergencyHalted,
    FarmError,
    FarmInvariantError,
    IndexOutOfBounds,
    InvalidAmount,
    InvalidOwner,
    NoFees,
    NoRewards,
    NotHalted,
    NothingStaked,
    NotStaking,
    OutOfRange,
    ParamDomainError,
    StaleStep,
    TransferFailed,
    Unauthorized,
    UnsupportedAction,
)
from .state import initial_state, state_from_dict, state_to_dict
from .types import (
    Action,
    Authorizer,
    CallParams,
    ContractInfo,
    Effect,
    Event,
    FarmConfig,
    FarmState,
    ParticipantRecord,
    Policy,
    StepResult,
    Transfer,
    TransferKind,
    UserInfo,
)

__all__ = [
    "step",
    "step_or_raise",
    "settle",
    "settle_all",
    "preview_pending",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "config_from_mapping",
    "load_farm_config",
    "Action",
    "Authorizer",
    "CallParams",
    "ContractInfo",
    "Effect",
    "Event",
    "FarmConfig",
    "FarmState",
    "ParticipantRecord",
    "Policy",
    "StepResult",
    "Transfer",
    "TransferKind",
    "UserInfo",
    "FarmError",
    "FarmInvariantError",
    "EmergencyHalted",
    "IndexOutOfBounds",
    "InvalidAmount",
    "InvalidOwner",
    "NoFees",
    "NoRewards",
    "NotHalted",
    "NothingStaked",
    "NotStaking",
    "OutOfRange",
    "ParamDomainError",
    "StaleStep",
    "TransferFailed",
    "Unauthorized",
    "UnsupportedAction",
]
