"""Data types for the `farm` staking engine.

All types are frozen dataclasses (immutable). The engine never mutates a
`FarmState`; every accepted step returns a new one.

Units/conventions:
- amounts are non-negative integer base units of the stake or reward asset,
- `*_bps` rates are basis points (1/10_000),
- `*_step` values are the externally supplied step counter (block-height-like).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Callable, Mapping

from .math import (
    DEFAULT_MAX_REWARD_PER_STEP,
    DEFAULT_MIN_REWARD_PER_STEP,
    DEFAULT_REWARD_PER_STEP,
    MAX_EARLY_EXIT_PENALTY_BPS,
    MAX_LOCK_PERIOD_STEPS,
    MAX_REWARD_PER_STEP,
    MAX_WITHDRAWAL_FEE_BPS,
)

# Identities are opaque, already-authenticated strings.
Identity = str

Authorizer = Callable[[Identity], bool]


@unique
class Policy(Enum):
    """Ledger variant: `base` is the v1 farm, `extended` adds lock/penalty/emergency."""
    BASE = "base"
    EXTENDED = "extended"


@unique
class Action(Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    CLAIM_REWARDS = "claim_rewards"
    DISTRIBUTE_REWARDS_ALL = "distribute_rewards_all"
    EMERGENCY_WITHDRAW = "emergency_withdraw"
    SET_REWARD_PER_STEP = "set_reward_per_step"
    SET_REWARD_RANGE = "set_reward_range"
    SET_WITHDRAWAL_FEE = "set_withdrawal_fee"
    SET_STAKING_LOCK_PERIOD = "set_staking_lock_period"
    SET_EARLY_EXIT_PENALTY = "set_early_exit_penalty"
    TOGGLE_EMERGENCY_HALT = "toggle_emergency_halt"
    WITHDRAW_FEES = "withdraw_fees"
    TRANSFER_OWNERSHIP = "transfer_ownership"


@unique
class Event(Enum):
    REWARDS_ACCRUED = "RewardsAccrued"
    DEPOSITED = "Deposited"
    WITHDRAWN = "Withdrawn"
    REWARDS_CLAIMED = "RewardsClaimed"
    REWARDS_DISTRIBUTED = "RewardsDistributed"
    EMERGENCY_WITHDRAWN = "EmergencyWithdrawn"
    REWARD_PER_STEP_UPDATED = "RewardPerStepUpdated"
    MIN_REWARD_PER_STEP_UPDATED = "MinRewardPerStepUpdated"
    MAX_REWARD_PER_STEP_UPDATED = "MaxRewardPerStepUpdated"
    WITHDRAWAL_FEE_UPDATED = "WithdrawalFeeUpdated"
    LOCK_PERIOD_UPDATED = "StakingLockPeriodUpdated"
    EARLY_EXIT_PENALTY_UPDATED = "EarlyExitPenaltyUpdated"
    EMERGENCY_HALT_TOGGLED = "EmergencyHaltToggled"
    FEES_WITHDRAWN = "FeesWithdrawn"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"


@unique
class TransferKind(Enum):
    """Asset movement requested from the collaborators after bookkeeping."""
    PULL_STAKE = "pull_stake"      # stake asset: participant -> farm (allowance based)
    PAY_STAKE = "pay_stake"        # stake asset: farm -> participant
    MINT_REWARD = "mint_reward"    # reward asset: minted to participant/owner


def _require_uint(name: str, v: object) -> None:
    if not isinstance(v, int) or isinstance(v, bool):
        raise TypeError(f"{name} must be an int")
    if v < 0:
        raise ValueError(f"{name} must be non-negative: {v}")


@dataclass(frozen=True)
class ParticipantRecord:
    """Per-identity staking record. The default instance is the never-staked record."""

    staked_amount: int = 0
    checkpoint: int = 0
    pending_rewards: int = 0
    has_staked: bool = False
    is_staking: bool = False

    # Audit counters (monotonic)
    total_rewards_claimed: int = 0
    last_claim_step: int = 0
    staking_start_step: int = 0


EMPTY_RECORD = ParticipantRecord()


@dataclass(frozen=True)
class FarmConfig:
    """Owner-tunable parameters. Construction validates every cap."""

    policy: Policy = Policy.EXTENDED
    reward_per_step: int = DEFAULT_REWARD_PER_STEP
    min_reward_per_step: int = DEFAULT_MIN_REWARD_PER_STEP
    max_reward_per_step: int = DEFAULT_MAX_REWARD_PER_STEP
    withdrawal_fee_bps: int = 300
    lock_period_steps: int = 100
    early_exit_penalty_bps: int = 500
    emergency_halt: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.policy, Policy):
            raise TypeError("policy must be a Policy")
        if not isinstance(self.emergency_halt, bool):
            raise TypeError("emergency_halt must be a bool")
        for name in (
            "reward_per_step",
            "min_reward_per_step",
            "max_reward_per_step",
            "withdrawal_fee_bps",
            "lock_period_steps",
            "early_exit_penalty_bps",
        ):
            _require_uint(name, getattr(self, name))
        if not (0 < self.min_reward_per_step <= self.max_reward_per_step <= MAX_REWARD_PER_STEP):
            raise ValueError(
                f"reward range must satisfy 0 < min <= max <= {MAX_REWARD_PER_STEP}: "
                f"[{self.min_reward_per_step}, {self.max_reward_per_step}]"
            )
        if not (self.min_reward_per_step <= self.reward_per_step <= self.max_reward_per_step):
            raise ValueError(f"reward_per_step out of range: {self.reward_per_step}")
        if self.withdrawal_fee_bps > MAX_WITHDRAWAL_FEE_BPS:
            raise ValueError(f"withdrawal_fee_bps must be <= {MAX_WITHDRAWAL_FEE_BPS}: {self.withdrawal_fee_bps}")
        if self.lock_period_steps > MAX_LOCK_PERIOD_STEPS:
            raise ValueError(f"lock_period_steps must be <= {MAX_LOCK_PERIOD_STEPS}: {self.lock_period_steps}")
        if self.early_exit_penalty_bps > MAX_EARLY_EXIT_PENALTY_BPS:
            raise ValueError(
                f"early_exit_penalty_bps must be <= {MAX_EARLY_EXIT_PENALTY_BPS}: {self.early_exit_penalty_bps}"
            )
        if self.policy is Policy.BASE and (self.lock_period_steps or self.early_exit_penalty_bps):
            raise ValueError("base policy has no lock period or early exit penalty")

    @classmethod
    def for_policy(cls, policy: Policy) -> "FarmConfig":
        """Default configuration of each ledger variant."""
        if policy is Policy.BASE:
            return cls(policy=policy, lock_period_steps=0, early_exit_penalty_bps=0)
        return cls(policy=policy)

    @property
    def extended(self) -> bool:
        return self.policy is Policy.EXTENDED


@dataclass(frozen=True)
class FarmState:
    """Complete ledger state: configuration, per-identity records and totals."""

    owner: Identity
    config: FarmConfig = field(default_factory=FarmConfig)

    # Staking ledger
    records: Mapping[Identity, ParticipantRecord] = field(default_factory=dict)
    roster: tuple[Identity, ...] = ()
    total_staked: int = 0

    # Reward-asset accounting
    accumulated_fees: int = 0
    fees_withdrawn: int = 0
    total_rewards_accrued: int = 0

    # Stake asset withheld as early-exit penalties (kept by the farm, never paid out)
    burned_penalties: int = 0

    # Highest step seen by an accepted call
    now_step: int = 0


@dataclass(frozen=True)
class CallParams:
    """Parameters for a call. Unused fields default to 0/""."""

    action: Action
    caller: Identity
    step: int
    amount: int = 0        # deposit
    value: int = 0         # single-value owner setters
    lower: int = 0         # set_reward_range
    upper: int = 0         # set_reward_range
    new_owner: Identity = ""  # transfer_ownership


@dataclass(frozen=True)
class Effect:
    """One audit record. Post-state totals are filled in for every event."""

    event: Event
    step: int
    participant: Identity = ""
    counterparty: Identity = ""
    amount: int = 0
    fee: int = 0
    penalty: int = 0
    old_value: int = 0
    new_value: int = 0
    total_staked_after: int = 0
    participant_count: int = 0


@dataclass(frozen=True)
class Transfer:
    kind: TransferKind
    account: Identity
    amount: int


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    state: FarmState | None = None
    effects: tuple[Effect, ...] = ()
    transfers: tuple[Transfer, ...] = ()
    rejection: str | None = None


@dataclass(frozen=True)
class UserInfo:
    """Read-only snapshot of a participant record."""

    identity: Identity
    staked_amount: int
    pending_rewards: int
    checkpoint: int
    has_staked: bool
    is_staking: bool
    total_rewards_claimed: int
    last_claim_step: int
    staking_start_step: int


@dataclass(frozen=True)
class ContractInfo:
    contract_name: str
    version: int
    owner: Identity
    total_stakers: int
    total_staked: int
    reward_per_step: int
    min_reward_per_step: int
    max_reward_per_step: int
    withdrawal_fee_bps: int
    lock_period_steps: int
    early_exit_penalty_bps: int
    is_emergency_halted: bool
    accumulated_fees: int
