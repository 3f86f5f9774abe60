"""Guards: access, emergency and per-action preconditions.

One pure function per action. Each returns None when the call may proceed in
the given PRE-state, or the rejection code of the first failed check. Checks
run in a fixed order: authority, policy support, halt flag, then the
action's own preconditions.
"""

from __future__ import annotations

from .ledger import get_record
from .math import (
    MAX_EARLY_EXIT_PENALTY_BPS,
    MAX_LOCK_PERIOD_STEPS,
    MAX_REWARD_PER_STEP,
    MAX_WITHDRAWAL_FEE_BPS,
)
from .types import CallParams, FarmState

INVALID_AMOUNT = "invalid_amount"
UNAUTHORIZED = "unauthorized"
NOT_STAKING = "not_staking"
NOTHING_STAKED = "nothing_staked"
NO_REWARDS = "no_rewards"
NO_FEES = "no_fees"
OUT_OF_RANGE = "out_of_range"
EMERGENCY_HALTED = "emergency_halted"
NOT_HALTED = "not_halted"
UNSUPPORTED_ACTION = "unsupported_action"
INVALID_OWNER = "invalid_owner"

Rejection = str | None


def _halted(state: FarmState) -> bool:
    return state.config.emergency_halt


def _halted_extended(state: FarmState) -> bool:
    # The base farm only gates deposits.
    return state.config.extended and state.config.emergency_halt


def _out_of_range(field: str) -> str:
    return f"{OUT_OF_RANGE}:{field}"


def _owner_only(authorized: bool) -> Rejection:
    return None if authorized else UNAUTHORIZED


def guard_deposit(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    """Halt flag first, then the amount: a zero deposit while halted reports `emergency_halted`."""
    if _halted(state):
        return EMERGENCY_HALTED
    if params.amount == 0:
        return INVALID_AMOUNT
    return None


def guard_withdraw(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if _halted_extended(state):
        return EMERGENCY_HALTED
    record = get_record(state, params.caller)
    if not record.is_staking:
        return NOT_STAKING
    if record.staked_amount == 0:
        return NOTHING_STAKED
    return None


def guard_claim_rewards(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if _halted_extended(state):
        return EMERGENCY_HALTED
    if get_record(state, params.caller).pending_rewards == 0:
        return NO_REWARDS
    return None


def guard_distribute_rewards_all(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not authorized:
        return UNAUTHORIZED
    if _halted_extended(state):
        return EMERGENCY_HALTED
    return None


def guard_emergency_withdraw(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not state.config.extended:
        return UNSUPPORTED_ACTION
    if not _halted(state):
        return NOT_HALTED
    record = get_record(state, params.caller)
    if not record.is_staking:
        return NOT_STAKING
    if record.staked_amount == 0:
        return NOTHING_STAKED
    return None


def guard_set_reward_per_step(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not authorized:
        return UNAUTHORIZED
    cfg = state.config
    if not (cfg.min_reward_per_step <= params.value <= cfg.max_reward_per_step):
        return _out_of_range("reward_per_step")
    return None


def guard_set_reward_range(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not authorized:
        return UNAUTHORIZED
    if not (0 < params.lower <= params.upper <= MAX_REWARD_PER_STEP):
        return _out_of_range("reward_range")
    return None


def guard_set_withdrawal_fee(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not authorized:
        return UNAUTHORIZED
    if params.value > MAX_WITHDRAWAL_FEE_BPS:
        return _out_of_range("withdrawal_fee_bps")
    return None


def guard_set_staking_lock_period(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not authorized:
        return UNAUTHORIZED
    if not state.config.extended:
        return UNSUPPORTED_ACTION
    if params.value > MAX_LOCK_PERIOD_STEPS:
        return _out_of_range("lock_period_steps")
    return None


def guard_set_early_exit_penalty(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not authorized:
        return UNAUTHORIZED
    if not state.config.extended:
        return UNSUPPORTED_ACTION
    if params.value > MAX_EARLY_EXIT_PENALTY_BPS:
        return _out_of_range("early_exit_penalty_bps")
    return None


def guard_toggle_emergency_halt(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    return _owner_only(authorized)


def guard_withdraw_fees(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not authorized:
        return UNAUTHORIZED
    if state.accumulated_fees == 0:
        return NO_FEES
    return None


def guard_transfer_ownership(state: FarmState, params: CallParams, authorized: bool) -> Rejection:
    if not authorized:
        return UNAUTHORIZED
    if not isinstance(params.new_owner, str) or not params.new_owner:
        return INVALID_OWNER
    return None
