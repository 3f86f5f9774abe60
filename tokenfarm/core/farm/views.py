"""Read-only queries over a `FarmState`."""

from __future__ import annotations

from .accrual import preview_pending
from .errors import IndexOutOfBounds
from .ledger import get_record
from .types import ContractInfo, FarmState, Identity, Policy, UserInfo

CONTRACT_NAMES: dict[Policy, tuple[str, int]] = {
    Policy.BASE: ("Proportional Token Farm", 1),
    Policy.EXTENDED: ("Proportional Token Farm V2", 2),
}


def get_pending_rewards(state: FarmState, identity: Identity) -> int:
    """Settled, unclaimed rewards (does not include accrual since the last checkpoint)."""
    return get_record(state, identity).pending_rewards


def preview_pending_rewards(state: FarmState, identity: Identity, current_step: int) -> int:
    return preview_pending(state, identity, current_step)


def get_staking_balance(state: FarmState, identity: Identity) -> int:
    return get_record(state, identity).staked_amount


def get_user_info(state: FarmState, identity: Identity) -> UserInfo:
    r = get_record(state, identity)
    return UserInfo(
        identity=identity,
        staked_amount=r.staked_amount,
        pending_rewards=r.pending_rewards,
        checkpoint=r.checkpoint,
        has_staked=r.has_staked,
        is_staking=r.is_staking,
        total_rewards_claimed=r.total_rewards_claimed,
        last_claim_step=r.last_claim_step,
        staking_start_step=r.staking_start_step,
    )


def get_contract_info(state: FarmState) -> ContractInfo:
    cfg = state.config
    name, version = CONTRACT_NAMES[cfg.policy]
    return ContractInfo(
        contract_name=name,
        version=version,
        owner=state.owner,
        total_stakers=len(state.roster),
        total_staked=state.total_staked,
        reward_per_step=cfg.reward_per_step,
        min_reward_per_step=cfg.min_reward_per_step,
        max_reward_per_step=cfg.max_reward_per_step,
        withdrawal_fee_bps=cfg.withdrawal_fee_bps,
        lock_period_steps=cfg.lock_period_steps,
        early_exit_penalty_bps=cfg.early_exit_penalty_bps,
        is_emergency_halted=cfg.emergency_halt,
        accumulated_fees=state.accumulated_fees,
    )


def get_accumulated_fees(state: FarmState) -> int:
    return state.accumulated_fees


def get_staker_count(state: FarmState) -> int:
    """Number of identities that have ever staked (roster entries are permanent)."""
    return len(state.roster)


def get_staker_by_index(state: FarmState, index: int) -> Identity:
    if not isinstance(index, int) or isinstance(index, bool) or not (0 <= index < len(state.roster)):
        raise IndexOutOfBounds(f"staker index {index!r} out of bounds (count={len(state.roster)})")
    return state.roster[index]
