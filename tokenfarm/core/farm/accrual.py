"""Reward accrual engine: checkpoint settlement.

`settle` credits one identity with
``floor(reward_per_step * elapsed * staked / total_staked)`` for the steps since
its checkpoint and moves the checkpoint to `current_step`. It always reads the
stake and total as they stand in the state it is given, so callers must settle
BEFORE mutating either.

Settling twice at the same step is a no-op the second time. Settling an
identity that has never staked is a no-op. A zero-stake historical record only
has its checkpoint advanced.
"""

from __future__ import annotations

from dataclasses import replace

from .effects import effect_rewards_accrued
from .ledger import get_record, iter_staking, put_records
from .math import accrued_reward, elapsed_steps
from .types import Effect, FarmState, Identity, ParticipantRecord


def settle_record(
    record: ParticipantRecord,
    current_step: int,
    reward_per_step: int,
    total_staked: int,
) -> tuple[ParticipantRecord, int] | None:
    """Settle a single record. Returns None when nothing changes."""
    if not record.has_staked or current_step <= record.checkpoint:
        return None
    reward = accrued_reward(
        reward_per_step,
        elapsed_steps(current_step, record.checkpoint),
        record.staked_amount,
        total_staked,
    )
    return replace(record, pending_rewards=record.pending_rewards + reward, checkpoint=current_step), reward


def settle(state: FarmState, identity: Identity, current_step: int) -> tuple[FarmState, tuple[Effect, ...]]:
    settled = settle_record(
        get_record(state, identity), current_step, state.config.reward_per_step, state.total_staked,
    )
    if settled is None:
        return state, ()
    record, reward = settled
    state = replace(
        put_records(state, {identity: record}),
        total_rewards_accrued=state.total_rewards_accrued + reward,
    )
    if reward == 0:
        return state, ()
    return state, (effect_rewards_accrued(state, identity, reward, current_step),)


def settle_all(
    state: FarmState,
    current_step: int,
    *,
    exclude: Identity | None = None,
) -> tuple[FarmState, tuple[Effect, ...]]:
    """Settle every staking identity in roster order.

    All records are settled against the same (pre-call) `total_staked`, so the
    credited sum never exceeds ``reward_per_step * elapsed``.
    """
    updates: dict[Identity, ParticipantRecord] = {}
    credited: list[tuple[Identity, int]] = []
    for identity, record in iter_staking(state):
        if identity == exclude:
            continue
        settled = settle_record(record, current_step, state.config.reward_per_step, state.total_staked)
        if settled is None:
            continue
        updates[identity], reward = settled
        if reward:
            credited.append((identity, reward))

    total = sum(reward for _, reward in credited)
    state = replace(put_records(state, updates), total_rewards_accrued=state.total_rewards_accrued + total)
    effects = tuple(effect_rewards_accrued(state, identity, reward, current_step) for identity, reward in credited)
    return state, effects


def preview_pending(state: FarmState, identity: Identity, current_step: int) -> int:
    """Pending rewards as if `identity` were settled at `current_step` (read-only)."""
    record = get_record(state, identity)
    settled = settle_record(record, current_step, state.config.reward_per_step, state.total_staked)
    if settled is None:
        return record.pending_rewards
    return settled[0].pending_rewards
