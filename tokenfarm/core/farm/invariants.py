"""Invariant checkers for the farm ledger.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass). The engine runs
`check_all()` on every post-state before accepting a step.
"""

from __future__ import annotations

from typing import Callable

from .math import MAX_EARLY_EXIT_PENALTY_BPS, MAX_LOCK_PERIOD_STEPS, MAX_WITHDRAWAL_FEE_BPS
from .types import FarmState


def inv_total_staked_matches_records(s: FarmState) -> bool:
    return s.total_staked == sum(r.staked_amount for r in s.records.values())


def inv_reward_rate_in_range(s: FarmState) -> bool:
    c = s.config
    return 0 < c.min_reward_per_step <= c.reward_per_step <= c.max_reward_per_step


def inv_fee_within_cap(s: FarmState) -> bool:
    return 0 <= s.config.withdrawal_fee_bps <= MAX_WITHDRAWAL_FEE_BPS


def inv_penalty_within_cap(s: FarmState) -> bool:
    return 0 <= s.config.early_exit_penalty_bps <= MAX_EARLY_EXIT_PENALTY_BPS


def inv_lock_within_cap(s: FarmState) -> bool:
    return 0 <= s.config.lock_period_steps <= MAX_LOCK_PERIOD_STEPS


def inv_roster_matches_has_staked(s: FarmState) -> bool:
    if len(set(s.roster)) != len(s.roster):
        return False
    return set(s.roster) == {i for i, r in s.records.items() if r.has_staked}


def inv_staking_iff_positive_stake(s: FarmState) -> bool:
    return all(r.is_staking == (r.staked_amount > 0) for r in s.records.values())


def inv_checkpoint_not_from_future(s: FarmState) -> bool:
    return all(r.checkpoint <= s.now_step for r in s.records.values())


def inv_nonnegative_amounts(s: FarmState) -> bool:
    if min(s.total_staked, s.accumulated_fees, s.fees_withdrawn, s.burned_penalties, s.total_rewards_accrued) < 0:
        return False
    return all(
        r.staked_amount >= 0 and r.pending_rewards >= 0 and r.total_rewards_claimed >= 0
        for r in s.records.values()
    )


def inv_reward_conservation(s: FarmState) -> bool:
    owed = sum(r.pending_rewards + r.total_rewards_claimed for r in s.records.values())
    return owed + s.accumulated_fees + s.fees_withdrawn == s.total_rewards_accrued


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[FarmState], bool]] = {
    "inv_total_staked_matches_records": inv_total_staked_matches_records,
    "inv_reward_rate_in_range": inv_reward_rate_in_range,
    "inv_fee_within_cap": inv_fee_within_cap,
    "inv_penalty_within_cap": inv_penalty_within_cap,
    "inv_lock_within_cap": inv_lock_within_cap,
    "inv_roster_matches_has_staked": inv_roster_matches_has_staked,
    "inv_staking_iff_positive_stake": inv_staking_iff_positive_stake,
    "inv_checkpoint_not_from_future": inv_checkpoint_not_from_future,
    "inv_nonnegative_amounts": inv_nonnegative_amounts,
    "inv_reward_conservation": inv_reward_conservation,
}


def check_all(state: FarmState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]
