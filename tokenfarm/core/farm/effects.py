"""Audit records for the farm engine.

Effects are built from the POST-state: `total_staked_after` and
`participant_count` always describe the ledger after the event applied.
"""

from __future__ import annotations

from .types import Effect, Event, FarmState, Identity


def _common(state: FarmState) -> dict[str, int]:
    return dict(
        total_staked_after=state.total_staked,
        participant_count=len(state.roster),
    )


def make_effect(state: FarmState, event: Event, step: int, **fields) -> Effect:
    return Effect(event=event, step=step, **_common(state), **fields)


def effect_rewards_accrued(state: FarmState, identity: Identity, reward: int, step: int) -> Effect:
    return make_effect(state, Event.REWARDS_ACCRUED, step, participant=identity, amount=reward)


def effect_config_change(
    state: FarmState, event: Event, caller: Identity, old: int, new: int, step: int,
) -> Effect:
    return make_effect(state, event, step, participant=caller, old_value=int(old), new_value=int(new))
