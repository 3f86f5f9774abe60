"""State transition functions for the farm engine.

One pure function per action, called only after the action's guard passed.
Each returns an `Outcome`: the post-state, the ordered audit effects and the
asset transfers the shell must perform.

Ordering rules:
- rewards are settled (``settle_all``) against the PRE-mutation stake, total
  and rate before anything that changes `total_staked` or `reward_per_step`,
- asset transfers are only described here; they run after all bookkeeping.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..fees import early_exit_penalty, split_withdrawal_fee
from .accrual import settle, settle_all
from .effects import effect_config_change, make_effect
from .ledger import add_stake, enroll, get_record, put_record, sub_stake
from .math import clamp, elapsed_steps
from .types import CallParams, Effect, Event, FarmState, Transfer, TransferKind


@dataclass(frozen=True)
class Outcome:
    state: FarmState
    effects: tuple[Effect, ...] = ()
    transfers: tuple[Transfer, ...] = ()


def _with_config(state: FarmState, **changes) -> FarmState:
    return replace(state, config=replace(state.config, **changes))


def apply_deposit(state: FarmState, params: CallParams) -> Outcome:
    caller, step, amount = params.caller, params.step, params.amount

    state, accrued = settle_all(state, step)
    # Covers a returning participant whose record is not in the staking set.
    state, own = settle(state, caller, step)

    record = get_record(state, caller)
    if not record.has_staked:
        state = enroll(state, caller)
        # The lock is measured from the first-ever deposit only.
        record = replace(get_record(state, caller), checkpoint=step, staking_start_step=step)
    state = add_stake(put_record(state, caller, record), caller, amount)

    return Outcome(
        state=state,
        effects=accrued + own + (make_effect(state, Event.DEPOSITED, step, participant=caller, amount=amount),),
        transfers=(Transfer(TransferKind.PULL_STAKE, caller, amount),),
    )


def apply_withdraw(state: FarmState, params: CallParams) -> Outcome:
    caller, step = params.caller, params.step

    state, accrued = settle_all(state, step)
    record = get_record(state, caller)
    staked = record.staked_amount

    penalty = 0
    if state.config.extended:
        breakdown = early_exit_penalty(
            staked,
            state.config.early_exit_penalty_bps,
            elapsed_steps(step, record.staking_start_step),
            state.config.lock_period_steps,
        )
        penalty = breakdown.penalty
    returned = staked - penalty

    # The full pre-penalty stake leaves the total; the penalty stays with the farm.
    state = sub_stake(state, caller, staked)
    state = replace(state, burned_penalties=state.burned_penalties + penalty)

    transfers = (Transfer(TransferKind.PAY_STAKE, caller, returned),) if returned else ()
    effect = make_effect(state, Event.WITHDRAWN, step, participant=caller, amount=returned, penalty=penalty)
    return Outcome(state=state, effects=accrued + (effect,), transfers=transfers)


def apply_claim_rewards(state: FarmState, params: CallParams) -> Outcome:
    caller, step = params.caller, params.step
    record = get_record(state, caller)

    split = split_withdrawal_fee(record.pending_rewards, state.config.withdrawal_fee_bps)
    state = put_record(
        state,
        caller,
        replace(
            record,
            pending_rewards=0,
            total_rewards_claimed=record.total_rewards_claimed + split.net,
            last_claim_step=step,
        ),
    )
    state = replace(state, accumulated_fees=state.accumulated_fees + split.fee)

    transfers = (Transfer(TransferKind.MINT_REWARD, caller, split.net),) if split.net else ()
    effect = make_effect(state, Event.REWARDS_CLAIMED, step, participant=caller, amount=split.net, fee=split.fee)
    return Outcome(state=state, effects=(effect,), transfers=transfers)


def apply_distribute_rewards_all(state: FarmState, params: CallParams) -> Outcome:
    state, accrued = settle_all(state, params.step)
    summary = make_effect(
        state,
        Event.REWARDS_DISTRIBUTED,
        params.step,
        participant=params.caller,
        amount=sum(e.amount for e in accrued),
    )
    return Outcome(state=state, effects=accrued + (summary,))


def apply_emergency_withdraw(state: FarmState, params: CallParams) -> Outcome:
    caller, step = params.caller, params.step

    # Everyone else is settled against the total that still includes the caller;
    # the caller's unsettled interval is forfeited.
    state, accrued = settle_all(state, step, exclude=caller)
    staked = get_record(state, caller).staked_amount
    state = sub_stake(state, caller, staked)

    effect = make_effect(state, Event.EMERGENCY_WITHDRAWN, step, participant=caller, amount=staked)
    return Outcome(
        state=state,
        effects=accrued + (effect,),
        transfers=(Transfer(TransferKind.PAY_STAKE, caller, staked),),
    )


def apply_set_reward_per_step(state: FarmState, params: CallParams) -> Outcome:
    old = state.config.reward_per_step
    state, accrued = settle_all(state, params.step)
    state = _with_config(state, reward_per_step=params.value)
    effect = effect_config_change(state, Event.REWARD_PER_STEP_UPDATED, params.caller, old, params.value, params.step)
    return Outcome(state=state, effects=accrued + (effect,))


def apply_set_reward_range(state: FarmState, params: CallParams) -> Outcome:
    cfg = state.config
    new_rate = clamp(cfg.reward_per_step, params.lower, params.upper)

    accrued: tuple[Effect, ...] = ()
    if new_rate != cfg.reward_per_step:
        state, accrued = settle_all(state, params.step)
    state = _with_config(
        state,
        min_reward_per_step=params.lower,
        max_reward_per_step=params.upper,
        reward_per_step=new_rate,
    )

    effects = accrued + (
        effect_config_change(
            state, Event.MIN_REWARD_PER_STEP_UPDATED, params.caller,
            cfg.min_reward_per_step, params.lower, params.step,
        ),
        effect_config_change(
            state, Event.MAX_REWARD_PER_STEP_UPDATED, params.caller,
            cfg.max_reward_per_step, params.upper, params.step,
        ),
    )
    if new_rate != cfg.reward_per_step:
        effects += (
            effect_config_change(
                state, Event.REWARD_PER_STEP_UPDATED, params.caller,
                cfg.reward_per_step, new_rate, params.step,
            ),
        )
    return Outcome(state=state, effects=effects)


def apply_set_withdrawal_fee(state: FarmState, params: CallParams) -> Outcome:
    old = state.config.withdrawal_fee_bps
    state = _with_config(state, withdrawal_fee_bps=params.value)
    return Outcome(
        state=state,
        effects=(effect_config_change(state, Event.WITHDRAWAL_FEE_UPDATED, params.caller, old, params.value, params.step),),
    )


def apply_set_staking_lock_period(state: FarmState, params: CallParams) -> Outcome:
    old = state.config.lock_period_steps
    state = _with_config(state, lock_period_steps=params.value)
    return Outcome(
        state=state,
        effects=(effect_config_change(state, Event.LOCK_PERIOD_UPDATED, params.caller, old, params.value, params.step),),
    )


def apply_set_early_exit_penalty(state: FarmState, params: CallParams) -> Outcome:
    old = state.config.early_exit_penalty_bps
    state = _with_config(state, early_exit_penalty_bps=params.value)
    return Outcome(
        state=state,
        effects=(
            effect_config_change(state, Event.EARLY_EXIT_PENALTY_UPDATED, params.caller, old, params.value, params.step),
        ),
    )


def apply_toggle_emergency_halt(state: FarmState, params: CallParams) -> Outcome:
    old = state.config.emergency_halt
    state = _with_config(state, emergency_halt=not old)
    return Outcome(
        state=state,
        effects=(effect_config_change(state, Event.EMERGENCY_HALT_TOGGLED, params.caller, old, not old, params.step),),
    )


def apply_withdraw_fees(state: FarmState, params: CallParams) -> Outcome:
    fees = state.accumulated_fees
    state = replace(state, accumulated_fees=0, fees_withdrawn=state.fees_withdrawn + fees)
    return Outcome(
        state=state,
        effects=(make_effect(state, Event.FEES_WITHDRAWN, params.step, participant=params.caller, amount=fees),),
        transfers=(Transfer(TransferKind.MINT_REWARD, params.caller, fees),),
    )


def apply_transfer_ownership(state: FarmState, params: CallParams) -> Outcome:
    old_owner = state.owner
    state = replace(state, owner=params.new_owner)
    return Outcome(
        state=state,
        effects=(
            make_effect(
                state, Event.OWNERSHIP_TRANSFERRED, params.step,
                participant=old_owner, counterparty=params.new_owner,
            ),
        ),
    )
