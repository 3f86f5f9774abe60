"""Dispatch-table engine for the farm ledger.

``step(state, params)`` is the single entry point. It:

1. Validates parameter domains (unsigned 256-bit integers, non-empty caller).
2. Rejects steps that run the clock backwards.
3. Dispatches to the action's guard and update functions.
4. Checks all invariants on the post-state.
5. Returns a ``StepResult`` (accepted, or rejected with a reason code).

The input state is never modified, so a rejected call has no effect at all.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from .errors import ERRORS_BY_CODE, FarmError, FarmInvariantError, ParamDomainError
from .guards import (
    Rejection,
    guard_claim_rewards,
    guard_deposit,
    guard_distribute_rewards_all,
    guard_emergency_withdraw,
    guard_set_early_exit_penalty,
    guard_set_reward_per_step,
    guard_set_reward_range,
    guard_set_staking_lock_period,
    guard_set_withdrawal_fee,
    guard_toggle_emergency_halt,
    guard_transfer_ownership,
    guard_withdraw,
    guard_withdraw_fees,
)
from .invariants import check_all
from .math import UINT256_MAX
from .types import Action, Authorizer, CallParams, FarmState, StepResult
from .updates import (
    Outcome,
    apply_claim_rewards,
    apply_deposit,
    apply_distribute_rewards_all,
    apply_emergency_withdraw,
    apply_set_early_exit_penalty,
    apply_set_reward_per_step,
    apply_set_reward_range,
    apply_set_staking_lock_period,
    apply_set_withdrawal_fee,
    apply_toggle_emergency_halt,
    apply_transfer_ownership,
    apply_withdraw,
    apply_withdraw_fees,
)

GuardFn = Callable[[FarmState, CallParams, bool], Rejection]
UpdateFn = Callable[[FarmState, CallParams], Outcome]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn]] = {
    Action.DEPOSIT: (guard_deposit, apply_deposit),
    Action.WITHDRAW: (guard_withdraw, apply_withdraw),
    Action.CLAIM_REWARDS: (guard_claim_rewards, apply_claim_rewards),
    Action.DISTRIBUTE_REWARDS_ALL: (guard_distribute_rewards_all, apply_distribute_rewards_all),
    Action.EMERGENCY_WITHDRAW: (guard_emergency_withdraw, apply_emergency_withdraw),
    Action.SET_REWARD_PER_STEP: (guard_set_reward_per_step, apply_set_reward_per_step),
    Action.SET_REWARD_RANGE: (guard_set_reward_range, apply_set_reward_range),
    Action.SET_WITHDRAWAL_FEE: (guard_set_withdrawal_fee, apply_set_withdrawal_fee),
    Action.SET_STAKING_LOCK_PERIOD: (guard_set_staking_lock_period, apply_set_staking_lock_period),
    Action.SET_EARLY_EXIT_PENALTY: (guard_set_early_exit_penalty, apply_set_early_exit_penalty),
    Action.TOGGLE_EMERGENCY_HALT: (guard_toggle_emergency_halt, apply_toggle_emergency_halt),
    Action.WITHDRAW_FEES: (guard_withdraw_fees, apply_withdraw_fees),
    Action.TRANSFER_OWNERSHIP: (guard_transfer_ownership, apply_transfer_ownership),
}

# Integer fields read by each action, besides `step` which every action reads.
_PARAM_FIELDS: dict[Action, tuple[str, ...]] = {
    Action.DEPOSIT: ("amount",),
    Action.SET_REWARD_PER_STEP: ("value",),
    Action.SET_REWARD_RANGE: ("lower", "upper"),
    Action.SET_WITHDRAWAL_FEE: ("value",),
    Action.SET_STAKING_LOCK_PERIOD: ("value",),
    Action.SET_EARLY_EXIT_PENALTY: ("value",),
}


def _validate_params(params: CallParams) -> str | None:
    """Check parameter domains. Returns rejection reason or None."""
    if not isinstance(params.caller, str) or not params.caller:
        return "param_domain:caller"
    for field in ("step",) + _PARAM_FIELDS.get(params.action, ()):
        val = getattr(params, field)
        if not isinstance(val, int) or isinstance(val, bool) or val < 0 or val > UINT256_MAX:
            return f"param_domain:{field}"
    return None


def _is_owner(state: FarmState) -> Authorizer:
    return lambda identity: identity == state.owner


def step(state: FarmState, params: CallParams, authorizer: Authorizer | None = None) -> StepResult:
    """Execute one call against the given state.

    `authorizer` decides whether the caller may run owner-only actions; the
    default compares against ``state.owner``.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason string.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    domain_err = _validate_params(params)
    if domain_err is not None:
        return StepResult(accepted=False, rejection=domain_err)

    if params.step < state.now_step:
        return StepResult(accepted=False, rejection="stale_step")

    guard_fn, update_fn = entry
    authorized = (authorizer or _is_owner(state))(params.caller)

    rejection = guard_fn(state, params, authorized)
    if rejection is not None:
        return StepResult(accepted=False, rejection=rejection)

    outcome = update_fn(replace(state, now_step=params.step), params)

    violations = check_all(outcome.state)
    if violations:
        return StepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
        )

    return StepResult(
        accepted=True,
        state=outcome.state,
        effects=outcome.effects,
        transfers=outcome.transfers,
    )


def error_for_rejection(reason: str) -> FarmError:
    """Exception instance for a ``StepResult.rejection`` code."""
    if reason.startswith("invariant:"):
        return FarmInvariantError(reason.removeprefix("invariant:").split(","))
    code = reason.split(":", 1)[0]
    if code == "unknown_action":
        return ParamDomainError(reason)
    return ERRORS_BY_CODE.get(code, FarmError)(reason)


def step_or_raise(state: FarmState, params: CallParams, authorizer: Authorizer | None = None) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        ParamDomainError: Parameter outside its integer domain.
        FarmInvariantError: Post-state violates one or more invariants.
        FarmError: The specific subclass for the failed precondition.
    """
    result = step(state, params, authorizer)
    if result.accepted:
        return result
    raise error_for_rejection(result.rejection or "")
