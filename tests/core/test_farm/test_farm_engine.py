"""Tests for tokenfarm/core/farm/engine.py: dispatch table + step function.

Tests cover known call sequences end-to-end through the engine.
"""

import pytest
from dataclasses import replace

from tokenfarm.core.farm import (
    Action,
    CallParams,
    EmergencyHalted,
    Event,
    FarmConfig,
    FarmInvariantError,
    FarmState,
    IndexOutOfBounds,
    InvalidAmount,
    InvalidOwner,
    NoFees,
    NoRewards,
    NotHalted,
    NotStaking,
    OutOfRange,
    ParamDomainError,
    Policy,
    StaleStep,
    StepResult,
    TransferKind,
    Unauthorized,
    UnsupportedAction,
    initial_state,
    step,
    step_or_raise,
)
from tokenfarm.core.farm.engine import error_for_rejection
from tokenfarm.core.farm.math import REWARD_UNIT

OWNER = "owner"
ALICE = "alice"
BOB = "bob"


def _run(state: FarmState, action: Action, caller: str, at: int, **kwargs) -> StepResult:
    return step(state, CallParams(action=action, caller=caller, step=at, **kwargs))


def _ok(state: FarmState, action: Action, caller: str, at: int, **kwargs) -> FarmState:
    r = _run(state, action, caller, at, **kwargs)
    assert r.accepted, r.rejection
    assert r.state is not None
    return r.state


def _base_state() -> FarmState:
    return initial_state(OWNER, policy=Policy.BASE)


def _staked(*deposits: tuple[str, int, int], state: FarmState | None = None) -> FarmState:
    s = state if state is not None else initial_state(OWNER)
    for who, amount, at in deposits:
        s = _ok(s, Action.DEPOSIT, who, at, amount=amount)
    return s


# ---------------------------------------------------------------------------
# deposit
# ---------------------------------------------------------------------------

class TestDeposit:
    def test_first_deposit(self):
        r = _run(initial_state(OWNER), Action.DEPOSIT, ALICE, 10, amount=100)
        assert r.accepted
        rec = r.state.records[ALICE]
        assert rec.staked_amount == 100
        assert rec.checkpoint == 10
        assert rec.has_staked is True
        assert rec.is_staking is True
        assert rec.staking_start_step == 10
        assert r.state.total_staked == 100
        assert r.state.roster == (ALICE,)
        assert r.transfers[0].kind == TransferKind.PULL_STAKE
        assert r.transfers[0].account == ALICE
        assert r.transfers[0].amount == 100
        assert r.effects[-1].event == Event.DEPOSITED
        assert r.effects[-1].total_staked_after == 100

    def test_zero_amount_rejected(self):
        r = _run(initial_state(OWNER), Action.DEPOSIT, ALICE, 10, amount=0)
        assert not r.accepted
        assert r.rejection == "invalid_amount"
        with pytest.raises(InvalidAmount):
            step_or_raise(initial_state(OWNER), CallParams(Action.DEPOSIT, ALICE, 10, amount=0))

    def test_halted_rejected(self):
        s = _ok(initial_state(OWNER), Action.TOGGLE_EMERGENCY_HALT, OWNER, 1)
        r = _run(s, Action.DEPOSIT, ALICE, 2, amount=100)
        assert r.rejection == "emergency_halted"

    def test_halt_checked_before_amount(self):
        s = _ok(initial_state(OWNER), Action.TOGGLE_EMERGENCY_HALT, OWNER, 1)
        assert _run(s, Action.DEPOSIT, ALICE, 2, amount=0).rejection == "emergency_halted"

    def test_halted_rejected_in_base_policy(self):
        s = _ok(_base_state(), Action.TOGGLE_EMERGENCY_HALT, OWNER, 1)
        with pytest.raises(EmergencyHalted):
            step_or_raise(s, CallParams(Action.DEPOSIT, ALICE, 2, amount=100))

    def test_top_up_settles_with_pre_deposit_stake(self):
        s = _staked((ALICE, 100, 10))
        s = _ok(s, Action.DEPOSIT, ALICE, 15, amount=300)
        rec = s.records[ALICE]
        # Five steps at 100% share, credited before the top-up.
        assert rec.pending_rewards == 5 * REWARD_UNIT
        assert rec.checkpoint == 15
        assert rec.staked_amount == 400
        assert rec.staking_start_step == 10
        assert s.roster == (ALICE,)

    def test_deposit_settles_other_stakers_before_total_changes(self):
        s = _staked((ALICE, 100, 10))
        s = _ok(s, Action.DEPOSIT, BOB, 20, amount=100)
        assert s.records[ALICE].pending_rewards == 10 * REWARD_UNIT
        assert s.records[ALICE].checkpoint == 20
        assert s.records[BOB].pending_rewards == 0

    def test_deposit_at_step_zero(self):
        s = _staked((ALICE, 100, 0))
        s = _ok(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 3)
        assert s.records[ALICE].pending_rewards == 3 * REWARD_UNIT


# ---------------------------------------------------------------------------
# withdraw
# ---------------------------------------------------------------------------

class TestWithdraw:
    def test_early_withdraw_applies_penalty(self):
        amount = 100 * REWARD_UNIT
        s = _staked((ALICE, amount, 10))
        r = _run(s, Action.WITHDRAW, ALICE, 10)
        assert r.accepted
        penalty = amount * 500 // 10_000
        assert r.transfers[0].kind == TransferKind.PAY_STAKE
        assert r.transfers[0].amount == amount - penalty
        assert r.state.total_staked == 0
        assert r.state.burned_penalties == penalty
        assert r.state.accumulated_fees == 0
        assert r.effects[-1].event == Event.WITHDRAWN
        assert r.effects[-1].penalty == penalty

    def test_withdraw_after_lock_is_full(self):
        amount = 100 * REWARD_UNIT
        s = _staked((ALICE, amount, 10))
        r = _run(s, Action.WITHDRAW, ALICE, 110)
        assert r.transfers[0].amount == amount
        assert r.state.burned_penalties == 0

    def test_short_lock_period(self):
        s = _ok(initial_state(OWNER), Action.SET_STAKING_LOCK_PERIOD, OWNER, 1, value=1)
        s = _staked((ALICE, 1000, 1), state=s)
        assert _run(s, Action.WITHDRAW, ALICE, 1).transfers[0].amount == 950
        assert _run(s, Action.WITHDRAW, ALICE, 3).transfers[0].amount == 1000

    def test_base_policy_never_penalizes(self):
        s = _staked((ALICE, 1000, 1), state=_base_state())
        r = _run(s, Action.WITHDRAW, ALICE, 1)
        assert r.transfers[0].amount == 1000

    def test_withdraw_settles_and_keeps_history(self):
        s = _staked((ALICE, 100, 10))
        s = _ok(s, Action.WITHDRAW, ALICE, 14)
        rec = s.records[ALICE]
        assert rec.pending_rewards == 4 * REWARD_UNIT
        assert rec.staked_amount == 0
        assert rec.is_staking is False
        assert rec.has_staked is True
        assert s.roster == (ALICE,)

    def test_second_withdraw_not_staking(self):
        s = _ok(_staked((ALICE, 100, 10)), Action.WITHDRAW, ALICE, 200)
        r = _run(s, Action.WITHDRAW, ALICE, 201)
        assert r.rejection == "not_staking"
        with pytest.raises(NotStaking):
            step_or_raise(s, CallParams(Action.WITHDRAW, ALICE, 201))

    def test_never_staked(self):
        assert _run(initial_state(OWNER), Action.WITHDRAW, ALICE, 1).rejection == "not_staking"

    def test_halted_extended(self):
        s = _ok(_staked((ALICE, 100, 10)), Action.TOGGLE_EMERGENCY_HALT, OWNER, 11)
        assert _run(s, Action.WITHDRAW, ALICE, 12).rejection == "emergency_halted"

    def test_halted_base_allows_withdraw(self):
        s = _ok(_staked((ALICE, 100, 10), state=_base_state()), Action.TOGGLE_EMERGENCY_HALT, OWNER, 11)
        assert _run(s, Action.WITHDRAW, ALICE, 12).accepted

    def test_lock_counted_from_first_deposit(self):
        s = _ok(_staked((ALICE, 1000, 10)), Action.WITHDRAW, ALICE, 500)
        s = _ok(s, Action.DEPOSIT, ALICE, 1000, amount=1000)
        assert s.records[ALICE].staking_start_step == 10
        r = _run(s, Action.WITHDRAW, ALICE, 1050)
        assert r.transfers[0].amount == 1000
        assert r.state.burned_penalties == 0

    def test_first_deposit_inside_lock_still_penalized(self):
        s = _ok(_staked((ALICE, 1000, 10)), Action.DEPOSIT, ALICE, 50, amount=1000)
        assert s.records[ALICE].staking_start_step == 10
        r = _run(s, Action.WITHDRAW, ALICE, 60)
        assert r.transfers[0].amount == 1900


# ---------------------------------------------------------------------------
# claim_rewards
# ---------------------------------------------------------------------------

class TestClaimRewards:
    def test_claim_applies_fee(self):
        s = _ok(_staked((ALICE, 100, 10)), Action.DISTRIBUTE_REWARDS_ALL, OWNER, 12)
        pending = s.records[ALICE].pending_rewards
        assert pending == 2 * REWARD_UNIT
        r = _run(s, Action.CLAIM_REWARDS, ALICE, 12)
        assert r.accepted
        fee = pending * 300 // 10_000
        assert r.transfers[0].kind == TransferKind.MINT_REWARD
        assert r.transfers[0].amount == pending - fee
        assert r.state.accumulated_fees == fee
        rec = r.state.records[ALICE]
        assert rec.pending_rewards == 0
        assert rec.total_rewards_claimed == pending - fee
        assert rec.last_claim_step == 12
        assert r.effects[0].event == Event.REWARDS_CLAIMED
        assert r.effects[0].fee == fee

    def test_configured_fee(self):
        s = _ok(initial_state(OWNER), Action.SET_WITHDRAWAL_FEE, OWNER, 1, value=500)
        s = _ok(_staked((ALICE, 100, 10), state=s), Action.DISTRIBUTE_REWARDS_ALL, OWNER, 11)
        r = _run(s, Action.CLAIM_REWARDS, ALICE, 11)
        assert r.transfers[0].amount == REWARD_UNIT * 9500 // 10_000

    def test_no_rewards(self):
        s = _staked((ALICE, 100, 10))
        r = _run(s, Action.CLAIM_REWARDS, ALICE, 10)
        assert not r.accepted
        assert r.rejection == "no_rewards"
        assert r.state is None
        assert s.records[ALICE].pending_rewards == 0
        with pytest.raises(NoRewards):
            step_or_raise(s, CallParams(Action.CLAIM_REWARDS, ALICE, 10))

    def test_claim_after_full_withdraw(self):
        s = _ok(_staked((ALICE, 100, 10), state=_base_state()), Action.WITHDRAW, ALICE, 20)
        r = _run(s, Action.CLAIM_REWARDS, ALICE, 30)
        assert r.accepted
        assert r.transfers[0].amount == 10 * REWARD_UNIT - (10 * REWARD_UNIT * 300 // 10_000)

    def test_halted_extended(self):
        s = _ok(_staked((ALICE, 100, 10)), Action.DISTRIBUTE_REWARDS_ALL, OWNER, 12)
        s = _ok(s, Action.TOGGLE_EMERGENCY_HALT, OWNER, 12)
        assert _run(s, Action.CLAIM_REWARDS, ALICE, 13).rejection == "emergency_halted"

    def test_halted_base_allows_claim(self):
        s = _ok(_staked((ALICE, 100, 10), state=_base_state()), Action.DISTRIBUTE_REWARDS_ALL, OWNER, 12)
        s = _ok(s, Action.TOGGLE_EMERGENCY_HALT, OWNER, 12)
        assert _run(s, Action.CLAIM_REWARDS, ALICE, 13).accepted


# ---------------------------------------------------------------------------
# distribute_rewards_all
# ---------------------------------------------------------------------------

class TestDistributeRewardsAll:
    def test_single_staker_gets_full_rate(self):
        s = _ok(_staked((ALICE, 100, 10)), Action.DISTRIBUTE_REWARDS_ALL, OWNER, 12)
        assert s.records[ALICE].pending_rewards == 2 * REWARD_UNIT

    def test_proportional(self):
        s = _staked((ALICE, 100, 5), (BOB, 300, 5))
        r = _run(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 6)
        a = r.state.records[ALICE].pending_rewards
        b = r.state.records[BOB].pending_rewards
        assert a == REWARD_UNIT // 4
        assert b == 3 * a

    def test_effects_in_roster_order(self):
        s = _staked((BOB, 300, 5), (ALICE, 100, 5))
        r = _run(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 9)
        events = [e.event for e in r.effects]
        assert events == [Event.REWARDS_ACCRUED, Event.REWARDS_ACCRUED, Event.REWARDS_DISTRIBUTED]
        assert [e.participant for e in r.effects[:2]] == [BOB, ALICE]
        summary = r.effects[-1]
        assert summary.participant_count == 2
        assert summary.step == 9
        assert summary.amount == 4 * REWARD_UNIT

    def test_repeat_at_same_step_is_noop(self):
        s = _ok(_staked((ALICE, 100, 10)), Action.DISTRIBUTE_REWARDS_ALL, OWNER, 12)
        s2 = _ok(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 12)
        assert s2.records[ALICE].pending_rewards == s.records[ALICE].pending_rewards
        assert s2.total_rewards_accrued == s.total_rewards_accrued

    def test_skips_withdrawn(self):
        s = _staked((ALICE, 100, 10), (BOB, 100, 10), state=_base_state())
        s = _ok(s, Action.WITHDRAW, BOB, 12)
        s = _ok(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 20)
        assert s.records[BOB].pending_rewards == REWARD_UNIT
        assert s.records[ALICE].pending_rewards == REWARD_UNIT + 8 * REWARD_UNIT

    def test_no_overpayment_after_exit(self):
        # Bob leaves half-way; Alice must not be paid for the full interval at 100% share.
        s = _staked((ALICE, 100, 1), (BOB, 100, 1), state=_base_state())
        s = _ok(s, Action.WITHDRAW, BOB, 101)
        s = _ok(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 201)
        assert s.records[ALICE].pending_rewards == 150 * REWARD_UNIT
        assert s.records[BOB].pending_rewards == 50 * REWARD_UNIT
        assert s.total_rewards_accrued == 200 * REWARD_UNIT

    def test_owner_only(self):
        s = _staked((ALICE, 100, 10))
        assert _run(s, Action.DISTRIBUTE_REWARDS_ALL, ALICE, 12).rejection == "unauthorized"
        with pytest.raises(Unauthorized):
            step_or_raise(s, CallParams(Action.DISTRIBUTE_REWARDS_ALL, ALICE, 12))

    def test_halted_extended(self):
        s = _ok(initial_state(OWNER), Action.TOGGLE_EMERGENCY_HALT, OWNER, 1)
        assert _run(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 2).rejection == "emergency_halted"

    def test_custom_authorizer(self):
        s = _staked((ALICE, 100, 10))
        params = CallParams(Action.DISTRIBUTE_REWARDS_ALL, "operator", 12)
        assert not step(s, params).accepted
        assert step(s, params, authorizer=lambda who: who == "operator").accepted


# ---------------------------------------------------------------------------
# emergency_withdraw
# ---------------------------------------------------------------------------

class TestEmergencyWithdraw:
    def test_full_stake_returned(self):
        amount = 100 * REWARD_UNIT
        s = _ok(_staked((ALICE, amount, 10)), Action.TOGGLE_EMERGENCY_HALT, OWNER, 11)
        r = _run(s, Action.EMERGENCY_WITHDRAW, ALICE, 12)
        assert r.accepted
        assert r.transfers[0].kind == TransferKind.PAY_STAKE
        assert r.transfers[0].amount == amount
        assert r.state.burned_penalties == 0
        assert r.state.total_staked == 0
        rec = r.state.records[ALICE]
        assert rec.staked_amount == 0
        assert rec.is_staking is False
        # Not settled.
        assert rec.pending_rewards == 0
        assert rec.checkpoint == 10

    def test_keeps_pending_rewards(self):
        s = _ok(_staked((ALICE, 100, 10)), Action.DISTRIBUTE_REWARDS_ALL, OWNER, 15)
        s = _ok(s, Action.TOGGLE_EMERGENCY_HALT, OWNER, 15)
        s = _ok(s, Action.EMERGENCY_WITHDRAW, ALICE, 20)
        assert s.records[ALICE].pending_rewards == 5 * REWARD_UNIT

    def test_other_stakers_settled_against_old_total(self):
        s = _staked((ALICE, 100, 10), (BOB, 100, 10))
        s = _ok(s, Action.TOGGLE_EMERGENCY_HALT, OWNER, 10)
        s = _ok(s, Action.EMERGENCY_WITHDRAW, ALICE, 20)
        assert s.records[BOB].pending_rewards == 5 * REWARD_UNIT
        assert s.records[ALICE].pending_rewards == 0

    def test_requires_halt(self):
        s = _staked((ALICE, 100, 10))
        assert _run(s, Action.EMERGENCY_WITHDRAW, ALICE, 11).rejection == "not_halted"
        with pytest.raises(NotHalted):
            step_or_raise(s, CallParams(Action.EMERGENCY_WITHDRAW, ALICE, 11))

    def test_requires_staking(self):
        s = _ok(initial_state(OWNER), Action.TOGGLE_EMERGENCY_HALT, OWNER, 1)
        assert _run(s, Action.EMERGENCY_WITHDRAW, ALICE, 2).rejection == "not_staking"

    def test_unsupported_in_base_policy(self):
        s = _ok(_staked((ALICE, 100, 10), state=_base_state()), Action.TOGGLE_EMERGENCY_HALT, OWNER, 11)
        with pytest.raises(UnsupportedAction):
            step_or_raise(s, CallParams(Action.EMERGENCY_WITHDRAW, ALICE, 12))


# ---------------------------------------------------------------------------
# owner configuration
# ---------------------------------------------------------------------------

class TestOwnerConfiguration:
    def test_set_reward_per_step(self):
        r = _run(initial_state(OWNER), Action.SET_REWARD_PER_STEP, OWNER, 1, value=2 * REWARD_UNIT)
        assert r.state.config.reward_per_step == 2 * REWARD_UNIT
        assert r.effects[-1].event == Event.REWARD_PER_STEP_UPDATED
        assert r.effects[-1].old_value == REWARD_UNIT
        assert r.effects[-1].new_value == 2 * REWARD_UNIT

    def test_rate_change_settles_first(self):
        s = _staked((ALICE, 100, 1))
        s = _ok(s, Action.SET_REWARD_PER_STEP, OWNER, 11, value=2 * REWARD_UNIT)
        assert s.records[ALICE].pending_rewards == 10 * REWARD_UNIT
        s = _ok(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 21)
        assert s.records[ALICE].pending_rewards == 30 * REWARD_UNIT

    def test_set_reward_per_step_out_of_range(self):
        s = initial_state(OWNER)
        assert _run(s, Action.SET_REWARD_PER_STEP, OWNER, 1, value=11 * REWARD_UNIT).rejection == (
            "out_of_range:reward_per_step"
        )
        with pytest.raises(OutOfRange):
            step_or_raise(s, CallParams(Action.SET_REWARD_PER_STEP, OWNER, 1, value=1))

    def test_set_reward_range_clamps_rate(self):
        r = _run(initial_state(OWNER), Action.SET_REWARD_RANGE, OWNER, 1,
                 lower=2 * REWARD_UNIT, upper=5 * REWARD_UNIT)
        cfg = r.state.config
        assert (cfg.min_reward_per_step, cfg.reward_per_step, cfg.max_reward_per_step) == (
            2 * REWARD_UNIT, 2 * REWARD_UNIT, 5 * REWARD_UNIT,
        )
        assert [e.event for e in r.effects] == [
            Event.MIN_REWARD_PER_STEP_UPDATED,
            Event.MAX_REWARD_PER_STEP_UPDATED,
            Event.REWARD_PER_STEP_UPDATED,
        ]

    def test_set_reward_range_keeps_rate_inside(self):
        r = _run(initial_state(OWNER), Action.SET_REWARD_RANGE, OWNER, 1, lower=1, upper=3 * REWARD_UNIT)
        assert r.state.config.reward_per_step == REWARD_UNIT
        assert len(r.effects) == 2

    @pytest.mark.parametrize("lower,upper", [(0, 10), (10, 5)])
    def test_set_reward_range_invalid(self, lower, upper):
        r = _run(initial_state(OWNER), Action.SET_REWARD_RANGE, OWNER, 1, lower=lower, upper=upper)
        assert r.rejection == "out_of_range:reward_range"

    def test_caps(self):
        s = initial_state(OWNER)
        with pytest.raises(OutOfRange):
            step_or_raise(s, CallParams(Action.SET_STAKING_LOCK_PERIOD, OWNER, 1, value=20_000))
        with pytest.raises(OutOfRange):
            step_or_raise(s, CallParams(Action.SET_EARLY_EXIT_PENALTY, OWNER, 1, value=3_000))
        with pytest.raises(OutOfRange):
            step_or_raise(s, CallParams(Action.SET_WITHDRAWAL_FEE, OWNER, 1, value=1_500))

    def test_setters_record_old_and_new(self):
        s = initial_state(OWNER)
        r = _run(s, Action.SET_STAKING_LOCK_PERIOD, OWNER, 1, value=200)
        assert r.state.config.lock_period_steps == 200
        assert (r.effects[0].old_value, r.effects[0].new_value) == (100, 200)
        r = _run(s, Action.SET_EARLY_EXIT_PENALTY, OWNER, 1, value=1_000)
        assert r.state.config.early_exit_penalty_bps == 1_000
        assert r.effects[0].event == Event.EARLY_EXIT_PENALTY_UPDATED

    def test_lock_and_penalty_unsupported_in_base(self):
        s = _base_state()
        assert _run(s, Action.SET_STAKING_LOCK_PERIOD, OWNER, 1, value=5).rejection == "unsupported_action"
        assert _run(s, Action.SET_EARLY_EXIT_PENALTY, OWNER, 1, value=5).rejection == "unsupported_action"

    @pytest.mark.parametrize(
        "action,kwargs",
        [
            (Action.SET_REWARD_PER_STEP, {"value": REWARD_UNIT}),
            (Action.SET_REWARD_RANGE, {"lower": 1, "upper": 2}),
            (Action.SET_WITHDRAWAL_FEE, {"value": 1}),
            (Action.SET_STAKING_LOCK_PERIOD, {"value": 1}),
            (Action.SET_EARLY_EXIT_PENALTY, {"value": 1}),
            (Action.TOGGLE_EMERGENCY_HALT, {}),
            (Action.WITHDRAW_FEES, {}),
            (Action.TRANSFER_OWNERSHIP, {"new_owner": BOB}),
        ],
    )
    def test_owner_only(self, action, kwargs):
        assert _run(initial_state(OWNER), action, ALICE, 1, **kwargs).rejection == "unauthorized"

    def test_toggle_emergency_halt(self):
        s = _ok(initial_state(OWNER), Action.TOGGLE_EMERGENCY_HALT, OWNER, 1)
        assert s.config.emergency_halt is True
        s = _ok(s, Action.TOGGLE_EMERGENCY_HALT, OWNER, 2)
        assert s.config.emergency_halt is False


class TestFeesAndOwnership:
    def test_withdraw_fees(self):
        s = _ok(_staked((ALICE, 100, 10)), Action.DISTRIBUTE_REWARDS_ALL, OWNER, 12)
        s = _ok(s, Action.CLAIM_REWARDS, ALICE, 12)
        fees = s.accumulated_fees
        assert fees > 0
        r = _run(s, Action.WITHDRAW_FEES, OWNER, 13)
        assert r.state.accumulated_fees == 0
        assert r.state.fees_withdrawn == fees
        assert r.transfers[0].kind == TransferKind.MINT_REWARD
        assert r.transfers[0].account == OWNER
        assert r.transfers[0].amount == fees

    def test_withdraw_fees_none(self):
        with pytest.raises(NoFees):
            step_or_raise(initial_state(OWNER), CallParams(Action.WITHDRAW_FEES, OWNER, 1))

    def test_transfer_ownership(self):
        r = _run(initial_state(OWNER), Action.TRANSFER_OWNERSHIP, OWNER, 1, new_owner=ALICE)
        s = r.state
        assert s.owner == ALICE
        assert (r.effects[0].participant, r.effects[0].counterparty) == (OWNER, ALICE)
        assert _run(s, Action.DISTRIBUTE_REWARDS_ALL, OWNER, 2).rejection == "unauthorized"
        assert _run(s, Action.DISTRIBUTE_REWARDS_ALL, ALICE, 2).accepted

    def test_transfer_ownership_empty(self):
        with pytest.raises(InvalidOwner):
            step_or_raise(initial_state(OWNER), CallParams(Action.TRANSFER_OWNERSHIP, OWNER, 1, new_owner=""))


# ---------------------------------------------------------------------------
# domain + clock
# ---------------------------------------------------------------------------

class TestDomainAndClock:
    def test_stale_step_rejected(self):
        s = _staked((ALICE, 100, 10))
        assert _run(s, Action.DEPOSIT, BOB, 9, amount=1).rejection == "stale_step"
        with pytest.raises(StaleStep):
            step_or_raise(s, CallParams(Action.DEPOSIT, BOB, 9, amount=1))

    def test_repeated_step_accepted(self):
        s = _staked((ALICE, 100, 10), (BOB, 100, 10))
        assert s.now_step == 10

    @pytest.mark.parametrize("amount", [-1, True, 2**256])
    def test_amount_domain(self, amount):
        r = _run(initial_state(OWNER), Action.DEPOSIT, ALICE, 1, amount=amount)
        assert r.rejection == "param_domain:amount"

    def test_caller_domain(self):
        with pytest.raises(ParamDomainError):
            step_or_raise(initial_state(OWNER), CallParams(Action.DEPOSIT, "", 1, amount=1))

    def test_negative_step(self):
        assert _run(initial_state(OWNER), Action.DEPOSIT, ALICE, -1, amount=1).rejection == "param_domain:step"

    def test_rejection_leaves_input_untouched(self):
        s = _staked((ALICE, 100, 10))
        before = dict(s.records)
        _run(s, Action.WITHDRAW, BOB, 11)
        _run(s, Action.CLAIM_REWARDS, ALICE, 11)
        assert dict(s.records) == before
        assert s.now_step == 10

    def test_invariant_violation_reported(self):
        broken = replace(_staked((ALICE, 100, 10)), total_staked=5)
        with pytest.raises(FarmInvariantError) as exc:
            step_or_raise(broken, CallParams(Action.DEPOSIT, BOB, 11, amount=1))
        assert "inv_total_staked_matches_records" in exc.value.violations

    def test_error_for_rejection_mapping(self):
        assert isinstance(error_for_rejection("out_of_range:withdrawal_fee_bps"), OutOfRange)
        assert isinstance(error_for_rejection("index_out_of_bounds"), IndexOutOfBounds)
        assert isinstance(error_for_rejection("index_out_of_bounds"), IndexError)
