"""
Stateful farm service: binds the pure ledger core to the two asset collaborators.

Each public method builds a `CallParams`, runs `step_or_raise` against the
current state, performs the (at most one) asset transfer the transition asks
for, and only then commits the new state and appends the effects to the audit
log. A rejected call or a failed transfer leaves state, log and balances as
they were.

The caller identity is assumed already authenticated; the current step is
supplied by the caller on every mutating call.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..core.farm import views
from ..core.farm.engine import step_or_raise
from ..core.farm.errors import FarmError, TransferFailed
from ..core.farm.state import initial_state
from ..core.farm.types import (
    Action,
    Authorizer,
    CallParams,
    ContractInfo,
    Effect,
    FarmConfig,
    FarmState,
    Identity,
    StepResult,
    Transfer,
    TransferKind,
    UserInfo,
)
from ..state.assets import AssetError, FungibleAsset

logger = logging.getLogger(__name__)

DEFAULT_FARM_ACCOUNT: Identity = "farm"


class FarmService:
    """Owns one `FarmState` and the audit log of every accepted call."""

    def __init__(
        self,
        stake_asset: FungibleAsset,
        reward_asset: FungibleAsset,
        *,
        owner: Identity,
        config: Optional[FarmConfig] = None,
        account: Identity = DEFAULT_FARM_ACCOUNT,
        authorizer: Optional[Authorizer] = None,
        state: Optional[FarmState] = None,
    ):
        if state is not None:
            if config is not None:
                raise ValueError("pass either config or state, not both")
            if owner != state.owner:
                raise ValueError(f"owner {owner!r} does not match state owner {state.owner!r}")
        self.stake_asset = stake_asset
        self.reward_asset = reward_asset
        self.account = account
        self._authorizer = authorizer
        self._state = state if state is not None else initial_state(owner, config)
        self._events: List[Effect] = []

    @property
    def state(self) -> FarmState:
        return self._state

    @property
    def events(self) -> Sequence[Effect]:
        return tuple(self._events)

    # -- execution ----------------------------------------------------------

    def _pay(self, transfer: Transfer) -> bool:
        if transfer.kind is TransferKind.PULL_STAKE:
            return self.stake_asset.transfer_from(self.account, transfer.account, self.account, transfer.amount)
        if transfer.kind is TransferKind.PAY_STAKE:
            return self.stake_asset.transfer(self.account, transfer.account, transfer.amount)
        if transfer.kind is TransferKind.MINT_REWARD:
            self.reward_asset.mint(self.account, transfer.account, transfer.amount)
            return True
        raise ValueError(f"unknown transfer kind: {transfer.kind}")

    def _run_transfers(self, params: CallParams, transfers: Sequence[Transfer]) -> None:
        for transfer in transfers:
            try:
                ok = self._pay(transfer)
            except AssetError as exc:
                logger.warning("%s by %s: %s of %d failed: %s",
                               params.action.value, params.caller, transfer.kind.value, transfer.amount, exc)
                raise TransferFailed(f"{transfer.kind.value} of {transfer.amount} to {transfer.account}: {exc}") from exc
            if not ok:
                logger.warning("%s by %s: %s of %d rejected by asset",
                               params.action.value, params.caller, transfer.kind.value, transfer.amount)
                raise TransferFailed(f"{transfer.kind.value} of {transfer.amount} for {transfer.account} rejected")

    def execute(self, params: CallParams) -> StepResult:
        """Run one call atomically. Raises a `FarmError` subclass on rejection."""
        try:
            result = step_or_raise(self._state, params, self._authorizer)
        except FarmError as exc:
            logger.warning("%s by %s at step %d rejected: %s", params.action.value, params.caller, params.step, exc)
            raise

        self._run_transfers(params, result.transfers)

        assert result.state is not None
        self._state = result.state
        self._events.extend(result.effects)
        for effect in result.effects:
            logger.debug("%s %s amount=%d step=%d", effect.event.value, effect.participant, effect.amount, effect.step)
        logger.info("%s by %s at step %d accepted (%d effects)",
                    params.action.value, params.caller, params.step, len(result.effects))
        return result

    def _call(self, action: Action, caller: Identity, step: int, **kwargs) -> StepResult:
        return self.execute(CallParams(action=action, caller=caller, step=step, **kwargs))

    # -- participant operations ----------------------------------------------

    def deposit(self, caller: Identity, amount: int, *, step: int) -> StepResult:
        return self._call(Action.DEPOSIT, caller, step, amount=amount)

    def withdraw(self, caller: Identity, *, step: int) -> StepResult:
        return self._call(Action.WITHDRAW, caller, step)

    def claim_rewards(self, caller: Identity, *, step: int) -> StepResult:
        return self._call(Action.CLAIM_REWARDS, caller, step)

    def emergency_withdraw(self, caller: Identity, *, step: int) -> StepResult:
        return self._call(Action.EMERGENCY_WITHDRAW, caller, step)

    # -- owner operations ---------------------------------------------------

    def distribute_rewards_all(self, caller: Identity, *, step: int) -> StepResult:
        return self._call(Action.DISTRIBUTE_REWARDS_ALL, caller, step)

    def set_reward_per_step(self, caller: Identity, value: int, *, step: int) -> StepResult:
        return self._call(Action.SET_REWARD_PER_STEP, caller, step, value=value)

    def set_reward_range(self, caller: Identity, lower: int, upper: int, *, step: int) -> StepResult:
        return self._call(Action.SET_REWARD_RANGE, caller, step, lower=lower, upper=upper)

    def set_withdrawal_fee(self, caller: Identity, fee_bps: int, *, step: int) -> StepResult:
        return self._call(Action.SET_WITHDRAWAL_FEE, caller, step, value=fee_bps)

    def set_staking_lock_period(self, caller: Identity, steps: int, *, step: int) -> StepResult:
        return self._call(Action.SET_STAKING_LOCK_PERIOD, caller, step, value=steps)

    def set_early_exit_penalty(self, caller: Identity, penalty_bps: int, *, step: int) -> StepResult:
        return self._call(Action.SET_EARLY_EXIT_PENALTY, caller, step, value=penalty_bps)

    def toggle_emergency_halt(self, caller: Identity, *, step: int) -> StepResult:
        return self._call(Action.TOGGLE_EMERGENCY_HALT, caller, step)

    def withdraw_fees(self, caller: Identity, *, step: int) -> StepResult:
        return self._call(Action.WITHDRAW_FEES, caller, step)

    def transfer_ownership(self, caller: Identity, new_owner: Identity, *, step: int) -> StepResult:
        return self._call(Action.TRANSFER_OWNERSHIP, caller, step, new_owner=new_owner)

    # -- views --------------------------------------------------------------

    @property
    def owner(self) -> Identity:
        return self._state.owner

    def get_pending_rewards(self, identity: Identity) -> int:
        return views.get_pending_rewards(self._state, identity)

    def preview_pending_rewards(self, identity: Identity, *, step: int) -> int:
        return views.preview_pending_rewards(self._state, identity, step)

    def get_staking_balance(self, identity: Identity) -> int:
        return views.get_staking_balance(self._state, identity)

    def get_user_info(self, identity: Identity) -> UserInfo:
        return views.get_user_info(self._state, identity)

    def get_contract_info(self) -> ContractInfo:
        return views.get_contract_info(self._state)

    def get_accumulated_fees(self) -> int:
        return views.get_accumulated_fees(self._state)

    def get_staker_count(self) -> int:
        return views.get_staker_count(self._state)

    def get_staker_by_index(self, index: int) -> Identity:
        return views.get_staker_by_index(self._state, index)
