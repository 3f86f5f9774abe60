"""Exception types for the farm engine.

Used by ``step_or_raise()`` in ``engine.py`` for callers that prefer
exceptions over ``StepResult`` inspection. Each rejection code returned by
``step()`` maps to exactly one class here.
"""

from __future__ import annotations


class FarmError(Exception):
    """Base class: a rejected precondition. No state was changed."""

    code = "farm_error"


class InvalidAmount(FarmError):
    code = "invalid_amount"


class Unauthorized(FarmError):
    code = "unauthorized"


class NotStaking(FarmError):
    code = "not_staking"


class NothingStaked(FarmError):
    code = "nothing_staked"


class NoRewards(FarmError):
    code = "no_rewards"


class NoFees(FarmError):
    code = "no_fees"


class OutOfRange(FarmError):
    """A configuration value outside its cap."""

    code = "out_of_range"


class EmergencyHalted(FarmError):
    code = "emergency_halted"


class NotHalted(FarmError):
    """Emergency withdraw requested while the farm is running normally."""

    code = "not_halted"


class UnsupportedAction(FarmError):
    """Action not offered by the configured policy."""

    code = "unsupported_action"


class InvalidOwner(FarmError):
    code = "invalid_owner"


class StaleStep(FarmError):
    """The supplied step is lower than a step already accepted."""

    code = "stale_step"


class TransferFailed(FarmError):
    """An asset collaborator rejected the requested movement."""

    code = "transfer_failed"


class IndexOutOfBounds(FarmError, IndexError):
    code = "index_out_of_bounds"


class ParamDomainError(FarmError):
    """A parameter is not an integer in [0, 2**256 - 1] (or an empty identity)."""

    code = "param_domain"


class FarmInvariantError(FarmError):
    """Raised when a post-state violates one or more invariants."""

    code = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


ERRORS_BY_CODE: dict[str, type[FarmError]] = {
    cls.code: cls
    for cls in (
        InvalidAmount,
        Unauthorized,
        NotStaking,
        NothingStaked,
        NoRewards,
        NoFees,
        OutOfRange,
        EmergencyHalted,
        NotHalted,
        UnsupportedAction,
        InvalidOwner,
        StaleStep,
        TransferFailed,
        IndexOutOfBounds,
        ParamDomainError,
    )
}
