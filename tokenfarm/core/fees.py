"""
Withdrawal fee and early-exit penalty kernels (deterministic, integer-only).

Both use floor rounding in favour of the participant: the fee or penalty is
`floor(amount * bps / 10_000)` and the participant keeps the rest, so
`fee + net == gross` exactly and no unit is created or lost.
"""

from __future__ import annotations

from dataclasses import dataclass


BPS_DENOM = 10_000


def _require_uint(name: str, v: object) -> None:
    if not isinstance(v, int) or isinstance(v, bool):
        raise TypeError(f"{name} must be an int")
    if v < 0:
        raise ValueError(f"{name} must be non-negative: {v}")


def _require_bps(name: str, v: object) -> None:
    _require_uint(name, v)
    if v > BPS_DENOM:  # type: ignore[operator]
        raise ValueError(f"{name} must be in [0, {BPS_DENOM}]: {v}")


@dataclass(frozen=True)
class FeeBreakdown:
    gross: int
    fee: int
    net: int

    def __post_init__(self) -> None:
        for name in ("gross", "fee", "net"):
            _require_uint(name, getattr(self, name))
        if self.fee + self.net != self.gross:
            raise ValueError("fee + net must equal gross")


@dataclass(frozen=True)
class PenaltyBreakdown:
    staked: int
    penalty: int
    returned: int
    in_lock: bool

    def __post_init__(self) -> None:
        for name in ("staked", "penalty", "returned"):
            _require_uint(name, getattr(self, name))
        if self.penalty + self.returned != self.staked:
            raise ValueError("penalty + returned must equal staked")


def bps_of(amount: int, bps: int) -> int:
    """``floor(amount * bps / 10_000)``."""
    _require_uint("amount", amount)
    _require_bps("bps", bps)
    return (amount * bps) // BPS_DENOM


def split_withdrawal_fee(amount: int, fee_bps: int) -> FeeBreakdown:
    """Split a reward claim into the owner's fee and the participant's net amount."""
    fee = bps_of(amount, fee_bps)
    return FeeBreakdown(gross=amount, fee=fee, net=amount - fee)


def early_exit_penalty(staked: int, penalty_bps: int, elapsed: int, lock_period: int) -> PenaltyBreakdown:
    """
    Penalty for leaving before `lock_period` steps have elapsed since staking began.

    No penalty once `elapsed >= lock_period` (so a zero lock period never penalizes).
    """
    _require_uint("elapsed", elapsed)
    _require_uint("lock_period", lock_period)
    in_lock = elapsed < lock_period
    penalty = bps_of(staked, penalty_bps) if in_lock else 0
    return PenaltyBreakdown(staked=staked, penalty=penalty, returned=staked - penalty, in_lock=in_lock)
