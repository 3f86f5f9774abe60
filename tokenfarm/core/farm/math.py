"""Pure arithmetic for the `farm` staking engine.

Every function is stateless and operates on plain Python ints. Division is
floor division (`//`); all operands are non-negative, so this truncates toward
zero and the remainder is forfeited.
"""

from __future__ import annotations

# Domain constants
REWARD_UNIT: int = 10**18
UINT256_MAX: int = 2**256 - 1

DEFAULT_REWARD_PER_STEP: int = REWARD_UNIT
DEFAULT_MIN_REWARD_PER_STEP: int = REWARD_UNIT // 10
DEFAULT_MAX_REWARD_PER_STEP: int = 10 * REWARD_UNIT
MAX_REWARD_PER_STEP: int = 1_000 * REWARD_UNIT

MAX_WITHDRAWAL_FEE_BPS: int = 1_000      # 10%
MAX_EARLY_EXIT_PENALTY_BPS: int = 2_000  # 20%
MAX_LOCK_PERIOD_STEPS: int = 10_000


def elapsed_steps(current_step: int, checkpoint: int) -> int:
    """Steps since `checkpoint`; 0 when the clock has not moved past it."""
    return current_step - checkpoint if current_step > checkpoint else 0


def accrued_reward(reward_per_step: int, elapsed: int, staked: int, total_staked: int) -> int:
    """``floor(reward_per_step * elapsed * staked / total_staked)``.

    Multiplication happens before the single division so the only precision
    loss is the final truncation. Returns 0 when nothing is staked.
    """
    if elapsed <= 0 or staked <= 0 or total_staked <= 0:
        return 0
    return (reward_per_step * elapsed * staked) // total_staked


def clamp(value: int, lo: int, hi: int) -> int:
    return lo if value < lo else hi if value > hi else value
