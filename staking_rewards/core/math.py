"""Pure arithmetic for the reward accumulator.

Every function is stateless and operates on plain Python ints. All divisions
use `//` (floor); the read-only pending query and the mutating refresh path
both go through these helpers so they agree to the last unit.
"""

from __future__ import annotations

ACC_SCALE: int = 10**18


def effective_time(now: int, cutoff_time: int) -> int:
    """Latest time that may still accrue emission."""
    return cutoff_time if now >= cutoff_time else now


def pool_emission(elapsed: int, rate_per_time_unit: int, allocation_weight: int) -> int:
    """Weight-scaled emission for a window.

    The result is not yet divided by the total weight; `accumulator_delta`
    divides once so the rounding matches the per-share formula exactly.
    """
    return elapsed * rate_per_time_unit * allocation_weight


def accumulator_delta(reward: int, total_staked: int, total_weight: int) -> int:
    """Per-share increment: ``reward * 1e18 // total_staked // total_weight``."""
    if total_staked <= 0:
        raise ValueError(f"total_staked must be positive: {total_staked}")
    if total_weight <= 0:
        raise ValueError(f"total_weight must be positive: {total_weight}")
    return reward * ACC_SCALE // total_staked // total_weight


def accrued(staked_amount: int, acc_reward_per_share: int) -> int:
    """Reward attributable to a stake since pool creation (unscaled)."""
    return staked_amount * acc_reward_per_share // ACC_SCALE


def pending_reward(staked_amount: int, acc_reward_per_share: int, reward_debt: int) -> int:
    """Reward earned since the position's last settlement."""
    return accrued(staked_amount, acc_reward_per_share) - reward_debt
