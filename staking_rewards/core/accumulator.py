"""Lazy per-pool accumulator refresh and position settlement.

Both functions are pure: they return new records and never touch storage.
The controller persists the results; ``pending_reward`` queries call
``refresh_pool`` and discard the result.
"""

from __future__ import annotations

from dataclasses import replace

from .math import accrued, accumulator_delta, effective_time, pending_reward, pool_emission
from .types import PoolInfo, Position, Schedule


def refresh_pool(
    pool: PoolInfo,
    total_staked: int,
    now: int,
    schedule: Schedule,
    total_weight: int,
) -> PoolInfo:
    """Bring ``pool`` current up to ``min(now, cutoff)``.

    - Same or earlier effective time: the pool is returned unchanged, so two
      refreshes within one time unit accrue once.
    - Empty pool: the window's emission is dropped and only the settlement
      time advances.
    """
    if total_staked < 0:
        raise ValueError(f"total_staked must be non-negative: {total_staked}")

    settle_to = effective_time(now, schedule.cutoff_time)
    if settle_to <= pool.last_settled_time:
        return pool

    if total_staked == 0:
        return replace(pool, last_settled_time=settle_to)

    reward = pool_emission(
        settle_to - pool.last_settled_time,
        schedule.rate_per_time_unit,
        pool.allocation_weight,
    )
    return replace(
        pool,
        acc_reward_per_share=pool.acc_reward_per_share
        + accumulator_delta(reward, total_staked, total_weight),
        last_settled_time=settle_to,
    )


def settle_position(position: Position, acc_reward_per_share: int, stake_delta: int) -> tuple[int, Position]:
    """Return ``(pending, next_position)`` after applying ``stake_delta``.

    ``pending`` is computed against the pre-change stake; the new reward debt
    is computed against the post-change stake.
    """
    new_staked = position.staked_amount + stake_delta
    if new_staked < 0:
        raise ValueError(
            f"stake would go negative: {position.staked_amount} + {stake_delta} = {new_staked}"
        )
    pending = pending_reward(position.staked_amount, acc_reward_per_share, position.reward_debt)
    if pending < 0:
        raise ValueError(f"pending reward went negative: {pending}")
    return pending, Position(
        staked_amount=new_staked,
        reward_debt=accrued(new_staked, acc_reward_per_share),
    )
