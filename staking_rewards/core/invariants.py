"""Invariant checkers for pools and positions.

Each function returns True when the invariant holds. ``check_pools()`` returns
the violated ids over the whole pool table; ``check_position()`` covers a
single position so the controller never enumerates depositors.
"""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from .math import pending_reward
from .types import PoolInfo, Position


def inv_total_weight_matches(pools: Sequence[PoolInfo], total_weight: int) -> bool:
    return sum(p.allocation_weight for p in pools) == total_weight


def inv_pool_ids_sequential(pools: Sequence[PoolInfo], total_weight: int) -> bool:
    return all(p.pool_id == i for i, p in enumerate(pools))


def inv_assets_unique(pools: Sequence[PoolInfo], total_weight: int) -> bool:
    assets = [p.staked_asset_id for p in pools]
    return len(assets) == len(set(assets))


def inv_weights_positive(pools: Sequence[PoolInfo], total_weight: int) -> bool:
    return all(p.allocation_weight > 0 for p in pools)


POOL_INVARIANTS: dict[str, Callable[[Sequence[PoolInfo], int], bool]] = {
    "inv_total_weight_matches": inv_total_weight_matches,
    "inv_pool_ids_sequential": inv_pool_ids_sequential,
    "inv_assets_unique": inv_assets_unique,
    "inv_weights_positive": inv_weights_positive,
}


def check_pools(pools: Iterable[PoolInfo], total_weight: int) -> list[str]:
    """Return list of violated pool-table invariant ids (empty = all pass)."""
    table = list(pools)
    return [
        inv_id
        for inv_id, check_fn in POOL_INVARIANTS.items()
        if not check_fn(table, total_weight)
    ]


def check_accumulator_step(before: PoolInfo, after: PoolInfo) -> list[str]:
    """Transition checks for one refresh of one pool."""
    violations = []
    if after.acc_reward_per_share < before.acc_reward_per_share:
        violations.append("inv_acc_monotone")
    if after.last_settled_time < before.last_settled_time:
        violations.append("inv_settled_time_monotone")
    return violations


def check_position(position: Position, acc_reward_per_share: int) -> list[str]:
    if pending_reward(position.staked_amount, acc_reward_per_share, position.reward_debt) < 0:
        return ["inv_pending_non_negative"]
    return []
