"""
Pool table, staked-asset dedup index and the running allocation-weight total.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterator, List, Optional

from ..core.errors import AlreadyExists, Expired, InvalidArgument, NotFound
from ..core.types import PoolInfo
from .store import KeyValueStore

# Type alias
AssetId = str

_POOL_COUNT = ("pool_count",)
_TOTAL_WEIGHT = ("total_weight",)


def _pool_key(pool_id: int) -> tuple:
    return ("pool", pool_id)


def _index_key(asset_id: AssetId) -> tuple:
    return ("pool_index", asset_id)


def _valid_weight(weight: object) -> bool:
    return isinstance(weight, int) and not isinstance(weight, bool) and weight > 0


class PoolRegistry:
    """
    Ordered pools ``0..pool_count-1`` stored under ``("pool", id)``.

    Pools are never removed; a retired pool keeps a small weight instead so
    that id-based references stay valid.
    """

    def __init__(self, store: KeyValueStore, max_pools: Optional[int] = None) -> None:
        self._store = store
        self._max_pools = max_pools

    @property
    def pool_count(self) -> int:
        return self._store.get(_POOL_COUNT, 0)

    @property
    def total_allocation_weight(self) -> int:
        return self._store.get(_TOTAL_WEIGHT, 0)

    def exists(self, pool_id: object) -> bool:
        return (
            isinstance(pool_id, int)
            and not isinstance(pool_id, bool)
            and 0 <= pool_id < self.pool_count
        )

    def get(self, pool_id: int) -> PoolInfo:
        """Return the pool, or raise ``NotFound``."""
        if not self.exists(pool_id):
            raise NotFound(f"non-existent pool: {pool_id!r}")
        return self._store.get(_pool_key(pool_id))

    def put(self, pool: PoolInfo) -> None:
        """Write back a refreshed pool. Weight changes go through ``set_weight``."""
        current = self.get(pool.pool_id)
        if current.allocation_weight != pool.allocation_weight:
            raise ValueError("allocation_weight must be changed via set_weight()")
        if current.staked_asset_id != pool.staked_asset_id:
            raise ValueError("staked_asset_id is immutable")
        self._store.put(_pool_key(pool.pool_id), pool)

    def iter_pools(self) -> Iterator[PoolInfo]:
        for pool_id in range(self.pool_count):
            yield self._store.get(_pool_key(pool_id))

    def all_pools(self) -> List[PoolInfo]:
        return list(self.iter_pools())

    def is_registered(self, asset_id: AssetId) -> bool:
        return self._store.contains(_index_key(asset_id))

    def resolve_pool_id(self, asset_id: AssetId) -> int:
        pool_id = self._store.get(_index_key(asset_id))
        if pool_id is None:
            raise NotFound(f"staked asset not registered: {asset_id!r}")
        return pool_id

    def validate_new_pool(self, weight: int, asset_id: AssetId, now: int, cutoff_time: int) -> None:
        """
        Raise the error ``add_pool`` would raise, without mutating anything.

        Raises:
            InvalidArgument: Empty asset id, non-positive weight, or pool limit reached.
            AlreadyExists: The asset already has a pool.
            Expired: ``now`` is at or past the reward cutoff.
        """
        if not isinstance(asset_id, str) or not asset_id.strip():
            raise InvalidArgument(f"invalid staked asset id: {asset_id!r}")
        if not _valid_weight(weight):
            raise InvalidArgument(f"can't add pool with allocation weight {weight!r}")
        if self.is_registered(asset_id):
            raise AlreadyExists(f"staked asset already added: {asset_id}")
        if now >= cutoff_time:
            raise Expired(f"can't add pool at {now}: cutoff is {cutoff_time}")
        if self._max_pools is not None and self.pool_count >= self._max_pools:
            raise InvalidArgument(f"pool limit reached: {self._max_pools}")

    def add_pool(self, weight: int, asset_id: AssetId, now: int, cutoff_time: int) -> PoolInfo:
        """
        Append a pool settled at ``now`` with an empty accumulator.

        Callers must refresh every existing pool first so the larger weight
        total only applies from ``now`` on.
        """
        self.validate_new_pool(weight, asset_id, now, cutoff_time)
        pool_id = self.pool_count
        pool = PoolInfo(
            pool_id=pool_id,
            staked_asset_id=asset_id,
            allocation_weight=weight,
            last_settled_time=now,
            acc_reward_per_share=0,
        )
        self._store.put(_TOTAL_WEIGHT, self.total_allocation_weight + weight)
        self._store.put(_pool_key(pool_id), pool)
        self._store.put(_index_key(asset_id), pool_id)
        self._store.put(_POOL_COUNT, pool_id + 1)
        return pool

    def validate_weight(self, pool_id: int, weight: int) -> None:
        self.get(pool_id)
        if not _valid_weight(weight):
            raise InvalidArgument(f"can't set pool with allocation weight {weight!r}")

    def set_weight(self, pool_id: int, weight: int) -> PoolInfo:
        """Store a new weight and move the total by the delta. Refresh first."""
        self.validate_weight(pool_id, weight)
        pool = self.get(pool_id)
        self._store.put(
            _TOTAL_WEIGHT,
            self.total_allocation_weight - pool.allocation_weight + weight,
        )
        updated = replace(pool, allocation_weight=weight)
        self._store.put(_pool_key(pool_id), updated)
        return updated

    def __repr__(self) -> str:
        return f"PoolRegistry({self.pool_count} pools, total_weight={self.total_allocation_weight})"
