"""
Runtime configuration for the staking controller.

Values come from code, from ``STAKING_*`` environment variables, or from a
YAML file. Environment parsing clamps out-of-range values to their bounds
instead of failing; YAML parsing is strict.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

MAX_TIME: int = 2**63 - 1


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class StakingConfig:
    # Emission: reward units per time unit shared by all pools, and the time
    # after which nothing accrues. Both are applied once at initialization;
    # later changes go through the owner-only controller operations. The
    # default cutoff of 0 means emission is already over at time 0: every
    # add_pool raises Expired until set_cutoff moves it forward.
    reward_rate: int = 0
    reward_cutoff: int = 0

    # Account that custodies staked assets; its balance of a pool's asset is
    # the pool's total stake.
    custody_account: str = "staking"

    # Every weight/rate change refreshes all pools, so the pool count bounds
    # the cost of configuration changes. None = unbounded.
    max_pools: Optional[int] = None

    # Check pool-table and touched-position invariants after each operation.
    check_invariants: bool = True

    def __post_init__(self) -> None:
        for name in ("reward_rate", "reward_cutoff"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or v < 0:
                raise ValueError(f"{name} must be a non-negative int: {v!r}")
        if not isinstance(self.custody_account, str) or not self.custody_account:
            raise ValueError("custody_account must be a non-empty string")
        if self.max_pools is not None:
            if not isinstance(self.max_pools, int) or isinstance(self.max_pools, bool) or self.max_pools <= 0:
                raise ValueError(f"max_pools must be a positive int or None: {self.max_pools!r}")
        if not isinstance(self.check_invariants, bool):
            raise TypeError("check_invariants must be a bool")

    @classmethod
    def from_env(cls, prefix: str = "STAKING_") -> "StakingConfig":
        max_pools = _env_int(f"{prefix}MAX_POOLS", 0, lo=0, hi=1_000_000)
        return cls(
            reward_rate=_env_int(f"{prefix}REWARD_RATE", 0, lo=0, hi=MAX_TIME),
            reward_cutoff=_env_int(f"{prefix}REWARD_CUTOFF", 0, lo=0, hi=MAX_TIME),
            custody_account=_env_str(f"{prefix}CUSTODY_ACCOUNT", "staking"),
            max_pools=max_pools or None,
            check_invariants=_env_bool(f"{prefix}CHECK_INVARIANTS", True),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StakingConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**dict(data))

    @classmethod
    def from_yaml(cls, path: Path | str) -> "StakingConfig":
        obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if obj is None:
            obj = {}
        if not isinstance(obj, Mapping):
            raise TypeError("config YAML must be a mapping")
        section = obj.get("staking", obj)
        if not isinstance(section, Mapping):
            raise TypeError("'staking' section must be a mapping")
        return cls.from_mapping(section)
