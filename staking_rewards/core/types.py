"""Data types for the staking reward engine.

All records are frozen dataclasses (immutable); updates go through
``dataclasses.replace()`` and are written back to the store by the caller.

Units/conventions:
- times are integer time units (block heights on chain),
- `acc_reward_per_share` is reward per staked unit scaled by `ACC_SCALE` (1e18),
- amounts and weights are unbounded non-negative Python ints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Mapping, Optional

from .errors import ErrorKind


def _require_int(name: str, value: object, *, lo: int = 0) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < lo:
        raise ValueError(f"{name} must be >= {lo}: {value}")


@dataclass(frozen=True)
class PoolInfo:
    """One staking pool and its lazy reward accumulator."""

    pool_id: int
    staked_asset_id: str
    allocation_weight: int
    last_settled_time: int
    acc_reward_per_share: int = 0

    def __post_init__(self) -> None:
        _require_int("pool_id", self.pool_id)
        if not isinstance(self.staked_asset_id, str) or not self.staked_asset_id:
            raise ValueError("staked_asset_id must be a non-empty string")
        _require_int("allocation_weight", self.allocation_weight, lo=1)
        _require_int("last_settled_time", self.last_settled_time)
        _require_int("acc_reward_per_share", self.acc_reward_per_share)


@dataclass(frozen=True)
class Position:
    """A depositor's stake in one pool. Missing records read as ``Position()``."""

    staked_amount: int = 0
    reward_debt: int = 0

    def __post_init__(self) -> None:
        _require_int("staked_amount", self.staked_amount)
        _require_int("reward_debt", self.reward_debt)


@dataclass(frozen=True)
class Schedule:
    """Global emission parameters."""

    rate_per_time_unit: int
    cutoff_time: int

    def __post_init__(self) -> None:
        _require_int("rate_per_time_unit", self.rate_per_time_unit)
        _require_int("cutoff_time", self.cutoff_time)


@unique
class Action(Enum):
    """One member per controller operation reachable through ``step()``."""
    ADD_POOL = "add_pool"
    SET_WEIGHT = "set_weight"
    SET_RATE = "set_rate"
    SET_CUTOFF = "set_cutoff"
    SET_RATE_AND_CUTOFF = "set_rate_and_cutoff"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    HARVEST = "harvest"
    EMERGENCY_WITHDRAW = "emergency_withdraw"
    UPDATE_POOL = "update_pool"
    UPDATE_ALL_POOLS = "update_all_pools"


@unique
class Event(Enum):
    POOL_ADDED = "PoolAdded"
    POOL_WEIGHT_SET = "PoolWeightSet"
    REWARD_RATE_SET = "RewardPerBlockSet"
    REWARD_CUTOFF_SET = "RewardCutoffSet"
    REWARDER_SET = "RewarderSet"
    TOKENS_DEPOSITED = "TokensDeposited"
    TOKENS_WITHDRAWN = "TokensWithdrawn"
    TOKENS_EMERGENCY_WITHDRAWN = "TokensEmergencyWithdrawn"
    USER_REWARDED = "UserRewarded"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"


@dataclass(frozen=True)
class EventRecord:
    event: Event
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionParams:
    """Parameters for ``step()``. Unused fields keep their defaults."""

    action: Action
    caller: str = ""
    pool_id: int = 0
    asset_id: str = ""
    amount: int = 0
    weight: int = 0
    rate: int = 0
    cutoff: int = 0


@dataclass(frozen=True)
class Receipt:
    """Outcome of a position-touching operation."""

    pool_id: int
    depositor: str
    reward_paid: int
    staked_amount: int
    amount_moved: int = 0


@dataclass(frozen=True)
class StepResult:
    """Result of a single ``step()`` call."""

    accepted: bool
    value: Any = None
    error_kind: Optional[ErrorKind] = None
    rejection: Optional[str] = None
