"""
Reward accounting core: integer-only accumulator math, schedule rules and
invariants. Nothing in this package touches storage or external gateways.
"""

from .accumulator import refresh_pool, settle_position
from .errors import (
    AlreadyExists,
    ErrorKind,
    Expired,
    InsufficientFunds,
    InvalidArgument,
    InvariantViolation,
    NotFound,
    StakingError,
    TransferFailed,
    Unauthorized,
)
from .math import ACC_SCALE, accrued, pending_reward
from .types import (
    Action,
    ActionParams,
    Event,
    EventRecord,
    PoolInfo,
    Position,
    Receipt,
    Schedule,
    StepResult,
)

__all__ = [
    "refresh_pool",
    "settle_position",
    "ACC_SCALE",
    "accrued",
    "pending_reward",
    "Action",
    "ActionParams",
    "Event",
    "EventRecord",
    "PoolInfo",
    "Position",
    "Receipt",
    "Schedule",
    "StepResult",
    "ErrorKind",
    "StakingError",
    "InvalidArgument",
    "Unauthorized",
    "NotFound",
    "AlreadyExists",
    "InsufficientFunds",
    "Expired",
    "TransferFailed",
    "InvariantViolation",
]
