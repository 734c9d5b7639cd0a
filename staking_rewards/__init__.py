"""`staking_rewards`: multi-pool liquidity-mining reward accounting.

Emission is shared between pools by allocation weight and, within a pool,
between depositors by stake, using a lazily refreshed reward-per-share
accumulator (scaled by 1e18) and per-position reward debt:

- deterministic, integer-only arithmetic,
- immutable records (frozen dataclasses) in a transactional key-value store,
- effects committed before any reward or asset transfer.

Public API:
- `StakeController` (deposit / withdraw / harvest / emergency_withdraw, pool
  and schedule administration, `pending_reward`, `step`)
- `StakingConfig`
- `build_in_memory_system(config)` for self-contained deployments
"""

from .config import StakingConfig
from .core import ACC_SCALE, ErrorKind, StakingError
from .integration import StakeController, build_in_memory_system

__version__ = "0.1.0"

__all__ = [
    "ACC_SCALE",
    "ErrorKind",
    "StakingError",
    "StakingConfig",
    "StakeController",
    "build_in_memory_system",
]
