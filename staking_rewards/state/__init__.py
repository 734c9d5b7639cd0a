"""
State management for staking pools and positions
"""

from .pools import PoolRegistry
from .positions import PositionLedger
from .store import KeyValueStore

__all__ = [
    "KeyValueStore",
    "PoolRegistry",
    "PositionLedger",
]
