"""
Imperative shell: controller, gateways, access control and wiring.
"""

from .access import AccessControl, OwnerAccessControl
from .clock import ManualClock
from .controller import StakeController
from .gateways import AssetGateway, InMemoryAssetLedger, RewardGateway, RewardReserve
from .system import StakingSystem, build_in_memory_system

__all__ = [
    "AccessControl",
    "OwnerAccessControl",
    "ManualClock",
    "StakeController",
    "AssetGateway",
    "RewardGateway",
    "InMemoryAssetLedger",
    "RewardReserve",
    "StakingSystem",
    "build_in_memory_system",
]
