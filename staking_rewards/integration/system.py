"""
Wiring for a self-contained, in-memory staking deployment.

Used by tests and simulations: one store shared by the controller, the asset
ledger and the reward reserve, with the controller registered as the custody
account's receiver so transfers into custody become deposits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config import StakingConfig
from ..state.store import KeyValueStore
from .access import OwnerAccessControl
from .clock import ManualClock
from .controller import StakeController
from .gateways import InMemoryAssetLedger, RewardReserve


@dataclass(frozen=True)
class StakingSystem:
    store: KeyValueStore
    ledger: InMemoryAssetLedger
    reserve: RewardReserve
    access: OwnerAccessControl
    clock: ManualClock
    controller: StakeController


def build_in_memory_system(
    config: StakingConfig,
    *,
    owner: str = "owner",
    reward_asset_id: str = "SFI",
    reserve_account: str = "rewarder",
    reserve_funding: int = 0,
    clock: Optional[ManualClock] = None,
) -> StakingSystem:
    store = KeyValueStore()
    clock = clock if clock is not None else ManualClock()
    ledger = InMemoryAssetLedger(store)
    reserve = RewardReserve(ledger, reward_asset_id, reserve_account)
    if reserve_funding:
        ledger.mint(reward_asset_id, reserve_account, reserve_funding)
    access = OwnerAccessControl(store, owner)
    controller = StakeController(
        store=store,
        assets=ledger,
        rewarder=reserve,
        access=access,
        clock=clock,
        config=config,
    )
    ledger.register_receiver(controller.account, controller)
    return StakingSystem(
        store=store,
        ledger=ledger,
        reserve=reserve,
        access=access,
        clock=clock,
        controller=controller,
    )
