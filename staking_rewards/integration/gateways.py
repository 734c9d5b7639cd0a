"""
External collaborators consumed by the controller, plus in-memory versions.

Protocols:
- ``AssetGateway``: balances and transfers of staked assets. A transfer
  notifies the recipient if it registered a receiver, and the receiver may
  reject it by raising.
- ``RewardGateway``: pays reward in full or raises; partial payment is never
  an outcome.

``InMemoryAssetLedger`` and ``RewardReserve`` keep their balances in the same
``KeyValueStore`` as the controller so one transaction covers both.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from ..core.errors import InsufficientFunds, InvalidArgument, TransferFailed
from ..state.store import KeyValueStore

logger = logging.getLogger(__name__)

# Type aliases
AssetId = str
Account = str


class AssetReceiver(Protocol):
    def on_asset_received(self, asset_id: AssetId, sender: Account, amount: int, attachment: Any) -> Any:
        ...


class AssetGateway(Protocol):
    def balance_of(self, asset_id: AssetId, holder: Account) -> int:
        ...

    def transfer_asset(
        self,
        asset_id: AssetId,
        sender: Account,
        recipient: Account,
        amount: int,
        attachment: Any = None,
    ) -> bool:
        ...


class RewardGateway(Protocol):
    def pay_reward(self, to: Account, amount: int) -> None:
        ...


def _balance_key(asset_id: AssetId, holder: Account) -> tuple:
    return ("balance", asset_id, holder)


class InMemoryAssetLedger:
    """
    Multi-asset balance table with recipient notification.

    ``transfer_asset`` returns False for requests the ledger refuses
    (negative amount, insufficient balance); receiver errors propagate after
    the balance move is reverted.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._receivers: Dict[Account, AssetReceiver] = {}

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def register_receiver(self, account: Account, receiver: AssetReceiver) -> None:
        """Mark ``account`` as programmable: it is notified on every incoming transfer."""
        self._receivers[account] = receiver

    def unregister_receiver(self, account: Account) -> None:
        self._receivers.pop(account, None)

    def balance_of(self, asset_id: AssetId, holder: Account) -> int:
        return self._store.get(_balance_key(asset_id, holder), 0)

    def _set_balance(self, asset_id: AssetId, holder: Account, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._store.delete(_balance_key(asset_id, holder))
        else:
            self._store.put(_balance_key(asset_id, holder), amount)

    def mint(self, asset_id: AssetId, holder: Account, amount: int) -> None:
        """Credit ``amount`` out of thin air (test and simulation setup)."""
        if amount < 0:
            raise ValueError(f"Mint amount must be non-negative: {amount}")
        self._set_balance(asset_id, holder, self.balance_of(asset_id, holder) + amount)

    def transfer_asset(
        self,
        asset_id: AssetId,
        sender: Account,
        recipient: Account,
        amount: int,
        attachment: Any = None,
    ) -> bool:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            return False
        if self.balance_of(asset_id, sender) < amount:
            return False

        with self._store.transaction():
            if sender != recipient:
                self._set_balance(asset_id, sender, self.balance_of(asset_id, sender) - amount)
                self._set_balance(asset_id, recipient, self.balance_of(asset_id, recipient) + amount)
            receiver = self._receivers.get(recipient)
            if receiver is not None:
                receiver.on_asset_received(asset_id, sender, amount, attachment)
        return True


class RewardReserve:
    """
    Holds the reward asset and pays depositors on behalf of the controller.

    The reserve must be funded before staking opens; a payment it cannot
    cover in full raises ``InsufficientFunds`` and aborts the operation.
    """

    def __init__(self, ledger: InMemoryAssetLedger, reward_asset_id: AssetId, account: Account) -> None:
        if not reward_asset_id:
            raise InvalidArgument("invalid reward asset id")
        if not account:
            raise InvalidArgument("invalid reserve account")
        self._ledger = ledger
        self._store = ledger.store
        self._paid_key = ("reserve_paid", account)
        self.reward_asset_id = reward_asset_id
        self.account = account
        ledger.register_receiver(account, self)

    @property
    def total_paid(self) -> int:
        return self._store.get(self._paid_key, 0)

    @property
    def balance(self) -> int:
        return self._ledger.balance_of(self.reward_asset_id, self.account)

    def pay_reward(self, to: Account, amount: int) -> None:
        if amount <= 0:
            raise InvalidArgument(f"reward amount must be positive: {amount}")
        if self.balance < amount:
            raise InsufficientFunds(f"reserve holds {self.balance}, cannot pay {amount}")
        if not self._ledger.transfer_asset(self.reward_asset_id, self.account, to, amount, None):
            raise TransferFailed(f"reward transfer of {amount} to {to} failed")
        self._store.put(self._paid_key, self.total_paid + amount)
        logger.debug("reserve paid %d to %s", amount, to)

    def on_asset_received(self, asset_id: AssetId, sender: Account, amount: int, attachment: Any) -> Optional[int]:
        """Only the reward asset may be sent to the reserve."""
        if asset_id != self.reward_asset_id:
            raise InvalidArgument(f"reserve only accepts {self.reward_asset_id}, got {asset_id}")
        return None
