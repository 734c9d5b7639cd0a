"""
Staking controller: the imperative shell around the reward core.

Every public mutating method:

1. Opens a transaction on the shared store (restored on any exception, along
   with events emitted inside it).
2. Brings the touched pool accumulator(s) current.
3. Settles the caller's position and writes all local effects.
4. Only then calls the reward / asset gateways.

A gateway that calls back into the controller (recipient notification)
therefore observes post-effects state. The methods raise ``StakingError``
subclasses; ``step()`` is the non-raising variant returning ``StepResult``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..config import StakingConfig
from ..core.accumulator import refresh_pool, settle_position
from ..core.errors import (
    ErrorKind,
    InsufficientFunds,
    InvalidArgument,
    InvariantViolation,
    StakingError,
    TransferFailed,
)
from ..core.invariants import check_accumulator_step, check_pools, check_position
from ..core.math import pending_reward
from ..core.schedule import init_schedule, validate_cutoff, validate_rate, with_cutoff, with_rate
from ..core.types import (
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
from ..state.pools import PoolRegistry
from ..state.positions import PositionLedger
from ..state.store import KeyValueStore
from .access import AccessControl, OwnerAccessControl
from .gateways import AssetGateway, RewardGateway

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

_SCHEDULE = ("schedule",)
_REWARDER = ("rewarder",)


def _require_amount(amount: object, *, allow_zero: bool) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidArgument(f"amount must be an int: {amount!r}")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidArgument(f"invalid amount: {amount}")
    return amount


def _require_account(account: object) -> str:
    if not isinstance(account, str) or not account:
        raise InvalidArgument(f"invalid account: {account!r}")
    return account


@dataclass
class _DepositSlot:
    """Inbound notification a pending ``deposit()`` is waiting for."""

    asset_id: str
    depositor: str
    amount: int
    claimed: bool = False
    receipt: Optional[Receipt] = None


class StakeController:
    """
    Multi-pool staking with lazily accrued, weight-shared emission.

    The first construction against an empty store initializes the schedule
    and rewarder from ``config``; later constructions on the same store keep
    the persisted values.
    """

    def __init__(
        self,
        *,
        store: KeyValueStore,
        assets: AssetGateway,
        rewarder: RewardGateway,
        access: AccessControl,
        clock: Clock,
        config: StakingConfig = StakingConfig(),
    ) -> None:
        self._store = store
        self._assets = assets
        self._access = access
        self._clock = clock
        self._config = config
        self._events: List[EventRecord] = []
        self._deposit_slots: List[_DepositSlot] = []
        self.account = config.custody_account
        self.registry = PoolRegistry(store, max_pools=config.max_pools)
        self.positions = PositionLedger(store)
        if not store.contains(_SCHEDULE):
            self._initialize(rewarder, config.reward_rate, config.reward_cutoff)

    def _initialize(self, rewarder: RewardGateway, rate: int, cutoff: int) -> None:
        if rewarder is None:
            raise InvalidArgument("invalid rewarder")
        with self._atomic():
            self._store.put(_SCHEDULE, init_schedule(rate, cutoff, self.now))
            self._store.put(_REWARDER, rewarder)
        logger.info("staking initialized: rate=%d cutoff=%d custody=%s", rate, cutoff, self.account)
        if cutoff <= self.now:
            logger.warning("reward cutoff %d is not after current time %d; no pool can be added", cutoff, self.now)

    # -- queries -------------------------------------------------------------

    @property
    def now(self) -> int:
        return int(self._clock())

    @property
    def schedule(self) -> Schedule:
        return self._store.get(_SCHEDULE)

    @property
    def rewarder(self) -> RewardGateway:
        return self._store.get(_REWARDER)

    @property
    def events(self) -> Tuple[EventRecord, ...]:
        return tuple(self._events)

    @property
    def pool_length(self) -> int:
        return self.registry.pool_count

    @property
    def total_allocation_weight(self) -> int:
        return self.registry.total_allocation_weight

    def pool_info(self, pool_id: int) -> PoolInfo:
        return self.registry.get(pool_id)

    def position(self, pool_id: int, depositor: str) -> Position:
        self.registry.get(pool_id)
        return self.positions.get(pool_id, depositor)

    def resolve_pool_id(self, asset_id: str) -> int:
        return self.registry.resolve_pool_id(asset_id)

    def lp_supply(self, pool_id: int) -> int:
        """Total stake of a pool: the custody account's balance of its asset."""
        return self._pool_balance(self.registry.get(pool_id))

    def pending_reward(self, pool_id: int, depositor: str) -> int:
        """Reward a deposit/withdraw at this instant would pay. Read-only."""
        pool = self.registry.get(pool_id)
        position = self.positions.get(pool_id, depositor)
        simulated = refresh_pool(
            pool,
            self._pool_balance(pool),
            self.now,
            self.schedule,
            self.registry.total_allocation_weight,
        )
        return pending_reward(position.staked_amount, simulated.acc_reward_per_share, position.reward_debt)

    # -- plumbing ------------------------------------------------------------

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        mark = len(self._events)
        try:
            with self._store.transaction():
                yield
        except BaseException:
            del self._events[mark:]
            raise

    def _emit(self, event: Event, **data: Any) -> None:
        self._events.append(EventRecord(event=event, data=data))

    def _pool_balance(self, pool: PoolInfo) -> int:
        return self._assets.balance_of(pool.staked_asset_id, self.account)

    def _check_pools(self) -> None:
        if not self._config.check_invariants:
            return
        violations = check_pools(self.registry.iter_pools(), self.registry.total_allocation_weight)
        if violations:
            raise InvariantViolation(violations)

    def _update_pool(self, pool_id: int, received: int = 0) -> PoolInfo:
        # `received` is stake that already sits in custody but is not yet
        # credited to any position; it must not share this window's emission.
        pool = self.registry.get(pool_id)
        refreshed = refresh_pool(
            pool,
            self._pool_balance(pool) - received,
            self.now,
            self.schedule,
            self.registry.total_allocation_weight,
        )
        if refreshed != pool:
            if self._config.check_invariants:
                violations = check_accumulator_step(pool, refreshed)
                if violations:
                    raise InvariantViolation(violations)
            self.registry.put(refreshed)
        return refreshed

    def _update_all(self) -> None:
        for pool_id in range(self.registry.pool_count):
            self._update_pool(pool_id)

    def _pay_reward(self, to: str, amount: int) -> None:
        if amount <= 0:
            return
        self.rewarder.pay_reward(to, amount)
        self._emit(Event.USER_REWARDED, to=to, amount=amount)

    def _transfer_out(self, pool: PoolInfo, to: str, amount: int) -> None:
        if not self._assets.transfer_asset(pool.staked_asset_id, self.account, to, amount, None):
            raise TransferFailed(f"transfer of {amount} {pool.staked_asset_id} to {to} failed")

    def _settle(
        self, pool_id: int, depositor: str, stake_delta: int, received: int = 0
    ) -> Tuple[int, Position, PoolInfo]:
        pool = self._update_pool(pool_id, received=received)
        position = self.positions.get(pool_id, depositor)
        pending, updated = settle_position(position, pool.acc_reward_per_share, stake_delta)
        if self._config.check_invariants:
            violations = check_position(updated, pool.acc_reward_per_share)
            if violations:
                raise InvariantViolation(violations)

        # Effects
        if updated != position:
            self.positions.put(pool_id, depositor, updated)
        logger.debug(
            "settled pool=%d depositor=%s pending=%d staked=%d",
            pool_id, depositor, pending, updated.staked_amount,
        )

        # Interactions
        self._pay_reward(depositor, pending)
        return pending, updated, pool

    # -- schedule ------------------------------------------------------------

    def update_pool(self, pool_id: int) -> PoolInfo:
        with self._atomic():
            return self._update_pool(pool_id)

    def update_all_pools(self) -> None:
        """Refresh every pool. Cost grows with the number of pools."""
        with self._atomic():
            self._update_all()

    def set_rate(self, caller: str, rate: int) -> None:
        with self._atomic():
            self._access.require(caller)
            validate_rate(rate)
            self._update_all()
            self._store.put(_SCHEDULE, with_rate(self.schedule, rate))
            self._emit(Event.REWARD_RATE_SET, rate=rate)
        logger.info("reward rate set to %d", rate)

    def set_cutoff(self, caller: str, cutoff: int) -> None:
        with self._atomic():
            self._access.require(caller)
            self._store.put(_SCHEDULE, with_cutoff(self.schedule, cutoff, self.now))
            self._emit(Event.REWARD_CUTOFF_SET, cutoff=cutoff)
        logger.info("reward cutoff set to %d", cutoff)

    def set_rate_and_cutoff(self, caller: str, rate: int, cutoff: int) -> None:
        """Change both parameters with a single refresh of every pool."""
        with self._atomic():
            self._access.require(caller)
            validate_rate(rate)
            validate_cutoff(cutoff, self.now)
            self._update_all()
            self._store.put(_SCHEDULE, Schedule(rate_per_time_unit=rate, cutoff_time=cutoff))
            self._emit(Event.REWARD_RATE_SET, rate=rate)
            self._emit(Event.REWARD_CUTOFF_SET, cutoff=cutoff)
        logger.info("reward rate set to %d, cutoff set to %d", rate, cutoff)

    def set_rewarder(self, caller: str, rewarder: Optional[RewardGateway]) -> None:
        with self._atomic():
            self._access.require(caller)
            if rewarder is None:
                raise InvalidArgument("invalid rewarder")
            self._store.put(_REWARDER, rewarder)
            self._emit(Event.REWARDER_SET, rewarder=rewarder)
        logger.info("rewarder replaced")

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        with self._atomic():
            old, new = self._owner_control().transfer_ownership(caller, new_owner)
            self._emit(Event.OWNERSHIP_TRANSFERRED, previous_owner=old, new_owner=new)

    def renounce_ownership(self, caller: str) -> None:
        with self._atomic():
            old, new = self._owner_control().renounce_ownership(caller)
            self._emit(Event.OWNERSHIP_TRANSFERRED, previous_owner=old, new_owner=new)

    def _owner_control(self) -> OwnerAccessControl:
        if not isinstance(self._access, OwnerAccessControl):
            raise InvalidArgument("access control does not support ownership changes")
        return self._access

    # -- pools ---------------------------------------------------------------

    def add_pool(self, caller: str, weight: int, asset_id: str) -> int:
        """Register a pool for ``asset_id`` and return its id."""
        with self._atomic():
            self._access.require(caller)
            now = self.now
            cutoff = self.schedule.cutoff_time
            self.registry.validate_new_pool(weight, asset_id, now, cutoff)
            self._update_all()
            pool = self.registry.add_pool(weight, asset_id, now, cutoff)
            self._check_pools()
            self._emit(Event.POOL_ADDED, pool_id=pool.pool_id, asset_id=asset_id, weight=weight)
        logger.info("pool %d added for %s with weight %d", pool.pool_id, asset_id, weight)
        return pool.pool_id

    def set_weight(self, caller: str, pool_id: int, weight: int) -> None:
        with self._atomic():
            self._access.require(caller)
            self.registry.validate_weight(pool_id, weight)
            self._update_all()
            self.registry.set_weight(pool_id, weight)
            self._check_pools()
            self._emit(Event.POOL_WEIGHT_SET, pool_id=pool_id, weight=weight)
        logger.info("pool %d weight set to %d", pool_id, weight)

    # -- positions -----------------------------------------------------------

    def deposit(self, depositor: str, pool_id: int, amount: int, attachment: Any = None) -> Receipt:
        """
        Move ``amount`` of the pool's asset from ``depositor`` into custody.

        The asset gateway notifies ``on_asset_received``, which performs the
        settlement; the receipt is the one that settlement produced. The
        depositor may re-enter while its reward is paid, so its final stake
        can exceed ``receipt.staked_amount``.
        """
        with self._atomic():
            pool = self.registry.get(pool_id)
            _require_account(depositor)
            _require_amount(amount, allow_zero=False)
            slot = _DepositSlot(asset_id=pool.staked_asset_id, depositor=depositor, amount=amount)
            self._deposit_slots.append(slot)
            try:
                moved = self._assets.transfer_asset(
                    pool.staked_asset_id, depositor, self.account, amount, attachment
                )
            finally:
                self._deposit_slots.pop()
            if not moved:
                raise TransferFailed(f"transfer of {amount} {pool.staked_asset_id} from {depositor} failed")
            if slot.receipt is None:
                raise TransferFailed("staked asset arrived without a deposit notification")
        return slot.receipt

    def _claim_deposit_slot(self, asset_id: str, sender: str, amount: int) -> Optional[_DepositSlot]:
        # Only the innermost pending deposit can be answered, and only once.
        if not self._deposit_slots:
            return None
        slot = self._deposit_slots[-1]
        if slot.claimed or (slot.asset_id, slot.depositor, slot.amount) != (asset_id, sender, amount):
            return None
        slot.claimed = True
        return slot

    def on_asset_received(self, asset_id: str, sender: str, amount: int, attachment: Any = None) -> Receipt:
        """
        Inbound hook from the asset gateway: ``amount`` already sits in custody.

        Must only be wired to the asset gateway's recipient notification.
        """
        with self._atomic():
            pool_id = self.registry.resolve_pool_id(asset_id)
            _require_account(sender)
            _require_amount(amount, allow_zero=False)
            slot = self._claim_deposit_slot(asset_id, sender, amount)
            pending, position, pool = self._settle(pool_id, sender, amount, received=amount)
            self._emit(
                Event.TOKENS_DEPOSITED,
                depositor=sender,
                pool_id=pool_id,
                amount=amount,
                pool_balance=self._pool_balance(pool),
            )
        receipt = Receipt(
            pool_id=pool_id,
            depositor=sender,
            reward_paid=pending,
            staked_amount=position.staked_amount,
            amount_moved=amount,
        )
        if slot is not None:
            slot.receipt = receipt
        return receipt

    def withdraw(self, depositor: str, pool_id: int, amount: int) -> Receipt:
        """Pay pending reward and return ``amount`` of stake. ``amount=0`` only harvests."""
        with self._atomic():
            pool = self.registry.get(pool_id)
            _require_account(depositor)
            _require_amount(amount, allow_zero=True)
            if amount > self.positions.get(pool_id, depositor).staked_amount:
                raise InsufficientFunds("can't withdraw more than user balance")
            pending, position, pool = self._settle(pool_id, depositor, -amount)
            if amount > 0:
                self._transfer_out(pool, depositor, amount)
            self._emit(
                Event.TOKENS_WITHDRAWN,
                depositor=depositor,
                pool_id=pool_id,
                amount=amount,
                pool_balance=self._pool_balance(pool),
            )
        return Receipt(
            pool_id=pool_id,
            depositor=depositor,
            reward_paid=pending,
            staked_amount=position.staked_amount,
            amount_moved=amount,
        )

    def harvest(self, depositor: str, pool_id: int) -> Receipt:
        return self.withdraw(depositor, pool_id, 0)

    def emergency_withdraw(self, depositor: str, pool_id: int) -> Receipt:
        """Return the full stake without paying reward; pending reward is forfeited."""
        with self._atomic():
            pool = self._update_pool(pool_id)
            _require_account(depositor)
            position = self.positions.get(pool_id, depositor)
            amount = position.staked_amount
            forfeited = pending_reward(amount, pool.acc_reward_per_share, position.reward_debt)

            # Effects
            if position != Position():
                self.positions.put(pool_id, depositor, Position(staked_amount=0, reward_debt=0))

            # Interactions
            if amount > 0:
                self._transfer_out(pool, depositor, amount)
            self._emit(
                Event.TOKENS_EMERGENCY_WITHDRAWN,
                depositor=depositor,
                pool_id=pool_id,
                amount=amount,
                pool_balance=self._pool_balance(pool),
            )
        if forfeited > 0:
            logger.warning(
                "emergency withdraw from pool %d by %s forfeited %d pending reward",
                pool_id, depositor, forfeited,
            )
        return Receipt(pool_id=pool_id, depositor=depositor, reward_paid=0, staked_amount=0, amount_moved=amount)

    # -- result-returning entry point ----------------------------------------

    def step(self, params: ActionParams) -> StepResult:
        """
        Execute one action; never raises ``StakingError``.

        Returns ``StepResult`` with ``accepted=True`` and the operation's return
        value, or ``accepted=False`` with the error kind and message.
        """
        handler = _HANDLERS.get(params.action)
        if handler is None:
            return StepResult(
                accepted=False,
                error_kind=ErrorKind.INVALID_ARGUMENT,
                rejection=f"unknown_action:{params.action}",
            )
        try:
            value = handler(self, params)
        except StakingError as exc:
            logger.warning("%s rejected (%s): %s", params.action.value, exc.kind.value, exc)
            return StepResult(accepted=False, error_kind=exc.kind, rejection=str(exc))
        return StepResult(accepted=True, value=value)


_HANDLERS: Dict[Action, Callable[[StakeController, ActionParams], Any]] = {
    Action.ADD_POOL: lambda c, p: c.add_pool(p.caller, p.weight, p.asset_id),
    Action.SET_WEIGHT: lambda c, p: c.set_weight(p.caller, p.pool_id, p.weight),
    Action.SET_RATE: lambda c, p: c.set_rate(p.caller, p.rate),
    Action.SET_CUTOFF: lambda c, p: c.set_cutoff(p.caller, p.cutoff),
    Action.SET_RATE_AND_CUTOFF: lambda c, p: c.set_rate_and_cutoff(p.caller, p.rate, p.cutoff),
    Action.DEPOSIT: lambda c, p: c.deposit(p.caller, p.pool_id, p.amount),
    Action.WITHDRAW: lambda c, p: c.withdraw(p.caller, p.pool_id, p.amount),
    Action.HARVEST: lambda c, p: c.harvest(p.caller, p.pool_id),
    Action.EMERGENCY_WITHDRAW: lambda c, p: c.emergency_withdraw(p.caller, p.pool_id),
    Action.UPDATE_POOL: lambda c, p: c.update_pool(p.pool_id),
    Action.UPDATE_ALL_POOLS: lambda c, p: c.update_all_pools(),
}
