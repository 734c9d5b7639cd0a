"""Tests for staking_rewards/integration/gateways.py: ledger transfers and the reward reserve."""

import pytest

from staking_rewards.core.errors import InsufficientFunds, InvalidArgument
from staking_rewards.integration.gateways import InMemoryAssetLedger, RewardReserve
from staking_rewards.state import KeyValueStore


class _Recorder:
    def __init__(self, reject: bool = False) -> None:
        self.calls = []
        self.reject = reject

    def on_asset_received(self, asset_id, sender, amount, attachment):
        self.calls.append((asset_id, sender, amount, attachment))
        if self.reject:
            raise InvalidArgument("not accepted")


class TestInMemoryAssetLedger:
    def test_transfer_moves_balance(self):
        ledger = InMemoryAssetLedger(KeyValueStore())
        ledger.mint("LP", "alice", 100)
        assert ledger.transfer_asset("LP", "alice", "bob", 40)
        assert ledger.balance_of("LP", "alice") == 60
        assert ledger.balance_of("LP", "bob") == 40

    def test_refuses_overdraft_and_bad_amounts(self):
        ledger = InMemoryAssetLedger(KeyValueStore())
        ledger.mint("LP", "alice", 10)
        assert not ledger.transfer_asset("LP", "alice", "bob", 11)
        assert not ledger.transfer_asset("LP", "alice", "bob", -1)
        assert not ledger.transfer_asset("LP", "alice", "bob", True)
        assert ledger.balance_of("LP", "alice") == 10

    def test_receiver_notified_with_attachment(self):
        ledger = InMemoryAssetLedger(KeyValueStore())
        hook = _Recorder()
        ledger.register_receiver("bob", hook)
        ledger.mint("LP", "alice", 10)
        ledger.transfer_asset("LP", "alice", "bob", 3, attachment=b"memo")
        assert hook.calls == [("LP", "alice", 3, b"memo")]

    def test_receiver_sees_credited_balance(self):
        ledger = InMemoryAssetLedger(KeyValueStore())
        seen = []

        class Peek:
            def on_asset_received(self, asset_id, sender, amount, attachment):
                seen.append(ledger.balance_of(asset_id, "bob"))

        ledger.register_receiver("bob", Peek())
        ledger.mint("LP", "alice", 10)
        ledger.transfer_asset("LP", "alice", "bob", 4)
        assert seen == [4]

    def test_rejecting_receiver_reverts_transfer(self):
        ledger = InMemoryAssetLedger(KeyValueStore())
        ledger.register_receiver("bob", _Recorder(reject=True))
        ledger.mint("LP", "alice", 10)
        with pytest.raises(InvalidArgument):
            ledger.transfer_asset("LP", "alice", "bob", 4)
        assert ledger.balance_of("LP", "alice") == 10
        assert ledger.balance_of("LP", "bob") == 0

    def test_unregister(self):
        ledger = InMemoryAssetLedger(KeyValueStore())
        hook = _Recorder()
        ledger.register_receiver("bob", hook)
        ledger.unregister_receiver("bob")
        ledger.mint("LP", "alice", 1)
        ledger.transfer_asset("LP", "alice", "bob", 1)
        assert hook.calls == []

    def test_mint_negative_rejected(self):
        with pytest.raises(ValueError):
            InMemoryAssetLedger(KeyValueStore()).mint("LP", "alice", -1)


class TestRewardReserve:
    def _reserve(self, funding: int) -> RewardReserve:
        ledger = InMemoryAssetLedger(KeyValueStore())
        reserve = RewardReserve(ledger, "SFI", "rewarder")
        ledger.mint("SFI", "rewarder", funding)
        return reserve

    def test_pays_in_full(self):
        reserve = self._reserve(100)
        reserve.pay_reward("alice", 30)
        assert reserve.balance == 70
        assert reserve.total_paid == 30
        assert reserve._ledger.balance_of("SFI", "alice") == 30

    def test_shortfall_raises_without_partial_payment(self):
        reserve = self._reserve(10)
        with pytest.raises(InsufficientFunds):
            reserve.pay_reward("alice", 11)
        assert reserve.balance == 10
        assert reserve.total_paid == 0

    def test_non_positive_amount(self):
        with pytest.raises(InvalidArgument):
            self._reserve(10).pay_reward("alice", 0)

    def test_accepts_only_reward_asset(self):
        reserve = self._reserve(0)
        reserve._ledger.mint("LP", "alice", 5)
        with pytest.raises(InvalidArgument):
            reserve._ledger.transfer_asset("LP", "alice", "rewarder", 5)
        reserve._ledger.mint("SFI", "alice", 5)
        assert reserve._ledger.transfer_asset("SFI", "alice", "rewarder", 5)
        assert reserve.balance == 5

    def test_total_paid_rolls_back(self):
        reserve = self._reserve(100)
        store = reserve._ledger.store
        with pytest.raises(RuntimeError):
            with store.transaction():
                reserve.pay_reward("alice", 50)
                raise RuntimeError("abort")
        assert reserve.total_paid == 0
        assert reserve.balance == 100

    def test_requires_ids(self):
        ledger = InMemoryAssetLedger(KeyValueStore())
        with pytest.raises(InvalidArgument):
            RewardReserve(ledger, "", "rewarder")
        with pytest.raises(InvalidArgument):
            RewardReserve(ledger, "SFI", "")


class TestManualClock:
    def test_advance_and_set(self):
        from staking_rewards.integration.clock import ManualClock

        clock = ManualClock(5)
        assert clock() == 5
        assert clock.advance() == 6
        assert clock.set(10) == 10
        with pytest.raises(ValueError):
            clock.set(9)
        with pytest.raises(ValueError):
            clock.advance(-1)
