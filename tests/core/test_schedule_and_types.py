"""Tests for staking_rewards/core/schedule.py, invariants.py and record validation."""

from dataclasses import replace

import pytest

from staking_rewards.core.errors import ErrorKind, InvalidArgument, InvariantViolation
from staking_rewards.core.invariants import (
    POOL_INVARIANTS,
    check_accumulator_step,
    check_pools,
    check_position,
)
from staking_rewards.core.schedule import (
    init_schedule,
    is_expired,
    validate_cutoff,
    validate_rate,
    with_cutoff,
    with_rate,
)
from staking_rewards.core.types import PoolInfo, Position, Schedule


class TestSchedule:
    def test_init(self):
        s = init_schedule(10, 100, now=5)
        assert s == Schedule(rate_per_time_unit=10, cutoff_time=100)

    def test_cutoff_in_past_rejected(self):
        with pytest.raises(InvalidArgument):
            validate_cutoff(4, now=5)

    def test_cutoff_now_allowed(self):
        assert validate_cutoff(5, now=5) == 5

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidArgument):
            validate_rate(-1)

    def test_bool_rate_rejected(self):
        with pytest.raises(InvalidArgument):
            validate_rate(True)

    def test_with_rate_keeps_cutoff(self):
        s = with_rate(Schedule(10, 100), 20)
        assert s == Schedule(20, 100)

    def test_with_cutoff_can_shorten_to_now(self):
        s = with_cutoff(Schedule(10, 100), 50, now=50)
        assert s.cutoff_time == 50

    def test_expired(self):
        assert not is_expired(Schedule(1, 10), 9)
        assert is_expired(Schedule(1, 10), 10)


class TestRecords:
    def test_pool_rejects_zero_weight(self):
        with pytest.raises(ValueError):
            PoolInfo(pool_id=0, staked_asset_id="LP", allocation_weight=0, last_settled_time=0)

    def test_pool_rejects_empty_asset(self):
        with pytest.raises(ValueError):
            PoolInfo(pool_id=0, staked_asset_id="", allocation_weight=1, last_settled_time=0)

    def test_position_rejects_negative(self):
        with pytest.raises(ValueError):
            Position(staked_amount=-1)

    def test_position_rejects_float(self):
        with pytest.raises(TypeError):
            Position(staked_amount=1.5)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Position().staked_amount = 3


def _pools(*weights: int) -> list[PoolInfo]:
    return [
        PoolInfo(pool_id=i, staked_asset_id=f"LP{i}", allocation_weight=w, last_settled_time=0)
        for i, w in enumerate(weights)
    ]


class TestInvariants:
    def test_registry_size(self):
        assert len(POOL_INVARIANTS) == 4

    def test_consistent_table(self):
        assert check_pools(_pools(100, 50), 150) == []

    def test_empty_table(self):
        assert check_pools([], 0) == []

    def test_total_weight_mismatch(self):
        assert "inv_total_weight_matches" in check_pools(_pools(100, 50), 149)

    def test_duplicate_asset(self):
        pools = _pools(1, 1)
        pools[1] = replace(pools[1], staked_asset_id="LP0")
        assert "inv_assets_unique" in check_pools(pools, 2)

    def test_ids_out_of_order(self):
        pools = list(reversed(_pools(1, 1)))
        assert "inv_pool_ids_sequential" in check_pools(pools, 2)

    def test_accumulator_regression(self):
        before = _pools(1)[0]
        after = replace(before, acc_reward_per_share=0)
        before = replace(before, acc_reward_per_share=5)
        assert check_accumulator_step(before, after) == ["inv_acc_monotone"]

    def test_position_overcredited_debt(self):
        assert check_position(Position(1000, 101), 10**17) == ["inv_pending_non_negative"]
        assert check_position(Position(1000, 100), 10**17) == []

    def test_violation_error_lists_ids(self):
        err = InvariantViolation(["a", "b"])
        assert err.violations == ["a", "b"]
        assert err.kind is ErrorKind.INVARIANT_VIOLATION
        assert "a, b" in str(err)
