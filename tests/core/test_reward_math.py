"""Tests for staking_rewards/core/math.py: pure accumulator arithmetic."""

import pytest

from staking_rewards.core.math import (
    ACC_SCALE,
    accrued,
    accumulator_delta,
    effective_time,
    pending_reward,
    pool_emission,
)


class TestEffectiveTime:
    def test_before_cutoff(self):
        assert effective_time(5, 10) == 5

    def test_at_cutoff(self):
        assert effective_time(10, 10) == 10

    def test_after_cutoff_pinned(self):
        assert effective_time(1_000, 10) == 10


class TestAccumulatorDelta:
    def test_single_pool_example(self):
        # elapsed=10, rate=10, weight=100 over 1000 staked, total weight 100
        reward = pool_emission(10, 10, 100)
        assert reward == 10_000
        assert accumulator_delta(reward, 1000, 100) == 10**17

    def test_floors(self):
        # 1 unit of reward over 3 staked: 1e18 // 3
        assert accumulator_delta(1, 3, 1) == ACC_SCALE // 3

    def test_divides_by_stake_then_weight(self):
        assert accumulator_delta(7, 2, 3) == 7 * ACC_SCALE // 2 // 3

    def test_zero_stake_rejected(self):
        with pytest.raises(ValueError):
            accumulator_delta(100, 0, 1)

    def test_zero_weight_rejected(self):
        with pytest.raises(ValueError):
            accumulator_delta(100, 1, 0)

    def test_unbounded_precision(self):
        reward = pool_emission(10**12, 10**24, 10**6)
        assert accumulator_delta(reward, 1, 1) == reward * ACC_SCALE


class TestPendingReward:
    def test_example_payout(self):
        assert pending_reward(1000, 10**17, 0) == 100

    def test_debt_subtracted(self):
        assert pending_reward(1000, 3 * 10**17, accrued(1000, 10**17)) == 200

    def test_zero_stake(self):
        assert pending_reward(0, 10**30, 0) == 0

    def test_settled_position_has_nothing_pending(self):
        acc = 123_456_789_012_345_678_901
        assert pending_reward(777, acc, accrued(777, acc)) == 0
