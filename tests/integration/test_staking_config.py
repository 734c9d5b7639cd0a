"""Tests for staking_rewards/config.py."""

import pytest

from staking_rewards import StakingConfig


class TestDefaults:
    def test_defaults(self):
        cfg = StakingConfig()
        assert cfg.reward_rate == 0
        assert cfg.custody_account == "staking"
        assert cfg.max_pools is None
        assert cfg.check_invariants is True

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"reward_rate": -1},
            {"reward_cutoff": 1.5},
            {"custody_account": ""},
            {"max_pools": 0},
        ],
    )
    def test_rejects_bad_values(self, kwargs):
        with pytest.raises(ValueError):
            StakingConfig(**kwargs)

    def test_check_invariants_must_be_bool(self):
        with pytest.raises(TypeError):
            StakingConfig(check_invariants="yes")


class TestFromEnv:
    def test_reads_prefixed_values(self, monkeypatch):
        monkeypatch.setenv("STAKING_REWARD_RATE", "25")
        monkeypatch.setenv("STAKING_REWARD_CUTOFF", " 900 ")
        monkeypatch.setenv("STAKING_CUSTODY_ACCOUNT", "vault")
        monkeypatch.setenv("STAKING_MAX_POOLS", "8")
        monkeypatch.setenv("STAKING_CHECK_INVARIANTS", "off")
        cfg = StakingConfig.from_env()
        assert cfg == StakingConfig(
            reward_rate=25,
            reward_cutoff=900,
            custody_account="vault",
            max_pools=8,
            check_invariants=False,
        )

    def test_garbage_falls_back_and_negatives_clamp(self, monkeypatch):
        monkeypatch.setenv("STAKING_REWARD_RATE", "lots")
        monkeypatch.setenv("STAKING_REWARD_CUTOFF", "-4")
        monkeypatch.setenv("STAKING_MAX_POOLS", "0")
        cfg = StakingConfig.from_env()
        assert cfg.reward_rate == 0
        assert cfg.reward_cutoff == 0
        assert cfg.max_pools is None

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("FARM_REWARD_RATE", "3")
        assert StakingConfig.from_env(prefix="FARM_").reward_rate == 3


class TestFromYaml:
    def test_flat_mapping(self, tmp_path):
        path = tmp_path / "staking.yaml"
        path.write_text("reward_rate: 10\nreward_cutoff: 1000\nmax_pools: 4\n", encoding="utf-8")
        cfg = StakingConfig.from_yaml(path)
        assert (cfg.reward_rate, cfg.reward_cutoff, cfg.max_pools) == (10, 1000, 4)

    def test_staking_section(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("staking:\n  reward_rate: 7\n  custody_account: farm\n", encoding="utf-8")
        cfg = StakingConfig.from_yaml(str(path))
        assert cfg.reward_rate == 7
        assert cfg.custody_account == "farm"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert StakingConfig.from_yaml(path) == StakingConfig()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(TypeError):
            StakingConfig.from_yaml(path)

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("reward_rte: 10\n", encoding="utf-8")
        with pytest.raises(ValueError, match="reward_rte"):
            StakingConfig.from_yaml(path)
