"""
Tests for config.py.

Defaults, JSON overrides, presets and validation.
"""

import json

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from parlaysim.config import (
    DEFAULT_CONFIG,
    ITERATION_PRESETS,
    SimulationConfig,
    UpsetFactors,
    get_config_hash,
    load_config,
)
from parlaysim.errors import InvalidConfigError


class TestDefaults:
    """Default values line up across the dict and the dataclasses."""

    def test_dict_matches_dataclasses(self):
        config = SimulationConfig.from_dict(DEFAULT_CONFIG)
        assert config == SimulationConfig()
        assert config.to_dict() == DEFAULT_CONFIG

    def test_default_upset_values(self):
        f = UpsetFactors()
        assert f.heavy_underdog_boost == 0.06
        assert f.underdog_boost == 0.035
        assert f.heavy_favorite_risk == 0.025
        assert f.chaos_day_chance == 0.05
        assert f.chaos_day_boost == 0.15
        assert not f.is_disabled

    def test_disabled(self):
        assert UpsetFactors.disabled().is_disabled


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "nope.json")) == DEFAULT_CONFIG

    def test_merge(self, tmp_path):
        path = tmp_path / "parlaysim.json"
        path.write_text(json.dumps({"iterations": 5000, "underdog_boost": 0.05}))
        values = load_config(str(path))
        assert values["iterations"] == 5000
        assert values["underdog_boost"] == 0.05
        assert values["heavy_underdog_boost"] == DEFAULT_CONFIG["heavy_underdog_boost"]
        config = SimulationConfig.from_dict(values)
        assert config.iterations == 5000
        assert config.upset_factors.underdog_boost == 0.05

    def test_bad_json_falls_back(self, tmp_path, caplog):
        path = tmp_path / "parlaysim.json"
        path.write_text("{not json")
        assert load_config(str(path)) == DEFAULT_CONFIG
        assert "Could not load" in caplog.text


class TestSimulationConfig:
    """Tests for SimulationConfig helpers and validation."""

    def test_presets(self):
        assert SimulationConfig.from_preset("quick").iterations == ITERATION_PRESETS["quick"] == 10_000
        assert SimulationConfig.from_preset("precise", seed=3).seed == 3

    def test_unknown_preset(self):
        with pytest.raises(InvalidConfigError):
            SimulationConfig.from_preset("ludicrous")

    @pytest.mark.parametrize("iterations", [0, -10, 2.5, "100", True])
    def test_validate_iterations(self, iterations):
        with pytest.raises(InvalidConfigError):
            SimulationConfig(iterations=iterations).validate()

    def test_with_helpers_do_not_mutate(self):
        base = SimulationConfig()
        assert base.with_iterations(500).iterations == 500
        assert base.with_seed(4).seed == 4
        assert base.iterations == 100_000
        assert base.seed is None

    def test_bad_chaos_chance(self):
        with pytest.raises(InvalidConfigError):
            UpsetFactors(chaos_day_chance=1.5)

    def test_bad_clamp(self):
        with pytest.raises(InvalidConfigError):
            UpsetFactors(probability_floor=0.0)
        with pytest.raises(InvalidConfigError):
            UpsetFactors(probability_floor=0.6, probability_ceiling=0.5)

    def test_bad_thresholds(self):
        with pytest.raises(InvalidConfigError):
            UpsetFactors(underdog_threshold=600)
        with pytest.raises(InvalidConfigError):
            UpsetFactors(heavy_favorite_threshold=-100)


class TestConfigHash:
    """Tests for get_config_hash."""

    def test_length_and_stability(self):
        h = get_config_hash(SimulationConfig())
        assert len(h) == 8
        assert h == get_config_hash()

    def test_seed_does_not_change_hash(self):
        assert get_config_hash(SimulationConfig(seed=1)) == get_config_hash(SimulationConfig(seed=2))

    def test_factors_change_hash(self):
        changed = SimulationConfig(upset_factors=UpsetFactors(underdog_boost=0.04))
        assert get_config_hash(changed) != get_config_hash(SimulationConfig())
