import json

import pytest

from tone_burst_lib.burst_sequencer import BurstMode, SweepConfig
from tone_burst_lib.config_manager import ConfigManager


def test_defaults_without_file(tmp_path):
    cm = ConfigManager(str(tmp_path / "missing.json"))
    assert cm.sweep_config(BurstMode.SWEEP) == SweepConfig()
    assert cm.sweep_config(BurstMode.POLAR) == SweepConfig.for_mode(BurstMode.POLAR)


def test_no_path_uses_defaults():
    assert ConfigManager(None).sweep_config("sweep") == SweepConfig()


def test_file_overrides_defaults(small_config_file):
    config = ConfigManager(small_config_file).sweep_config(BurstMode.SWEEP)
    assert config.sample_rate == 8000
    assert config.interval == 800
    assert config.num_steps == 5
    assert config.stop_freq == 2000.0
    # untouched keys keep their defaults
    assert config.amplitude == 12000.0


def test_polar_interval_and_single_frequency(small_config_file):
    config = ConfigManager(small_config_file).sweep_config(BurstMode.POLAR, start_freq=1500.0)
    assert config.mode is BurstMode.POLAR
    assert config.interval == 1600
    assert config.start_freq == config.stop_freq == 1500.0
    assert config.num_steps == 8


def test_overrides_skip_none(small_config_file):
    config = ConfigManager(small_config_file).sweep_config(
        BurstMode.SWEEP, delay=None, num_avg=3, start_freq=None,
    )
    assert config.delay == 100
    assert config.num_avg == 3
    assert config.start_freq == 200.0


def test_partial_section_is_merged(tmp_path):
    path = tmp_path / "partial.json"
    path.write_text(json.dumps({"tone_burst": {"sweep": {"num_steps": 11}}}))
    config = ConfigManager(str(path)).sweep_config(BurstMode.SWEEP)
    assert config.num_steps == 11
    assert config.start_freq == 100.0
    assert config.stop_freq == 10000.0


def test_bad_json_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    cm = ConfigManager(str(path))
    assert cm.sweep_config(BurstMode.SWEEP) == SweepConfig()
    assert "Failed to load config" in caplog.text


def test_set_and_persist(tmp_path):
    path = str(tmp_path / "saved.json")
    cm = ConfigManager(path)
    cm.set_tone_burst_config(num_avg=4, delay=0)

    cm2 = ConfigManager(path)
    config = cm2.sweep_config(BurstMode.SWEEP)
    assert config.num_avg == 4
    assert config.delay == 0
    with open(path) as f:
        assert json.load(f)["tone_burst"]["num_avg"] == 4


def test_invalid_file_values_are_caught_by_validate(tmp_path):
    path = tmp_path / "one_step.json"
    path.write_text(json.dumps({"tone_burst": {"sweep": {"num_steps": 1}}}))
    config = ConfigManager(str(path)).sweep_config(BurstMode.SWEEP)
    with pytest.raises(ValueError):
        config.validate()
