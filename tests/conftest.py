from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# Ensure the repository root is on sys.path so imports like `from tone_burst_lib...`
# work when pytest is invoked via the `pytest` entrypoint script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tone_burst_lib.burst_sequencer import BurstMode, SweepConfig  # noqa: E402

SMALL_SETTINGS = {
    "sample_rate": 8000,
    "interval": 800,
    "burst_min": 50,
    "delay": 100,
    "num_avg": 1,
    "sweep": {"num_steps": 5, "start_freq": 200.0, "stop_freq": 2000.0},
    "polar": {"num_steps": 8, "start_freq": 1000.0, "interval_factor": 2},
}


@pytest.fixture
def small_sweep_config():
    """A short, low-rate sweep that keeps tests fast."""
    return SweepConfig(
        sample_rate=8000,
        interval=800,
        burst_min=50,
        num_avg=1,
        start_freq=200.0,
        stop_freq=2000.0,
        num_steps=5,
        delay=100,
        mode=BurstMode.SWEEP,
    )


@pytest.fixture
def small_config_file(tmp_path):
    path = tmp_path / "tone_burst.json"
    path.write_text(json.dumps({"tone_burst": SMALL_SETTINGS}))
    return str(path)
