import copy
import json
import os
import logging

from .burst_sequencer import BurstMode, SweepConfig
from .constants import (
    AMPLITUDE,
    BURST_LENGTH,
    INTERVAL,
    POLAR_FREQ,
    POLAR_INTERVAL_FACTOR,
    POLAR_STEPS,
    SAMPLE_RATE,
    SWEEP_START_FREQ,
    SWEEP_STEPS,
    SWEEP_STOP_FREQ,
)


class ConfigManager:
    def __init__(self, config_path="tone_burst.json"):
        self.config_path = config_path
        self.logger = logging.getLogger(self.__class__.__name__)
        self.config = self.load_config()

    def load_config(self):
        """Loads configuration from JSON file."""
        if not self.config_path or not os.path.exists(self.config_path):
            self.logger.info("No config file found, using defaults.")
            return self._default_config()

        try:
            with open(self.config_path, 'r') as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to load config: {e}")
            return self._default_config()

        self.logger.info(f"Loaded config from {self.config_path}")
        return self._merge(self._default_config(), loaded)

    def save_config(self):
        """Saves current configuration to JSON file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.config, f, indent=4)
            self.logger.info("Config saved.")
        except OSError as e:
            self.logger.error(f"Failed to save config: {e}")

    def _default_config(self):
        return {
            "tone_burst": {
                "sample_rate": SAMPLE_RATE,
                "interval": INTERVAL,
                "burst_min": BURST_LENGTH,
                "amplitude": AMPLITUDE,
                "num_avg": 1,
                "delay": INTERVAL,
                "sweep": {
                    "num_steps": SWEEP_STEPS,
                    "start_freq": SWEEP_START_FREQ,
                    "stop_freq": SWEEP_STOP_FREQ,
                },
                "polar": {
                    "num_steps": POLAR_STEPS,
                    "start_freq": POLAR_FREQ,
                    "interval_factor": POLAR_INTERVAL_FACTOR,
                },
            }
        }

    def _merge(self, base, override):
        merged = copy.deepcopy(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_tone_burst_config(self):
        """Returns the tone burst section, falling back to defaults."""
        return self.config.get("tone_burst", self._default_config()["tone_burst"])

    def set_tone_burst_config(self, **values):
        """Updates top-level tone burst settings and saves."""
        if "tone_burst" not in self.config:
            self.config["tone_burst"] = self._default_config()["tone_burst"]
        self.config["tone_burst"].update(values)
        self.save_config()

    def sweep_config(self, mode, **overrides) -> SweepConfig:
        """Builds the SweepConfig for `mode`; keyword overrides win over the file."""
        mode = BurstMode(mode)
        tb = self.get_tone_burst_config()
        section = tb["polar"] if mode is BurstMode.POLAR else tb["sweep"]

        interval = int(tb["interval"])
        if mode is BurstMode.POLAR:
            interval *= int(section.get("interval_factor", POLAR_INTERVAL_FACTOR))
            stop_freq = section["start_freq"]
        else:
            stop_freq = section["stop_freq"]

        values = {
            "sample_rate": int(tb["sample_rate"]),
            "interval": interval,
            "burst_min": int(tb["burst_min"]),
            "amplitude": float(tb["amplitude"]),
            "num_avg": int(tb["num_avg"]),
            "delay": int(tb["delay"]),
            "num_steps": int(section["num_steps"]),
            "start_freq": float(section["start_freq"]),
            "stop_freq": float(stop_freq),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        if mode is BurstMode.POLAR and overrides.get("stop_freq") is None:
            values["stop_freq"] = values["start_freq"]
        return SweepConfig(mode=mode, **values)
