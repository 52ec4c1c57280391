import logging
import math
from dataclasses import dataclass, replace
from enum import Enum

from .constants import (
    AMPLITUDE,
    BURST_LENGTH,
    INTERVAL,
    MAX_CHUNK_SIZE,
    NUM_CHANNELS,
    BYTES_PER_SAMPLE,
    POLAR_FREQ,
    POLAR_INTERVAL_FACTOR,
    POLAR_STEPS,
    SAMPLE_RATE,
    SWEEP_START_FREQ,
    SWEEP_STEPS,
    SWEEP_STOP_FREQ,
)
from .wave_header import HEADER_SIZE

logger = logging.getLogger(__name__)


class BurstMode(str, Enum):
    SWEEP = "sweep"
    POLAR = "polar"

    @classmethod
    def parse(cls, text: str) -> "BurstMode":
        """Anything starting with 'p' selects polar mode, everything else is a sweep."""
        if text and text[0].upper() == 'P':
            return cls.POLAR
        return cls.SWEEP


@dataclass(frozen=True)
class SweepConfig:
    """Per-run configuration shared by the generator and the analyzer."""
    sample_rate: int = SAMPLE_RATE
    interval: int = INTERVAL
    burst_min: int = BURST_LENGTH
    num_avg: int = 1
    start_freq: float = SWEEP_START_FREQ
    stop_freq: float = SWEEP_STOP_FREQ
    num_steps: int = SWEEP_STEPS
    delay: int = INTERVAL
    mode: BurstMode = BurstMode.SWEEP
    amplitude: float = AMPLITUDE

    @classmethod
    def for_mode(cls, mode: BurstMode, **overrides) -> "SweepConfig":
        """
        Builds the preset for a mode, then applies keyword overrides.

        Polar mode measures at one frequency, so overriding start_freq
        moves stop_freq along with it unless stop_freq is given too.
        """
        mode = BurstMode(mode)
        if mode is BurstMode.POLAR:
            base = cls(
                start_freq=POLAR_FREQ,
                stop_freq=POLAR_FREQ,
                num_steps=POLAR_STEPS,
                interval=INTERVAL * POLAR_INTERVAL_FACTOR,
                mode=mode,
            )
            if 'start_freq' in overrides and 'stop_freq' not in overrides:
                overrides['stop_freq'] = overrides['start_freq']
        else:
            base = cls(mode=mode)
        return replace(base, **overrides)

    @property
    def payload_size(self) -> int:
        """Byte count of the sample data for the whole run, delay included."""
        frames = self.interval * self.num_avg * self.num_steps + self.delay
        return NUM_CHANNELS * BYTES_PER_SAMPLE * frames

    @property
    def frames_per_step(self) -> int:
        return self.interval * self.num_avg

    def validate(self) -> None:
        """Raises ValueError if the configuration cannot produce a usable run."""
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}.")
        if self.interval <= 0:
            raise ValueError(f"Interval must be positive, got {self.interval}.")
        if not (0 < self.burst_min <= self.interval):
            raise ValueError(
                f"Minimum burst length must be in (0, {self.interval}], got {self.burst_min}."
            )
        if self.num_avg < 1:
            raise ValueError(f"Averaging count must be at least 1, got {self.num_avg}.")
        if self.delay < 0:
            raise ValueError(f"Delay cannot be negative, got {self.delay}.")
        if self.num_steps < 1:
            raise ValueError(f"Number of steps must be at least 1, got {self.num_steps}.")
        if self.amplitude <= 0:
            raise ValueError(f"Amplitude must be positive, got {self.amplitude}.")
        if self.start_freq <= 0:
            raise ValueError(f"Start frequency must be positive, got {self.start_freq}.")
        if self.mode is BurstMode.SWEEP:
            if self.num_steps < 2:
                raise ValueError("A frequency sweep needs at least 2 steps.")
            if self.stop_freq < self.start_freq:
                raise ValueError(
                    f"Stop frequency {self.stop_freq} Hz is below start frequency {self.start_freq} Hz."
                )
        elif self.stop_freq != self.start_freq:
            raise ValueError("Polar mode measures at a single frequency; stop must equal start.")
        riff_size = self.payload_size + HEADER_SIZE - 8
        if riff_size > MAX_CHUNK_SIZE:
            raise ValueError(
                f"Run needs {self.payload_size} bytes of samples, too large for a wave file "
                f"(limit {MAX_CHUNK_SIZE - HEADER_SIZE + 8})."
            )

        for step in ToneBurstSequencer(self):
            if step.duration > self.interval:
                raise ValueError(
                    f"Burst at {step.nominal_freq:.2f} Hz needs {step.duration} samples, "
                    f"more than the interval of {self.interval}."
                )


@dataclass(frozen=True)
class BurstStep:
    cycle_count: int
    duration: int
    nominal_freq: float
    actual_freq: float
    phase_factor: float


def compute_burst_step(sample_rate: int, nominal_freq: float, burst_min: int) -> BurstStep:
    """
    Finds the least number of whole cycles whose length reaches burst_min samples.

    The duration is truncated to whole samples and the actual frequency is
    chosen so that exactly cycle_count cycles fill it. Bursts therefore start
    and end on a cycle boundary, which keeps the single-bin DFT free of leakage.

    Raises ValueError for a non-positive sample rate or frequency, or a
    minimum length below one sample.
    """
    if sample_rate <= 0 or nominal_freq <= 0:
        raise ValueError(f"Cannot build a burst at {nominal_freq} Hz with sample rate {sample_rate}.")
    if burst_min < 1:
        raise ValueError(f"Minimum burst length must be at least 1 sample, got {burst_min}.")
    period = sample_rate / nominal_freq
    cycle_count = 1
    while period * cycle_count < burst_min:
        cycle_count += 1

    duration = int(period * cycle_count)
    actual_freq = 1.0 * sample_rate * cycle_count / duration
    phase_factor = 2.0 * math.pi * actual_freq / sample_rate
    return BurstStep(cycle_count, duration, nominal_freq, actual_freq, phase_factor)


class ToneBurstSequencer:
    """
    Walks the list of burst frequencies for one run.

    Stepping by hand::

        seq.reset()
        while seq.good():
            step = seq.current_step
            ...
            seq.advance()

    or simply ``for step in seq: ...``.
    """

    def __init__(self, config: SweepConfig | None = None):
        self.config = config if config is not None else SweepConfig()
        self.remaining = 0
        self.nominal_freq = self.config.start_freq
        self.multiplier = 1.0
        # computed by reset()
        self._step = None

    def configure(self, mode: BurstMode) -> None:
        """Switches to the preset of another mode, keeping the shared settings."""
        preset = SweepConfig.for_mode(mode)
        self.config = replace(
            self.config,
            mode=preset.mode,
            num_steps=preset.num_steps,
            start_freq=preset.start_freq,
            stop_freq=preset.stop_freq,
            interval=preset.interval,
        )
        self.reset()

    def reset(self) -> None:
        cfg = self.config
        self.remaining = cfg.num_steps
        self.nominal_freq = cfg.start_freq

        if cfg.mode is BurstMode.SWEEP:
            if cfg.num_steps > 1:
                self.multiplier = (cfg.stop_freq / cfg.start_freq) ** (1.0 / (cfg.num_steps - 1))
            else:
                self.multiplier = 1.0
        else:
            if cfg.stop_freq != cfg.start_freq:
                self.config = replace(cfg, stop_freq=cfg.start_freq)
            self.multiplier = 1.0

        self._step = compute_burst_step(cfg.sample_rate, self.nominal_freq, cfg.burst_min)
        logger.debug(
            "Sequencer reset: mode=%s steps=%d start=%.3f Hz multiplier=%.9f",
            cfg.mode.value, cfg.num_steps, cfg.start_freq, self.multiplier,
        )

    def good(self) -> bool:
        return self.remaining > 0

    def advance(self) -> bool:
        if not self.good():
            return False
        if self.config.mode is BurstMode.SWEEP:
            self.nominal_freq *= self.multiplier
            self._step = compute_burst_step(self.config.sample_rate, self.nominal_freq, self.config.burst_min)
        self.remaining -= 1
        return True

    @property
    def current_step(self) -> BurstStep | None:
        return self._step

    @property
    def step_index(self) -> int:
        return self.config.num_steps - self.remaining

    @property
    def angle(self) -> float | None:
        """Turntable angle in degrees for polar runs, None for sweeps."""
        if self.config.mode is not BurstMode.POLAR:
            return None
        return self.step_index * 360.0 / self.config.num_steps

    def __iter__(self):
        self.reset()
        while self.good():
            yield self._step
            self.advance()
