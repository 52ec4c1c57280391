"""
Tone burst synthesis and matched-filter demodulation.

A burst is ``amplitude * (cos(w j) - cos(2 w j))``: a raised cosine carrying a
second harmonic, so the envelope starts and ends at zero. Demodulation is a
single-bin DFT at exactly the synthesized frequency, taken over the burst
window (response) and over a like-sized window of trailing silence just
before the next burst (background).
"""

import logging
from dataclasses import dataclass

import numpy as np

from .burst_sequencer import BurstStep, SweepConfig
from .constants import INT16_MAX, INT16_MIN, NUM_CHANNELS
from .sample_stream import SampleReader, SampleWriter
from .signal_processing_utils import correlation_kernel, linear_to_db, ratio_to_db

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Normalized correlation sums for one step; 1.0 corresponds to a full-scale burst."""
    response_1: complex
    response_2: complex
    background_1: complex
    background_2: complex

    @property
    def magnitude_1(self) -> float:
        return abs(self.response_1)

    @property
    def magnitude_2(self) -> float:
        return abs(self.response_2)

    @property
    def db_1(self) -> float:
        return linear_to_db(self.magnitude_1)

    @property
    def db_2(self) -> float:
        return linear_to_db(self.magnitude_2)

    @property
    def db_diff(self) -> float:
        return ratio_to_db(self.magnitude_1, self.magnitude_2)

    @property
    def phase_1(self) -> float:
        return float(np.angle(self.response_1))

    @property
    def phase_2(self) -> float:
        return float(np.angle(self.response_2))

    @property
    def phase_diff(self) -> float:
        return self.phase_1 - self.phase_2

    @property
    def background_db_1(self) -> float:
        return linear_to_db(abs(self.background_1))

    @property
    def background_db_2(self) -> float:
        return linear_to_db(abs(self.background_2))

    def as_row(self) -> dict:
        return {
            'abs_1': self.magnitude_1,
            'abs_2': self.magnitude_2,
            'db_1': self.db_1,
            'db_2': self.db_2,
            'db_diff': self.db_diff,
            'phase_1': self.phase_1,
            'phase_2': self.phase_2,
            'phase_diff': self.phase_diff,
            'bkg_db_1': self.background_db_1,
            'bkg_db_2': self.background_db_2,
        }


def burst_waveform(step: BurstStep, amplitude: float) -> np.ndarray:
    """Float samples of one burst, ``step.duration`` long."""
    j = np.arange(step.duration, dtype=float)
    return amplitude * (np.cos(step.phase_factor * j) - np.cos(2.0 * step.phase_factor * j))


class BurstCodec:
    """Writes and reads the bursts of one run, using the interval, averaging and level of `config`."""

    def __init__(self, config: SweepConfig):
        self.config = config

    def synthesize_block(self, step: BurstStep) -> np.ndarray:
        """
        Returns int16 frames of shape (num_avg * interval, 2).

        Each repeat is the burst followed by silence up to the interval.
        Both channels carry the same signal.
        """
        cfg = self.config
        if step.duration > cfg.interval:
            raise ValueError(f"Burst of {step.duration} samples does not fit in interval of {cfg.interval}.")

        burst = np.rint(burst_waveform(step, cfg.amplitude))
        if burst.size and (burst.max() > INT16_MAX or burst.min() < INT16_MIN):
            logger.warning(
                "Burst at %.2f Hz exceeds 16-bit range (peak %.0f); clipping.",
                step.actual_freq, np.abs(burst).max(),
            )
            burst = np.clip(burst, INT16_MIN, INT16_MAX)

        repeat = np.zeros(cfg.interval, dtype=np.int16)
        repeat[:step.duration] = burst.astype(np.int16)
        mono = np.tile(repeat, cfg.num_avg)
        return np.repeat(mono[:, np.newaxis], NUM_CHANNELS, axis=1)

    def synthesize(self, step: BurstStep, writer: SampleWriter) -> None:
        writer.write_frames(self.synthesize_block(step))
        logger.debug("Wrote %d cycles at %.3f Hz", step.cycle_count, step.actual_freq)

    def demodulate_block(self, step: BurstStep, frames: np.ndarray) -> AnalysisResult:
        """
        Correlates captured frames against the burst frequency.

        `frames` holds num_avg repeats of interval frames each, both channels.
        Phase is referred to the start of each repeat.
        """
        cfg = self.config
        frames = np.asarray(frames, dtype=float)
        expected = (cfg.frames_per_step, NUM_CHANNELS)
        if frames.shape != expected:
            raise ValueError(f"Expected frames of shape {expected}, got {frames.shape}.")

        # sum over the averaging repeats first; the kernel only depends on j
        folded = frames.reshape(cfg.num_avg, cfg.interval, NUM_CHANNELS).sum(axis=0)

        duration = step.duration
        burst_idx = np.arange(min(duration, cfg.interval))
        bkg_start = max(cfg.interval - 2 * duration, 0)
        bkg_idx = np.arange(bkg_start, max(cfg.interval - duration, bkg_start))

        response = correlation_kernel(step.phase_factor, burst_idx) @ folded[burst_idx]
        background = correlation_kernel(step.phase_factor, bkg_idx) @ folded[bkg_idx]

        # factor out sample count and averaging, normalize to 0 dB
        scale = duration * cfg.num_avg * cfg.amplitude / 2.0
        response = response / scale
        background = background / scale

        return AnalysisResult(
            response_1=complex(response[0]),
            response_2=complex(response[1]),
            background_1=complex(background[0]),
            background_2=complex(background[1]),
        )

    def demodulate(self, step: BurstStep, reader: SampleReader) -> AnalysisResult:
        frames = reader.read_frames(self.config.frames_per_step)
        result = self.demodulate_block(step, frames)
        logger.debug(
            "Step %.3f Hz: %.2f dB / %.2f dB", step.actual_freq, result.db_1, result.db_2,
        )
        return result
