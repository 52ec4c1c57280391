"""Shared library for the tone burst generator and analyzer."""

from .burst_codec import AnalysisResult, BurstCodec, burst_waveform
from .burst_sequencer import BurstMode, BurstStep, SweepConfig, ToneBurstSequencer, compute_burst_step
from .sample_stream import EndOfDataError, SampleReader, SampleWriter
from .wave_header import WaveHeader, WaveHeaderError

__all__ = [
    "AnalysisResult",
    "BurstCodec",
    "BurstMode",
    "BurstStep",
    "EndOfDataError",
    "SampleReader",
    "SampleWriter",
    "SweepConfig",
    "ToneBurstSequencer",
    "WaveHeader",
    "WaveHeaderError",
    "burst_waveform",
    "compute_burst_step",
]
