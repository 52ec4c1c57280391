"""Shared constants for the tone burst tools."""

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    USAGE = 2
    OPEN_FAILED = 3
    HEADER_FAILED = 4
    DATA_FAILED = 5


SAMPLE_RATE = 44100      # samples per second
INTERVAL = 22050         # samples per burst repetition
BURST_LENGTH = 100       # minimum burst length, in samples
AMPLITUDE = 12000.0      # nominal 0 dB signal level

SWEEP_STEPS = 201        # 100 steps per decade
SWEEP_START_FREQ = 100.0
SWEEP_STOP_FREQ = 10000.0

POLAR_STEPS = 72         # 5 degree turntable steps
POLAR_FREQ = 1000.0
POLAR_INTERVAL_FACTOR = 2

NUM_CHANNELS = 2
BYTES_PER_SAMPLE = 2
INT16_MIN = -32768
INT16_MAX = 32767
MAX_CHUNK_SIZE = 0xFFFFFFFF  # RIFF size fields are 32-bit unsigned
