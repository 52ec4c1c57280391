import logging
from typing import BinaryIO

import numpy as np

from .constants import BYTES_PER_SAMPLE, NUM_CHANNELS

logger = logging.getLogger(__name__)

FRAME_BYTES = NUM_CHANNELS * BYTES_PER_SAMPLE
SAMPLE_DTYPE = np.dtype('<i2')


class EndOfDataError(EOFError):
    """The sample stream ended before the requested frames were read."""

    def __init__(self, requested: int, available: int):
        super().__init__(f"Expected {requested} frames, only {available} available.")
        self.requested = requested
        self.available = available


class SampleWriter:
    """Writes interleaved 16-bit little-endian stereo frames to a binary stream."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.frames_written = 0

    def write_frames(self, frames: np.ndarray) -> None:
        frames = np.asarray(frames)
        if frames.ndim != 2 or frames.shape[1] != NUM_CHANNELS:
            raise ValueError(f"Frames must have shape (n, {NUM_CHANNELS}), got {frames.shape}.")
        self.stream.write(frames.astype(SAMPLE_DTYPE, copy=False).tobytes())
        self.frames_written += frames.shape[0]

    def write_silence(self, num_frames: int) -> None:
        if num_frames <= 0:
            return
        self.write_frames(np.zeros((num_frames, NUM_CHANNELS), dtype=SAMPLE_DTYPE))


class SampleReader:
    """Reads interleaved 16-bit little-endian stereo frames from a binary stream."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.frames_read = 0

    def read_frames(self, num_frames: int) -> np.ndarray:
        """Returns an int16 array of shape (num_frames, 2); raises EndOfDataError on short data."""
        wanted = num_frames * FRAME_BYTES
        data = self.stream.read(wanted) if wanted > 0 else b''
        if len(data) < wanted:
            available = len(data) // FRAME_BYTES
            self.frames_read += available
            raise EndOfDataError(num_frames, available)
        self.frames_read += num_frames
        return np.frombuffer(data, dtype=SAMPLE_DTYPE).reshape(num_frames, NUM_CHANNELS)

    def skip_frames(self, num_frames: int) -> None:
        if num_frames <= 0:
            return
        self.read_frames(num_frames)
        logger.debug("Skipped %d frames", num_frames)
