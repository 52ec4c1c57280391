"""
Wave file header records for 16-bit stereo PCM.

Each record is a plain dataclass with explicit little-endian field layout,
encoded and decoded with ``struct``.
Files are always written with the canonical 44 byte header:

    RIFF descriptor  12 bytes  "RIFF", size - 8, "WAVE"
    fmt descriptor   24 bytes  "fmt ", 16, PCM, channels, rate, byte rate, align, bits
    data descriptor   8 bytes  "data", payload byte count
"""

import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO

from .constants import BYTES_PER_SAMPLE, NUM_CHANNELS

logger = logging.getLogger(__name__)

PCM_FORMAT = 1
FMT_SIZE = 16
HEADER_SIZE = 44

_CHUNK_HEAD = struct.Struct('<4sI')
_RIFF = struct.Struct('<4sI4s')
_FMT = struct.Struct('<4sIHHIIHH')
_DATA = _CHUNK_HEAD


class WaveHeaderError(ValueError):
    """The header is missing, truncated, or describes an unsupported format."""


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) < size:
        raise WaveHeaderError(f"Unexpected end of file while reading {what} ({len(data)} of {size} bytes).")
    return data


@dataclass
class RiffDescriptor:
    chunk_size: int
    chunk_id: bytes = b'RIFF'
    format: bytes = b'WAVE'

    SIZE = _RIFF.size

    @classmethod
    def for_payload(cls, payload_size: int) -> "RiffDescriptor":
        # everything after the size field: "WAVE" + fmt chunk + data chunk head + payload
        return cls(chunk_size=payload_size + HEADER_SIZE - 8)

    def encode(self) -> bytes:
        return _RIFF.pack(self.chunk_id, self.chunk_size, self.format)

    @classmethod
    def decode(cls, data: bytes) -> "RiffDescriptor":
        chunk_id, chunk_size, fmt = _RIFF.unpack_from(data)
        return cls(chunk_size=chunk_size, chunk_id=chunk_id, format=fmt)


@dataclass
class FormatDescriptor:
    sample_rate: int
    num_channels: int = NUM_CHANNELS
    bits_per_sample: int = BYTES_PER_SAMPLE * 8
    format_code: int = PCM_FORMAT
    chunk_size: int = FMT_SIZE
    byte_rate: int | None = None
    block_align: int | None = None
    chunk_id: bytes = b'fmt '

    SIZE = _FMT.size

    def __post_init__(self):
        bytes_per_sample = self.bits_per_sample // 8
        if self.block_align is None:
            self.block_align = self.num_channels * bytes_per_sample
        if self.byte_rate is None:
            self.byte_rate = self.sample_rate * self.block_align

    def encode(self) -> bytes:
        return _FMT.pack(
            self.chunk_id, self.chunk_size, self.format_code, self.num_channels,
            self.sample_rate, self.byte_rate, self.block_align, self.bits_per_sample,
        )

    @classmethod
    def decode(cls, data: bytes) -> "FormatDescriptor":
        (chunk_id, chunk_size, format_code, num_channels,
         sample_rate, byte_rate, block_align, bits) = _FMT.unpack_from(data)
        return cls(
            sample_rate=sample_rate,
            num_channels=num_channels,
            bits_per_sample=bits,
            format_code=format_code,
            chunk_size=chunk_size,
            byte_rate=byte_rate,
            block_align=block_align,
            chunk_id=chunk_id,
        )


@dataclass
class DataDescriptor:
    chunk_size: int
    chunk_id: bytes = b'data'

    SIZE = _DATA.size

    def encode(self) -> bytes:
        return _DATA.pack(self.chunk_id, self.chunk_size)

    @classmethod
    def decode(cls, data: bytes) -> "DataDescriptor":
        chunk_id, chunk_size = _DATA.unpack_from(data)
        return cls(chunk_size=chunk_size, chunk_id=chunk_id)


@dataclass
class WaveHeader:
    riff: RiffDescriptor
    fmt: FormatDescriptor
    data: DataDescriptor

    @classmethod
    def for_payload(cls, sample_rate: int, payload_size: int) -> "WaveHeader":
        return cls(
            riff=RiffDescriptor.for_payload(payload_size),
            fmt=FormatDescriptor(sample_rate=sample_rate),
            data=DataDescriptor(chunk_size=payload_size),
        )

    @property
    def sample_rate(self) -> int:
        return self.fmt.sample_rate

    def encode(self) -> bytes:
        return self.riff.encode() + self.fmt.encode() + self.data.encode()

    def write(self, stream: BinaryIO) -> None:
        stream.write(self.encode())
        logger.info("Wrote wave header: %d Hz, %d payload bytes", self.fmt.sample_rate, self.data.chunk_size)

    @classmethod
    def read(cls, stream: BinaryIO) -> "WaveHeader":
        """
        Reads a header and leaves the stream positioned at the first sample.

        Chunks other than "fmt " that appear before "data" are skipped.
        Anything but 16-bit stereo PCM is rejected.
        """
        riff = RiffDescriptor.decode(_read_exact(stream, RiffDescriptor.SIZE, "RIFF descriptor"))
        if riff.chunk_id != b'RIFF' or riff.format != b'WAVE':
            raise WaveHeaderError(f"Not a RIFF/WAVE file (found {riff.chunk_id!r}/{riff.format!r}).")

        fmt = None
        while True:
            head = _read_exact(stream, _CHUNK_HEAD.size, "chunk header")
            chunk_id, chunk_size = _CHUNK_HEAD.unpack(head)

            if chunk_id == b'fmt ':
                if chunk_size < FMT_SIZE:
                    raise WaveHeaderError(f"fmt chunk too small ({chunk_size} bytes).")
                body = _read_exact(stream, chunk_size + (chunk_size & 1), "fmt chunk")
                fmt = FormatDescriptor.decode(head + body[:FMT_SIZE])
            elif chunk_id == b'data':
                if fmt is None:
                    raise WaveHeaderError("data chunk found before fmt chunk.")
                data = DataDescriptor(chunk_size=chunk_size, chunk_id=chunk_id)
                break
            else:
                logger.warning("Skipping %r chunk (%d bytes)", chunk_id, chunk_size)
                _read_exact(stream, chunk_size + (chunk_size & 1), f"{chunk_id!r} chunk")

        if fmt.format_code != PCM_FORMAT:
            raise WaveHeaderError(f"Unsupported format code {fmt.format_code}; only PCM (1) is supported.")
        if fmt.num_channels != NUM_CHANNELS:
            raise WaveHeaderError(f"Expected {NUM_CHANNELS} channels, file has {fmt.num_channels}.")
        if fmt.bits_per_sample != BYTES_PER_SAMPLE * 8:
            raise WaveHeaderError(f"Expected 16-bit samples, file has {fmt.bits_per_sample}-bit.")

        header = cls(riff=riff, fmt=fmt, data=data)
        logger.info("Read wave header: %d Hz, %d payload bytes", fmt.sample_rate, data.chunk_size)
        return header
