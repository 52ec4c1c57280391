import io

import numpy as np
import pytest

from tone_burst_lib.sample_stream import EndOfDataError, SampleReader, SampleWriter


def test_frames_are_interleaved_little_endian():
    buffer = io.BytesIO()
    writer = SampleWriter(buffer)
    writer.write_frames(np.array([[1, -2], [256, -32768]], dtype=np.int16))

    assert buffer.getvalue() == b'\x01\x00\xfe\xff\x00\x01\x00\x80'
    assert writer.frames_written == 2


def test_read_frames_shape_and_values():
    buffer = io.BytesIO(b'\x01\x00\xfe\xff\x00\x01\x00\x80')
    frames = SampleReader(buffer).read_frames(2)
    assert frames.shape == (2, 2)
    assert frames.tolist() == [[1, -2], [256, -32768]]


def test_silence_and_skip():
    buffer = io.BytesIO()
    writer = SampleWriter(buffer)
    writer.write_silence(5)
    writer.write_frames(np.array([[7, 8]]))
    writer.write_silence(0)
    assert len(buffer.getvalue()) == 24

    buffer.seek(0)
    reader = SampleReader(buffer)
    reader.skip_frames(5)
    assert reader.read_frames(1).tolist() == [[7, 8]]
    assert reader.frames_read == 6


def test_short_read_raises_end_of_data():
    reader = SampleReader(io.BytesIO(b'\x00' * 10))
    with pytest.raises(EndOfDataError) as excinfo:
        reader.read_frames(3)
    assert excinfo.value.requested == 3
    assert excinfo.value.available == 2
    assert isinstance(excinfo.value, EOFError)


def test_skip_past_end_raises():
    with pytest.raises(EndOfDataError):
        SampleReader(io.BytesIO(b'')).skip_frames(1)


def test_write_rejects_mono():
    with pytest.raises(ValueError):
        SampleWriter(io.BytesIO()).write_frames(np.zeros(4))
