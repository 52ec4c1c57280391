import io
import logging
from dataclasses import replace

import numpy as np
import pytest

from tone_burst_lib.burst_codec import BurstCodec, burst_waveform
from tone_burst_lib.burst_sequencer import SweepConfig, ToneBurstSequencer, compute_burst_step
from tone_burst_lib.sample_stream import EndOfDataError, SampleReader, SampleWriter


def float_frames(config, step, ch1, ch2=None):
    """Builds num_avg repeats of (burst, silence) frames from per-channel burst samples."""
    frames = np.zeros((config.frames_per_step, 2))
    for k in range(config.num_avg):
        start = k * config.interval
        frames[start:start + step.duration, 0] = ch1
        frames[start:start + step.duration, 1] = ch1 if ch2 is None else ch2
    return frames


def test_waveform_shape_and_range():
    step = compute_burst_step(44100, 1000.0, 100)
    wave = burst_waveform(step, 12000.0)
    assert wave.shape == (step.duration,)
    # raised cosine plus second harmonic starts and ends at zero
    assert wave[0] == 0.0
    assert wave.max() <= 1.125 * 12000.0 + 1e-6
    assert wave.min() >= -2.0 * 12000.0 - 1e-6


def test_synthesize_block_layout(small_sweep_config):
    config = replace(small_sweep_config, num_avg=3)
    step = compute_burst_step(config.sample_rate, 400.0, config.burst_min)
    block = BurstCodec(config).synthesize_block(step)

    assert block.dtype == np.int16
    assert block.shape == (3 * config.interval, 2)
    assert np.array_equal(block[:, 0], block[:, 1])

    repeat = block[:config.interval, 0]
    expected = np.rint(burst_waveform(step, config.amplitude)).astype(np.int16)
    assert np.array_equal(repeat[:step.duration], expected)
    assert not repeat[step.duration:].any()
    assert np.array_equal(block[config.interval:2 * config.interval, 0], repeat)


def test_exact_round_trip_on_float_samples(small_sweep_config):
    codec = BurstCodec(small_sweep_config)
    for step in ToneBurstSequencer(small_sweep_config):
        frames = float_frames(small_sweep_config, step, burst_waveform(step, small_sweep_config.amplitude))
        result = codec.demodulate_block(step, frames)

        assert result.magnitude_1 == pytest.approx(1.0, abs=1e-9)
        assert result.magnitude_2 == pytest.approx(1.0, abs=1e-9)
        assert result.phase_1 == pytest.approx(0.0, abs=1e-9)
        assert result.phase_2 == pytest.approx(0.0, abs=1e-9)
        assert result.db_diff == pytest.approx(0.0, abs=1e-9)
        assert result.background_db_1 == -np.inf
        assert result.background_db_2 == -np.inf


def test_quantized_round_trip_through_stream(small_sweep_config):
    config = replace(small_sweep_config, num_avg=2)
    codec = BurstCodec(config)
    buffer = io.BytesIO()
    writer = SampleWriter(buffer)
    for step in ToneBurstSequencer(config):
        codec.synthesize(step, writer)

    buffer.seek(0)
    reader = SampleReader(buffer)
    results = [codec.demodulate(step, reader) for step in ToneBurstSequencer(config)]

    assert len(results) == config.num_steps
    for result in results:
        assert result.magnitude_1 == pytest.approx(1.0, abs=1e-3)
        assert result.db_1 == pytest.approx(0.0, abs=0.01)
        assert result.phase_1 == pytest.approx(0.0, abs=1e-3)
        assert result.phase_diff == 0.0
        assert result.db_diff == 0.0


def test_default_sweep_round_trip():
    config = SweepConfig()
    codec = BurstCodec(config)
    seq = ToneBurstSequencer(config)
    seq.reset()
    for _ in range(3):
        seq.advance()
    step = seq.current_step
    result = codec.demodulate_block(step, codec.synthesize_block(step))
    assert result.db_1 == pytest.approx(0.0, abs=0.01)
    assert result.phase_2 == pytest.approx(0.0, abs=1e-3)


def test_attenuated_and_shifted_channel(small_sweep_config):
    config = small_sweep_config
    codec = BurstCodec(config)
    step = compute_burst_step(config.sample_rate, 500.0, config.burst_min)
    phi = 0.3
    j = np.arange(step.duration)
    w = step.phase_factor
    ch1 = burst_waveform(step, config.amplitude)
    ch2 = 0.5 * config.amplitude * (np.cos(w * j + phi) - np.cos(2 * (w * j + phi)))

    result = codec.demodulate_block(step, float_frames(config, step, ch1, ch2))

    assert result.magnitude_2 == pytest.approx(0.5, abs=1e-9)
    assert result.db_2 == pytest.approx(20 * np.log10(0.5), abs=1e-9)
    assert result.db_diff == pytest.approx(20 * np.log10(2.0), abs=1e-9)
    # the kernel is e^(+i w j), so an advanced input reads as a negative phase
    assert result.phase_2 == pytest.approx(-phi, abs=1e-9)
    assert result.phase_diff == pytest.approx(phi, abs=1e-9)


def test_background_window_level(small_sweep_config):
    config = small_sweep_config
    codec = BurstCodec(config)
    step = compute_burst_step(config.sample_rate, 500.0, config.burst_min)

    frames = np.zeros((config.frames_per_step, 2))
    bkg = np.arange(config.interval - 2 * step.duration, config.interval - step.duration)
    frames[bkg, 0] = 0.1 * config.amplitude * np.cos(step.phase_factor * bkg)
    # signal outside both windows must not be picked up
    frames[step.duration:bkg[0], 1] = 1000.0

    result = codec.demodulate_block(step, frames)

    assert result.background_db_1 == pytest.approx(-20.0, abs=1e-6)
    assert result.background_db_2 == -np.inf
    assert result.magnitude_1 == 0.0


def test_averaging_combines_repeats(small_sweep_config):
    config = replace(small_sweep_config, num_avg=2)
    codec = BurstCodec(config)
    step = compute_burst_step(config.sample_rate, 500.0, config.burst_min)
    frames = float_frames(config, step, burst_waveform(step, config.amplitude))
    # silence the second repeat: the average drops to half
    frames[config.interval:] = 0.0

    result = codec.demodulate_block(step, frames)
    assert result.magnitude_1 == pytest.approx(0.5, abs=1e-9)


def test_clipping_is_logged(small_sweep_config, caplog):
    config = replace(small_sweep_config, amplitude=20000.0)
    step = compute_burst_step(config.sample_rate, 500.0, config.burst_min)

    with caplog.at_level(logging.WARNING, logger="tone_burst_lib.burst_codec"):
        block = BurstCodec(config).synthesize_block(step)

    assert block.min() == -32768
    assert "clipping" in caplog.text


def test_demodulate_reports_end_of_data(small_sweep_config):
    codec = BurstCodec(small_sweep_config)
    step = compute_burst_step(small_sweep_config.sample_rate, 500.0, small_sweep_config.burst_min)
    reader = SampleReader(io.BytesIO(b'\x00' * 4 * (small_sweep_config.interval - 1)))
    with pytest.raises(EndOfDataError):
        codec.demodulate(step, reader)


def test_demodulate_block_rejects_wrong_shape(small_sweep_config):
    codec = BurstCodec(small_sweep_config)
    step = compute_burst_step(small_sweep_config.sample_rate, 500.0, small_sweep_config.burst_min)
    with pytest.raises(ValueError):
        codec.demodulate_block(step, np.zeros((10, 2)))


def test_result_row_keys():
    codec = BurstCodec(SweepConfig())
    step = compute_burst_step(44100, 1000.0, 100)
    row = codec.demodulate_block(step, codec.synthesize_block(step)).as_row()
    assert list(row) == [
        'abs_1', 'abs_2', 'db_1', 'db_2', 'db_diff',
        'phase_1', 'phase_2', 'phase_diff', 'bkg_db_1', 'bkg_db_2',
    ]


def reference_sums(config, step, frames):
    """Sample-by-sample correlation, one repeat after another."""
    response = np.zeros(2, dtype=complex)
    background = np.zeros(2, dtype=complex)
    for k in range(config.num_avg):
        for j in range(config.interval):
            kernel = np.exp(1j * step.phase_factor * j)
            sample = frames[k * config.interval + j]
            if j < step.duration:
                response += kernel * sample
            if config.interval - 2 * step.duration <= j < config.interval - step.duration:
                background += kernel * sample
    scale = step.duration * config.num_avg * config.amplitude / 2.0
    return response / scale, background / scale


def test_background_window_clipped_when_burst_fills_most_of_interval():
    config = SweepConfig(sample_rate=8000, interval=120, burst_min=50, num_avg=2, num_steps=2)
    step = compute_burst_step(config.sample_rate, 100.0, config.burst_min)
    assert step.duration == 80
    assert 2 * step.duration > config.interval

    rng = np.random.default_rng(7)
    frames = rng.integers(-2000, 2000, size=(config.frames_per_step, 2)).astype(np.int16)
    result = BurstCodec(config).demodulate_block(step, frames)
    response, background = reference_sums(config, step, frames.astype(float))

    assert result.response_1 == pytest.approx(response[0], abs=1e-9)
    assert result.response_2 == pytest.approx(response[1], abs=1e-9)
    # window starts at sample 0, not at interval - 2 * duration
    assert result.background_1 == pytest.approx(background[0], abs=1e-9)
    assert result.background_2 == pytest.approx(background[1], abs=1e-9)
    assert abs(result.background_1) > 0
