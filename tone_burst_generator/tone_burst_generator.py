"""
tone_burst_generator.py

Generates a stereo 16-bit wave file containing tone bursts intended to be
transmitted from a point source in free-field conditions. Each burst holds
a whole number of cycles and is followed by silence up to the burst interval.

Usage:
    python -m tone_burst_generator.tone_burst_generator outfile.wav
    python -m tone_burst_generator.tone_burst_generator outfile.wav 22050 4 1000 polar

A description of every burst is printed to the console.
"""

import argparse
import logging
import sys

from rich.console import Console

from tone_burst_lib.burst_codec import BurstCodec
from tone_burst_lib.burst_sequencer import BurstMode, ToneBurstSequencer
from tone_burst_lib.cli_common import add_burst_arguments, configure_logging, load_sweep_config
from tone_burst_lib.constants import ExitCode
from tone_burst_lib.output_formatting_utils import (
    build_results_table,
    build_run_table,
    build_setup_table,
    save_results_to_csv,
)
from tone_burst_lib.sample_stream import SampleWriter
from tone_burst_lib.wave_header import WaveHeader

console = Console()
error_console = Console(stderr=True, style="bold red")
logger = logging.getLogger(__name__)

STEP_COLUMNS = [
    ('step', 'Step', 'd'),
    ('num_cycles', 'numCyc', 'd'),
    ('duration', 'duration', 'd'),
    ('nominal_freq', 'nomFreq (Hz)', '.3f'),
    ('actual_freq', 'actFreq (Hz)', '.3f'),
]


def build_parser():
    parser = argparse.ArgumentParser(
        prog="tone-burst-generator",
        description="Generate a wave file of tone bursts for free-field measurements.",
    )
    add_burst_arguments(parser, "Output wave file")
    return parser


def step_row(sequencer, step):
    row = {
        'step': sequencer.step_index,
        'num_cycles': step.cycle_count,
        'duration': step.duration,
        'nominal_freq': step.nominal_freq,
        'actual_freq': step.actual_freq,
    }
    if sequencer.angle is not None:
        row['angle'] = sequencer.angle
    return row


def main(argv=None):
    raw_argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(raw_argv)

    if not args.wavfile:
        parser.print_usage(sys.stderr)
        return ExitCode.USAGE

    configure_logging(args.verbose)

    config = load_sweep_config(args)
    try:
        config.validate()
    except ValueError as e:
        error_console.print(f"Invalid configuration: {e}")
        return ExitCode.USAGE

    header = WaveHeader.for_payload(config.sample_rate, config.payload_size)

    try:
        outfile = open(args.wavfile, 'wb')
    except OSError as e:
        error_console.print(f"Failed to open output file: {args.wavfile} ({e})")
        return ExitCode.OPEN_FAILED

    columns = list(STEP_COLUMNS)
    if config.mode is BurstMode.POLAR:
        columns.insert(1, ('angle', 'Angle (deg)', '.1f'))

    rows = []
    with outfile:
        try:
            header.write(outfile)
        except OSError as e:
            error_console.print(f"Failed to write header info to disk. ({e})")
            return ExitCode.HEADER_FAILED

        console.print(build_run_table(parser.prog, len(raw_argv), args.wavfile))
        console.print(build_setup_table(config))

        writer = SampleWriter(outfile)
        codec = BurstCodec(config)
        sequencer = ToneBurstSequencer(config)
        try:
            # silence on both channels before the first burst
            writer.write_silence(config.delay)
            for step in sequencer:
                codec.synthesize(step, writer)
                rows.append(step_row(sequencer, step))
        except OSError as e:
            error_console.print(f"Failed to write tone bursts to disk. ({e})")
            return ExitCode.DATA_FAILED

    logger.info("Wrote %d frames to %s", writer.frames_written, args.wavfile)
    console.print(build_results_table(rows, columns, "Tone bursts"))

    if args.csv:
        save_results_to_csv(args.csv, rows, [key for key, _, _ in columns], console=console)

    return ExitCode.OK


if __name__ == '__main__':
    sys.exit(main())
