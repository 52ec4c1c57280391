"""
tone_burst_analyzer.py

Analyzes a captured stereo wave file containing tone bursts made by
tone_burst_generator. Each burst is correlated against the exact frequency
that was generated (a single-frequency DFT), giving magnitude and phase on
both channels plus the background level in the silence before the next burst.

A file analyzed straight from the generator reads 0 dB and 0 rad on both channels.

Usage:
    python -m tone_burst_analyzer.tone_burst_analyzer captured.wav
    python -m tone_burst_analyzer.tone_burst_analyzer captured.wav 22050 4 1000 polar --csv polar.csv
"""

import argparse
import logging
import sys

import numpy as np
from rich.console import Console

from tone_burst_lib.burst_codec import BurstCodec
from tone_burst_lib.burst_sequencer import BurstMode, ToneBurstSequencer
from tone_burst_lib.cli_common import add_burst_arguments, configure_logging, load_sweep_config
from tone_burst_lib.constants import ExitCode
from tone_burst_lib.output_formatting_utils import (
    build_header_table,
    build_results_table,
    build_run_table,
    build_setup_table,
    generate_plot,
    save_results_to_csv,
)
from tone_burst_lib.sample_stream import EndOfDataError, SampleReader
from tone_burst_lib.wave_header import WaveHeader, WaveHeaderError

console = Console()
error_console = Console(stderr=True, style="bold red")
logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    ('step', 'Step', 'd'),
    ('num_cycles', 'numCyc', 'd'),
    ('duration', 'duration', 'd'),
    ('nominal_freq', 'nomFreq', '.3f'),
    ('actual_freq', 'actFreq', '.3f'),
    ('abs_1', 'abs 1', '.5f'),
    ('abs_2', 'abs 2', '.5f'),
    ('db_1', 'dB 1', '.2f'),
    ('db_2', 'dB 2', '.2f'),
    ('db_diff', 'dB diff', '.2f'),
    ('phase_1', 'phase 1', '.4f'),
    ('phase_2', 'phase 2', '.4f'),
    ('phase_diff', 'phase diff', '.4f'),
    ('bkg_db_1', 'bkg 1', '.2f'),
    ('bkg_db_2', 'bkg 2', '.2f'),
]


def build_parser():
    parser = argparse.ArgumentParser(
        prog="tone-burst-analyzer",
        description="Analyze a captured wave file of tone bursts.",
    )
    add_burst_arguments(parser, "Input wave file")
    parser.add_argument("--plot-amp", type=str, default=None, help="Filename to save the level plot (e.g. level.png)")
    parser.add_argument("--plot-phase", type=str, default=None, help="Filename to save the phase plot (e.g. phase.png)")
    parser.add_argument("--show-plot", action="store_true", help="Display plots interactively")
    return parser


def analyze_stream(infile, config, on_row=None):
    """
    Runs the whole sequence over an open stream positioned at the first sample.

    Returns the list of result rows. EndOfDataError propagates to the caller;
    rows completed before it are passed to `on_row` as they are produced.
    """
    reader = SampleReader(infile)
    codec = BurstCodec(config)
    sequencer = ToneBurstSequencer(config)

    # discard the delay before the first burst
    reader.skip_frames(config.delay)

    rows = []
    for step in sequencer:
        result = codec.demodulate(step, reader)
        row = {
            'step': sequencer.step_index,
            'num_cycles': step.cycle_count,
            'duration': step.duration,
            'nominal_freq': step.nominal_freq,
            'actual_freq': step.actual_freq,
        }
        if sequencer.angle is not None:
            row['angle'] = sequencer.angle
        row.update(result.as_row())
        rows.append(row)
        if on_row is not None:
            on_row(row)
    return rows


def plot_results(rows, config, args):
    polar = config.mode is BurstMode.POLAR
    x_key = 'angle' if polar else 'actual_freq'
    x_label = 'Angle (degrees)' if polar else 'Frequency (Hz)'
    x_data = [r[x_key] for r in rows]

    if args.plot_amp or args.show_plot:
        generate_plot(
            x_data=x_data,
            y_data_list=[[r['db_1'] for r in rows], [r['db_2'] for r in rows]],
            legend_labels_list=['Channel 1', 'Channel 2'],
            title='Tone Burst Response - Level',
            x_label=x_label,
            y_label='Level (dB)',
            output_filename=args.plot_amp,
            show_plot=args.show_plot,
            log_x_scale=not polar,
            console=console,
        )

    if args.plot_phase or args.show_plot:
        phases_deg = [
            np.degrees(np.unwrap([r['phase_1'] for r in rows])),
            np.degrees(np.unwrap([r['phase_2'] for r in rows])),
        ]
        generate_plot(
            x_data=x_data,
            y_data_list=phases_deg,
            legend_labels_list=['Channel 1', 'Channel 2'],
            title='Tone Burst Response - Phase',
            x_label=x_label,
            y_label='Phase (degrees, unwrapped)',
            output_filename=args.plot_phase,
            show_plot=args.show_plot,
            log_x_scale=not polar,
            console=console,
        )


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

    try:
        infile = open(args.wavfile, 'rb')
    except OSError as e:
        error_console.print(f"Failed to open input file: {args.wavfile} ({e})")
        return ExitCode.OPEN_FAILED

    columns = list(RESULT_COLUMNS)
    if config.mode is BurstMode.POLAR:
        columns.insert(1, ('angle', 'Angle (deg)', '.1f'))

    rows = []
    with infile:
        try:
            header = WaveHeader.read(infile)
        except WaveHeaderError as e:
            error_console.print(f"Failed to read header info from disk. ({e})")
            return ExitCode.HEADER_FAILED

        console.print(build_run_table(parser.prog, len(raw_argv), args.wavfile))
        console.print(build_header_table(header))
        console.print(build_setup_table(config))

        if header.sample_rate != config.sample_rate:
            logger.warning(
                "File sample rate %d Hz differs from analysis rate %d Hz; frequencies will be off.",
                header.sample_rate, config.sample_rate,
            )
        if header.data.chunk_size < config.payload_size:
            logger.warning(
                "Data chunk holds %d bytes, a full run needs %d.",
                header.data.chunk_size, config.payload_size,
            )

        try:
            analyze_stream(infile, config, on_row=rows.append)
        except EndOfDataError as e:
            console.print(build_results_table(rows, columns, "Tone burst analysis (incomplete)"))
            error_console.print(f"Failed to read tone bursts from disk. ({e})")
            return ExitCode.DATA_FAILED

    console.print(build_results_table(rows, columns, "Tone burst analysis"))

    if args.csv:
        save_results_to_csv(args.csv, rows, [key for key, _, _ in columns], console=console)

    if rows and (args.plot_amp or args.plot_phase or args.show_plot):
        plot_results(rows, config, args)

    return ExitCode.OK


if __name__ == '__main__':
    sys.exit(main())
