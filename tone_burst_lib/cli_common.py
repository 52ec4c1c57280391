"""Argument handling shared by the generator and analyzer command lines."""

import argparse
import logging
import sys

from .burst_sequencer import BurstMode, SweepConfig
from .config_manager import ConfigManager


def add_burst_arguments(parser: argparse.ArgumentParser, file_help: str) -> None:
    """Positional arguments in the order [file [delay [num_avg [start_freq [sweep|polar]]]]]."""
    parser.add_argument("wavfile", nargs="?", help=file_help)
    parser.add_argument("delay", nargs="?", type=int, help="Samples of silence before the first burst (default: 22050)")
    parser.add_argument("num_avg", nargs="?", type=int, help="Number of bursts to average over (default: 1)")
    parser.add_argument("start_freq", nargs="?", type=float, help="Start frequency in Hz (default: 100 sweep, 1000 polar)")
    parser.add_argument("mode", nargs="?", type=BurstMode.parse, default=BurstMode.SWEEP,
                        help="'sweep' (default) or 'polar'")
    parser.add_argument("--config", type=str, default=None, help="JSON configuration file")
    parser.add_argument("--csv", type=str, default=None, help="Filename to save per-step results as CSV")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def load_sweep_config(args: argparse.Namespace) -> SweepConfig:
    """Builds the run configuration: defaults, then the config file, then positional arguments."""
    manager = ConfigManager(args.config)
    return manager.sweep_config(
        args.mode,
        delay=args.delay,
        num_avg=args.num_avg,
        start_freq=args.start_freq,
    )
