import csv
import math
import os

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from rich.console import Console
from rich.table import Table

from .burst_sequencer import BurstMode, SweepConfig
from .wave_header import WaveHeader


def save_results_to_csv(filepath: str, data_rows_list_of_dicts: list[dict], fieldnames: list[str], console: Console = None):
    """
    Writes a list of dictionaries to a CSV file.

    Args:
        filepath (str): The path to the CSV file.
        data_rows_list_of_dicts (list[dict]): Data to write. Each dict is a row.
        fieldnames (list[str]): Keys to use for header and dict lookup, defining column order.
        console (Console, optional): Rich Console for printing messages.
    """
    effective_console = console if console else Console(stderr=True)

    if not data_rows_list_of_dicts:
        effective_console.print(f"[yellow]Warning: No data provided to save to CSV '{filepath}'. File not created.[/yellow]")
        return

    try:
        dir_name = os.path.dirname(filepath)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

        with open(filepath, 'w', newline='', encoding='utf-8') as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=fieldnames, extrasaction='ignore')
            writer.writeheader()
            for row_dict in data_rows_list_of_dicts:
                writer.writerow(row_dict)
    except OSError as e:
        effective_console.print(f"[bold red]Could not write CSV file '{filepath}': {e}[/bold red]")
        return
    effective_console.print(f"[green]Successfully saved results to CSV: {filepath}[/green]")


def generate_plot(
    x_data: list | np.ndarray,
    y_data_list: list[list | np.ndarray],
    legend_labels_list: list[str],
    title: str,
    x_label: str,
    y_label: str,
    output_filename: str = None,
    show_plot: bool = False,
    log_x_scale: bool = False,
    console: Console = None
):
    """
    Generates a plot using Matplotlib, with options to save and show.

    Datasets whose length does not match x_data, or which are all NaN or
    infinite, are skipped with a warning.
    """
    effective_console = console if console else Console(stderr=True)

    if len(y_data_list) != len(legend_labels_list):
        effective_console.print("[bold red]Error: Mismatch between number of Y-datasets and legend labels. Cannot generate plot.[/bold red]")
        return

    if not show_plot and output_filename and matplotlib.get_backend().lower() != 'agg':
        matplotlib.use('Agg')

    fig = plt.figure(figsize=(10, 6))
    try:
        ax = fig.add_subplot(1, 1, 1)
        x_array = np.asarray(x_data, dtype=float)

        plotted = 0
        for label, y_data_raw in zip(legend_labels_list, y_data_list):
            y_array = np.asarray(y_data_raw, dtype=float)
            if len(y_array) != len(x_array):
                effective_console.print(f"[yellow]Warning: Length mismatch for dataset '{label}' (X: {len(x_array)}, Y: {len(y_array)}). Skipping this dataset.[/yellow]")
                continue
            if not np.any(np.isfinite(y_array)):
                effective_console.print(f"[yellow]Warning: Dataset '{label}' has no finite values. Skipping.[/yellow]")
                continue
            ax.plot(x_array, y_array, label=label)
            plotted += 1

        ax.set_title(title)
        ax.set_xlabel(x_label)
        ax.set_ylabel(y_label)
        if plotted:
            ax.legend()
        ax.grid(True, which="both", ls="-", alpha=0.5)
        if log_x_scale:
            ax.set_xscale('log')

        if output_filename:
            dir_name = os.path.dirname(output_filename)
            if dir_name:
                os.makedirs(dir_name, exist_ok=True)
            fig.savefig(output_filename)
            effective_console.print(f"[green]Plot saved to {output_filename}[/green]")

        if show_plot:
            plt.show()
    finally:
        plt.close(fig)


def _fmt(value, spec: str) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return format(value, spec)


def build_run_table(program: str, num_args: int, filename: str) -> Table:
    table = Table(title="Run", show_header=False)
    table.add_column("Key", style="cyan", justify="right")
    table.add_column("Value")
    table.add_row("executable", program)
    table.add_row("arguments", str(num_args))
    table.add_row("file name", filename)
    return table


def build_setup_table(config: SweepConfig) -> Table:
    """Mirrors the setup summary printed before a run."""
    table = Table(title="Setup", show_header=False)
    table.add_column("Key", style="cyan", justify="right")
    table.add_column("Value")
    table.add_row("mode", "freq sweep" if config.mode is BurstMode.SWEEP else "polar plot")
    table.add_row("start freq", _fmt(config.start_freq, "g"))
    table.add_row("end freq", _fmt(config.stop_freq, "g"))
    table.add_row("num steps", str(config.num_steps))
    table.add_row("averaging", str(config.num_avg))
    table.add_row("delay", str(config.delay))
    table.add_row("interval", str(config.interval))
    table.add_row("sample rate", str(config.sample_rate))
    return table


def build_header_table(header: WaveHeader) -> Table:
    table = Table(title="Wave header", show_header=False)
    table.add_column("Field", style="cyan", justify="right")
    table.add_column("Value")
    table.add_row("chunkID", header.riff.chunk_id.decode('ascii', errors='replace'))
    table.add_row("chunkSize", str(header.riff.chunk_size))
    table.add_row("format", header.riff.format.decode('ascii', errors='replace'))
    table.add_row("chunkID", header.fmt.chunk_id.decode('ascii', errors='replace'))
    table.add_row("chunkSize", str(header.fmt.chunk_size))
    table.add_row("fmtCode", str(header.fmt.format_code))
    table.add_row("numChan", str(header.fmt.num_channels))
    table.add_row("sampRate", str(header.fmt.sample_rate))
    table.add_row("byteRate", str(header.fmt.byte_rate))
    table.add_row("blockAlign", str(header.fmt.block_align))
    table.add_row("bitsSamp", str(header.fmt.bits_per_sample))
    table.add_row("chunkID", header.data.chunk_id.decode('ascii', errors='replace'))
    table.add_row("chunkSize", str(header.data.chunk_size))
    return table


def build_results_table(rows: list[dict], columns: list[tuple[str, str, str]], title: str) -> Table:
    """
    Builds a per-step table.

    Args:
        rows: one dict per step.
        columns: (key, heading, format spec) triples, in display order.
        title: table title.
    """
    table = Table(title=title)
    for key, heading, _ in columns:
        table.add_column(heading, justify="right", style="cyan" if key == "step" else None)
    for row in rows:
        table.add_row(*(_fmt(row.get(key), spec) for key, _, spec in columns))
    return table
