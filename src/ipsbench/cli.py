"""Command-line interface for ipsbench.

Subcommands:
    ipsbench run     Benchmark code entries from a profile or the command line
    ipsbench show    Display results saved with ``run --json``
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from ipsbench import __version__
from ipsbench.logging import setup_logging

log = logging.getLogger("ipsbench")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """ipsbench: measure and compare iterations per second of Python code."""


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True),
    help="YAML profile defining settings, setup code and entries.",
)
@click.option(
    "--entry",
    "inline_entries",
    type=str,
    multiple=True,
    help="Inline entry: 'label=code' (repeatable).",
)
@click.option(
    "--setup",
    type=str,
    default=None,
    help="Code run once per entry before timing (imports, fixtures).",
)
@click.option(
    "--warmup",
    type=float,
    default=None,
    help="Calibration seconds per entry (default: 2, 0 skips calibration).",
)
@click.option(
    "--time",
    "time_s",
    type=float,
    default=None,
    help="Measurement seconds per entry (default: 5).",
)
@click.option(
    "--iterations",
    type=int,
    default=None,
    help="Full calibrate+measure passes (default: 1).",
)
@click.option(
    "--stats",
    type=click.Choice(["sd", "bootstrap"]),
    default=None,
    help="Statistics model (default: sd). bootstrap needs numpy.",
)
@click.option(
    "--confidence",
    type=float,
    default=None,
    help="Bootstrap confidence level in percent (default: 95).",
)
@click.option(
    "--batch-time",
    type=float,
    default=None,
    help="Target seconds per calibrated batch (default: 0.1).",
)
@click.option(
    "--compare/--no-compare",
    default=None,
    help="Rank entries and print a comparison.",
)
@click.option(
    "--hold",
    "hold_path",
    type=click.Path(),
    default=None,
    help="Hold file: measure one entry per invocation, resuming from it.",
)
@click.option(
    "--json",
    "json_path",
    type=click.Path(),
    default=None,
    help="Write results as JSON to this path.",
)
@click.option(
    "--share",
    is_flag=True,
    default=None,
    help="Upload the results to the sharing service (SHARE_URL).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["human", "raw"]),
    default=None,
    help="Number format for progress and comparison output.",
)
@click.option(
    "--gc",
    "collect_gc",
    is_flag=True,
    default=False,
    help="Run a garbage collection before each warm-up and measurement.",
)
@click.option("-q", "--quiet", is_flag=True, default=False, help="Suppress progress output.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write debug logging to this file.",
)
def run(  # noqa: PLR0913
    profile_path: str | None,
    inline_entries: tuple[str, ...],
    setup: str | None,
    warmup: float | None,
    time_s: float | None,
    iterations: int | None,
    stats: str | None,
    confidence: float | None,
    batch_time: float | None,
    compare: bool | None,
    hold_path: str | None,
    json_path: str | None,
    share: bool | None,
    output_format: str | None,
    collect_gc: bool,
    quiet: bool,
    verbose: bool,
    log_file: Path | None,
) -> None:
    """Measure iterations per second of code entries.

    Use --profile for a YAML profile or --entry for inline entries.

    \b
    Examples:
        # Two inline entries, compared
        ipsbench run --compare \\
            --setup "words = ['a'] * 100" \\
            --entry "join=''.join(words)" \\
            --entry "sum=sum(words, '')"

        # From a profile, splitting the run over several invocations
        ipsbench run --profile strings.yaml --hold held.json
    """
    from ipsbench.clock import collect_garbage, no_quiesce
    from ipsbench.config import (
        ConfigurationError,
        config_from_profile,
        load_profile,
        parse_inline_entry,
    )
    from ipsbench.job import Job

    setup_logging(
        verbose=verbose,
        quiet=quiet,
        log_file=log_file,
        stream=click.get_text_stream("stderr"),
    )

    cli_overrides: dict[str, object] = {
        "warmup": warmup,
        "time": time_s,
        "iterations": iterations,
        "stats": stats,
        "confidence": confidence,
        "batch_time": batch_time,
        "compare": compare,
        "hold_path": hold_path,
        "json_path": json_path,
        "share": share,
        "format": output_format,
        "setup": setup,
        "quiet": quiet or None,
    }

    try:
        profile_data = load_profile(Path(profile_path)) if profile_path else {}
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
        for spec in inline_entries:
            label, code = parse_inline_entry(spec)
            config.entries[label] = code
        if not config.entries:
            raise click.UsageError("No entries: use --profile or --entry.")

        job = Job(config, quiesce=collect_garbage if collect_gc else no_quiesce)
        job.run()
    except (ConfigurationError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    if config.json_path is not None and not job.paused:
        click.echo(f"\nResults saved to: {config.json_path}")


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@main.command("show")
@click.argument("results_file", type=click.Path(exists=True))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["human", "raw"]),
    default="human",
    help="Number format.",
)
def show(results_file: str, output_format: str) -> None:
    """Display results saved by ``ipsbench run --json``.

    RESULTS_FILE is the JSON file written by a previous run.
    """
    from ipsbench.display import format_records
    from ipsbench.results import load_json

    try:
        records = load_json(Path(results_file))
    except (ValueError, KeyError) as exc:
        click.echo(f"Error: could not read {results_file}: {exc}", err=True)
        raise SystemExit(1) from exc

    click.echo(format_records(records, output_format))
