"""Terminal output for benchmark runs.

``StreamReport`` prints progress while a job runs.  It writes only to
the output sink it was constructed with, so a job never touches
process-wide stream state.  ``MultiReport`` fans the same callbacks out
to several reporters.  The ``format_*`` functions return strings for
the CLI to echo.
"""

from __future__ import annotations

import platform
from typing import TYPE_CHECKING, Protocol, TextIO

import click

from ipsbench.calibrate import CalibrationResult
from ipsbench.compare import ComparisonOutcome, VerdictKind
from ipsbench.formatting import format_number, format_seconds, format_table, scale
from ipsbench.results import ExportRecord, ReportEntry

if TYPE_CHECKING:
    from ipsbench.entry import Entry

LABEL_WIDTH = 20


# ---------------------------------------------------------------------------
# Reporter protocol
# ---------------------------------------------------------------------------


class Reporter(Protocol):
    """Callbacks a job makes while it runs."""

    def start_warming(self) -> None: ...

    def warming(self, label: str, warmup_s: float) -> None: ...

    def warmup_stats(self, calibration: CalibrationResult) -> None: ...

    def start_running(self) -> None: ...

    def running(self, label: str, time_s: float) -> None: ...

    def add_report(self, entry: ReportEntry) -> None: ...

    def footer(self) -> None: ...


class MultiReport:
    """Forwards every callback to each of a list of reporters."""

    def __init__(self, out: list[Reporter] | None = None) -> None:
        self.out: list[Reporter] = list(out or [])

    def __bool__(self) -> bool:
        return bool(self.out)

    def add(self, reporter: Reporter) -> None:
        self.out.append(reporter)

    def start_warming(self) -> None:
        for o in self.out:
            o.start_warming()

    def warming(self, label: str, warmup_s: float) -> None:
        for o in self.out:
            o.warming(label, warmup_s)

    def warmup_stats(self, calibration: CalibrationResult) -> None:
        for o in self.out:
            o.warmup_stats(calibration)

    def start_running(self) -> None:
        for o in self.out:
            o.start_running()

    def running(self, label: str, time_s: float) -> None:
        for o in self.out:
            o.running(label, time_s)

    def add_report(self, entry: ReportEntry) -> None:
        for o in self.out:
            o.add_report(entry)

    def footer(self) -> None:
        for o in self.out:
            o.footer()


# ---------------------------------------------------------------------------
# Entry lines
# ---------------------------------------------------------------------------


def batch_unit(batch_time: float) -> str:
    """Unit label for calibration output, e.g. ``'i/100ms'``."""
    return f"i/{batch_time * 1000:g}ms"


def format_entry_body(entry: ReportEntry, fmt: str = "human") -> str:
    """Format the throughput part of a result line.

    The total measured time is only shown when it diverged from the
    requested time, as a hint that the result is skewed.
    """
    left = f"{format_number(entry.ips, fmt)} (±{entry.error_percentage:4.1f}%) i/s"
    if fmt == "human":
        iters = scale(entry.total_iterations).strip()
    else:
        iters = f"{entry.total_iterations:10d}"
    line = f"{left:<20s} - {iters}"
    if entry.timing_skewed:
        line += f" in {entry.seconds:10.6f}s"
    return line


def format_entry(entry: ReportEntry, fmt: str = "human") -> str:
    """Format a full result line: right-aligned label and body."""
    return f"{entry.label:>{LABEL_WIDTH}s} {format_entry_body(entry, fmt)}"


# ---------------------------------------------------------------------------
# StreamReport
# ---------------------------------------------------------------------------


class StreamReport:
    """Progress printer writing to an explicit sink."""

    def __init__(
        self,
        out: TextIO,
        *,
        fmt: str = "human",
        batch_time: float = 0.1,
        label_width: int = LABEL_WIDTH,
    ) -> None:
        self.out = out
        self.fmt = fmt
        self.batch_time = batch_time
        self.label_width = label_width
        self._last: ReportEntry | None = None

    @classmethod
    def for_entries(cls, out: TextIO, entries: list[Entry], **kwargs: object) -> StreamReport:
        """Build a report whose label column fits every entry's label."""
        width = max([LABEL_WIDTH] + [len(e.label) for e in entries])
        return cls(out, label_width=width, **kwargs)  # type: ignore[arg-type]

    def _echo(self, text: str = "", *, nl: bool = True) -> None:
        click.echo(text, file=self.out, nl=nl)

    def start_warming(self) -> None:
        self._echo(
            f"{platform.python_implementation()} {platform.python_version()} "
            f"({platform.machine() or 'unknown'})"
        )
        self._echo("Warming up --------------------------------------")

    def warming(self, label: str, warmup_s: float) -> None:
        self._echo(label.rjust(self.label_width), nl=False)

    def warmup_stats(self, calibration: CalibrationResult) -> None:
        cycles = calibration.cycles_per_batch
        count = scale(cycles) if self.fmt == "human" else f"{cycles:10d}"
        self._echo(f" {count} {batch_unit(self.batch_time)}")

    def start_running(self) -> None:
        self._echo("Calculating -------------------------------------")

    def running(self, label: str, time_s: float) -> None:
        self._echo(label.rjust(self.label_width), nl=False)

    def add_report(self, entry: ReportEntry) -> None:
        self._echo(f" {format_entry_body(entry, self.fmt)}")
        self._last = entry

    def footer(self) -> None:
        if self._last is None:
            return
        footer = self._last.stats.footer
        if footer:
            self._echo(footer.rjust(40))


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def format_comparison(outcome: ComparisonOutcome, fmt: str = "human") -> str:
    """Format a ComparisonOutcome for terminal display.

    Returns an empty string when there was nothing to compare.
    """
    if not outcome.ranked:
        return ""

    lines = ["", "Comparison:"]
    for entry, verdict in outcome.ranked:
        head = f"{entry.label:>{LABEL_WIDTH}s}: {format_number(entry.ips, fmt)} i/s"
        if verdict.kind is VerdictKind.BEST:
            lines.append(head)
        elif verdict.kind is VerdictKind.INDISTINGUISHABLE:
            lines.append(f"{head} - same-ish: difference falls within error")
        else:
            detail = f"{verdict.factor:.2f}x "
            if verdict.error is not None:
                detail += f" (± {verdict.error:.2f})"
            lines.append(f"{head} - {detail} slower")

    best = outcome.best
    footer = best.stats.footer if best is not None else None
    if footer:
        lines.append(footer.rjust(40))

    if outcome.suggestion is not None:
        s = outcome.suggestion
        lines.append("")
        lines.append(
            "Some results are within error of the fastest. For a stricter run, try "
            f"--time {s.time:g} --batch-time {s.batch_time:g}"
        )

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Saved results
# ---------------------------------------------------------------------------


def format_records(records: list[ExportRecord], fmt: str = "human") -> str:
    """Format exported records as a table."""
    if not records:
        return "No results."

    multi_pass = any(r.pass_index > 1 for r in records)
    headers = ["Label", "i/s", "±", "Iterations", "Time", "Cycles", ""]
    if multi_pass:
        headers.insert(1, "Pass")

    rows: list[list[str]] = []
    for r in records:
        if r.error is None or not r.iterations_per_second:
            err = "-"
        else:
            err = f"{100.0 * r.error / r.iterations_per_second:.1f}%"
        row = [
            r.label,
            format_number(r.iterations_per_second, fmt).strip(),
            err,
            str(r.total_iterations),
            format_seconds(r.total_microseconds / 1_000_000),
            str(r.cycles_per_batch),
            "skewed" if r.skewed else "",
        ]
        if multi_pass:
            row.insert(1, str(r.pass_index))
        rows.append(row)

    aligns = ["l", "r", "r", "r", "r", "r", "l"]
    if multi_pass:
        aligns.insert(1, "r")
    return format_table(headers, rows, alignments=aligns)
