"""Shared text formatting helpers for ipsbench."""

from __future__ import annotations

import math

_SCALE_SUFFIXES = ((1e15, "q"), (1e12, "t"), (1e9, "b"), (1e6, "M"), (1e3, "k"))


def scale(value: float) -> str:
    """Format a count with a metric-style suffix: ``'1.235M'``, ``'12.000k'``.

    Values below 1000 are printed with three decimals and no suffix.
    """
    if math.isnan(value):
        return "N/A"
    for threshold, suffix in _SCALE_SUFFIXES:
        if abs(value) >= threshold:
            return f"{value / threshold:10.3f}{suffix}"
    return f"{value:10.3f} "


def format_number(value: float, fmt: str = "human", *, precision: int = 1) -> str:
    """Format a throughput or count according to the output format."""
    if fmt == "human":
        return scale(value)
    return f"{value:10.{precision}f}"


def format_seconds(seconds: float) -> str:
    """Format a duration with adaptive units."""
    if math.isnan(seconds):
        return "N/A"
    if seconds < 0.001:
        return f"{seconds * 1_000_000:.0f}µs"
    if seconds < 1:
        return f"{seconds * 1000:.2f}ms"
    return f"{seconds:.6f}s"


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    indent: int = 2,
) -> str:
    """Format a list of rows as an aligned text table.

    Auto-calculates column widths from content.  Right-aligns columns
    marked ``'r'`` in *alignments*.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.
        alignments: Per-column alignment: ``'l'`` or ``'r'``.
        indent: Number of leading spaces per line.

    Returns:
        The formatted table as a string.
    """
    if not headers:
        return ""

    ncols = len(headers)
    aligns = list(alignments or [])
    while len(aligns) < ncols:
        aligns.append("l")

    proc_rows: list[list[str]] = []
    for row in rows:
        padded = list(row) + [""] * (ncols - len(row))
        proc_rows.append(padded[:ncols])

    widths = [len(h) for h in headers]
    for row in proc_rows:
        for ci, cell in enumerate(row):
            widths[ci] = max(widths[ci], len(cell))

    def _cell(text: str, width: int, align: str) -> str:
        return text.rjust(width) if align == "r" else text.ljust(width)

    prefix = " " * indent
    lines = [prefix + "  ".join(_cell(headers[i], widths[i], aligns[i]) for i in range(ncols))]
    for row in proc_rows:
        lines.append(prefix + "  ".join(_cell(row[i], widths[i], aligns[i]) for i in range(ncols)))
    return "\n".join(line.rstrip() for line in lines)
