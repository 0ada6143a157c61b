"""Benchmark result data structures and persistence.

Hierarchy::

    Report (one job run)
      → entries: list[ReportEntry]  (one per label per pass)
        → stats: StatsModel

Files produced::

    <json_path>   list of ExportRecord dicts (the exported artifact)
    <hold_path>   held entries with raw samples, for hold/resume runs
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ipsbench.clock import MICROSECONDS_PER_SECOND
from ipsbench.stats import StatsModel

log = logging.getLogger("ipsbench")


# ---------------------------------------------------------------------------
# Entry-level result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReportEntry:
    """Measured result of one entry in one pass."""

    label: str
    total_microseconds: float
    total_iterations: int
    cycles_per_batch: int
    stats: StatsModel
    timing_skewed: bool = False
    pass_index: int = 1  # 1-based
    samples: tuple[float, ...] = ()  # per-batch i/s, for hold/resume

    @property
    def ips(self) -> float:
        """Central tendency in iterations per second."""
        return self.stats.central_tendency

    @property
    def error(self) -> float | None:
        return self.stats.error

    @property
    def seconds(self) -> float:
        """Measured time in seconds."""
        return self.total_microseconds / MICROSECONDS_PER_SECOND

    @property
    def error_percentage(self) -> float:
        """Error as a percentage of the central tendency."""
        if not self.ips or self.error is None:
            return 0.0
        return 100.0 * self.error / self.ips

    def to_record(self) -> ExportRecord:
        """Project onto the exported record shape."""
        return ExportRecord(
            label=self.label,
            iterations_per_second=self.ips,
            error=self.error,
            total_iterations=self.total_iterations,
            total_microseconds=self.total_microseconds,
            cycles_per_batch=self.cycles_per_batch,
            skewed=self.timing_skewed,
            pass_index=self.pass_index,
        )

    def to_held_dict(self) -> dict[str, Any]:
        """Serialize with raw samples so stats can be rebuilt on resume."""
        return {
            "label": self.label,
            "pass": self.pass_index,
            "total_microseconds": self.total_microseconds,
            "total_iterations": self.total_iterations,
            "cycles_per_batch": self.cycles_per_batch,
            "skewed": self.timing_skewed,
            "samples": list(self.samples),
        }


# ---------------------------------------------------------------------------
# Exported record
# ---------------------------------------------------------------------------


@dataclass
class ExportRecord:
    """One row of the exported artifact."""

    label: str
    iterations_per_second: float
    error: float | None
    total_iterations: int
    total_microseconds: float
    cycles_per_batch: int
    skewed: bool = False
    pass_index: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "label": self.label,
            "iterations_per_second": self.iterations_per_second,
            "error": self.error,
            "total_iterations": self.total_iterations,
            "total_microseconds": self.total_microseconds,
            "cycles_per_batch": self.cycles_per_batch,
            "skewed": self.skewed,
            "pass": self.pass_index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExportRecord:
        """Deserialize from a dict."""
        return cls(
            label=data["label"],
            iterations_per_second=data["iterations_per_second"],
            error=data.get("error"),
            total_iterations=data["total_iterations"],
            total_microseconds=data.get("total_microseconds", 0.0),
            cycles_per_batch=data.get("cycles_per_batch", 1),
            skewed=data.get("skewed", False),
            pass_index=data.get("pass", 1),
        )


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass
class Report:
    """All entries measured by one job run, in measurement order."""

    entries: list[ReportEntry] = field(default_factory=list)

    def add_entry(self, entry: ReportEntry) -> ReportEntry:
        """Add *entry*, replacing any earlier one for the same label and pass."""
        self.entries = [
            e
            for e in self.entries
            if (e.label, e.pass_index) != (entry.label, entry.pass_index)
        ]
        self.entries.append(entry)
        return entry

    def latest(self) -> list[ReportEntry]:
        """The most recent pass of each label, in first-registration order."""
        by_label: dict[str, ReportEntry] = {}
        for e in self.entries:
            current = by_label.get(e.label)
            if current is None or e.pass_index >= current.pass_index:
                by_label[e.label] = e
        return list(by_label.values())

    def records(self) -> list[ExportRecord]:
        return [e.to_record() for e in self.entries]

    def data(self) -> list[dict[str, Any]]:
        """The exported artifact as JSON-compatible dicts."""
        return [r.to_dict() for r in self.records()]


# ---------------------------------------------------------------------------
# JSON export
# ---------------------------------------------------------------------------


def save_json(path: Path, report: Report) -> None:
    """Write the report's records to *path* as pretty-printed JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.data(), indent=2) + "\n")
    log.info("Wrote %d result(s) to %s", len(report.entries), path)


def load_json(path: Path) -> list[ExportRecord]:
    """Load exported records from *path*.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file does not hold a JSON list.
    """
    if not path.exists():
        raise FileNotFoundError(f"No results file at {path}")
    data = json.loads(path.read_text())
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of results in {path}")
    return [ExportRecord.from_dict(d) for d in data]


# ---------------------------------------------------------------------------
# Hold store
# ---------------------------------------------------------------------------


class HoldStore:
    """File-backed store of completed (label, pass) results.

    Lets one benchmark be split over several process invocations: each
    run measures the next entry that still has passes without a held
    result and persists every pass it completes.  A pass that produced
    no valid samples is held as a skip marker so it is not re-measured
    forever.  Only one process writes at a time, so no locking is done.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._held: dict[tuple[str, int], dict[str, Any]] = {}

    def load(self) -> dict[tuple[str, int], dict[str, Any]]:
        """Read held records from disk.  A missing or empty file holds nothing."""
        self._held = {}
        if not self.path.exists() or self.path.stat().st_size == 0:
            return {}
        data = json.loads(self.path.read_text())
        for item in data:
            self._held[(item["label"], item.get("pass", 1))] = item
        log.debug("Loaded %d held result(s) from %s", len(self._held), self.path)
        return dict(self._held)

    def __contains__(self, key: object) -> bool:
        return key in self._held

    def is_complete(self, label: str, passes: int) -> bool:
        """True if every pass ``1..passes`` of *label* is held."""
        return all((label, p) in self._held for p in range(1, passes + 1))

    def put(self, entry: ReportEntry) -> None:
        """Hold *entry*, replacing any earlier result for its label and pass."""
        self._store(entry.to_held_dict())

    def skip(self, label: str, pass_index: int) -> None:
        """Hold a marker for a pass that yielded no result."""
        self._store({"label": label, "pass": pass_index, "skipped": True, "samples": []})

    def _store(self, record: dict[str, Any]) -> None:
        self._held[(record["label"], record["pass"])] = record
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(list(self._held.values())) + "\n")

    def clear(self) -> None:
        """Forget all held results and remove the file."""
        self._held = {}
        if self.path.exists():
            self.path.unlink()
            log.debug("Removed hold file %s", self.path)
