"""Benchmark job execution.

Orchestrates, for every pass:
1. Warm-up: calibrate each pending entry's batch size
2. Measurement: time calibrated batches for each pending entry
3. Statistics: reduce the samples with the configured model
4. Hold persistence of each completed pass (when enabled)

and once after all passes: comparison, JSON export and sharing.

Everything runs sequentially on the calling thread.  Calibration and
measurement block for their full configured duration; timings taken
while another entry ran concurrently would be meaningless.

Hold mode splits a job over several invocations: each run measures the
missing passes of the first entry not held for every pass, persists
them, and stops.  The run that completes the last entry reports
everything and clears the hold file.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Callable, TextIO

import click

from ipsbench.calibrate import CalibrationResult, calibrate
from ipsbench.clock import DEFAULT_CLOCK, Clock, QuiesceHook, no_quiesce
from ipsbench.compare import ComparisonOutcome, compare
from ipsbench.config import (
    ConfigurationError,
    JobConfig,
    raise_for_errors,
    validate_config,
)
from ipsbench.display import MultiReport, Reporter, StreamReport, format_comparison
from ipsbench.entry import Entry, make_entry
from ipsbench.measure import measure
from ipsbench.results import HoldStore, Report, ReportEntry, save_json
from ipsbench.stats import create_stats

log = logging.getLogger("ipsbench")


class Job:
    """A set of labelled entries measured under one configuration.

    Usage::

        job = Job(JobConfig(warmup=1, time=2, compare=True))
        job.item("join", lambda: ",".join(words))
        job.item("concat", code="s = ''\\nfor w in words: s += w", setup="words = ['a'] * 50")
        report = job.run()
    """

    def __init__(
        self,
        config: JobConfig | None = None,
        *,
        out: TextIO | None = None,
        clock: Clock = DEFAULT_CLOCK,
        quiesce: QuiesceHook = no_quiesce,
        reporters: list[Reporter] | None = None,
        seed: int | None = None,
    ) -> None:
        self.config = config or JobConfig()
        self.out: TextIO = out if out is not None else sys.stdout
        self.clock = clock
        self.quiesce = quiesce
        self.seed = seed
        self.entries: list[Entry] = []
        self.full_report = Report()
        self.comparison: ComparisonOutcome | None = None
        self.calibrations: dict[str, CalibrationResult] = {}
        self.paused = False
        self.shared_url: str | None = None
        self._extra_reporters = list(reporters or [])

        for label, code in self.config.entries.items():
            self.item(label, code=code, setup=self.config.setup)

    # -- registration -------------------------------------------------------

    def item(
        self,
        label: str,
        func: Callable[..., Any] | None = None,
        *,
        code: str | None = None,
        setup: str = "",
        namespace: dict[str, Any] | None = None,
    ) -> Job:
        """Register an entry from a callable or a code string (not both)."""
        if any(e.label == label for e in self.entries):
            raise ConfigurationError(f"Duplicate entry label '{label}'.")
        self.entries.append(make_entry(label, code, func, setup=setup, namespace=namespace))
        return self

    report = item

    @property
    def hold(self) -> bool:
        return self.config.hold_path is not None

    # -- running ------------------------------------------------------------

    def run(self) -> Report:
        """Execute the job and return its report.

        Raises:
            ConfigurationError: If the configuration is invalid or no
                entries are registered.  Raised before any timing.
        """
        raise_for_errors(validate_config(self.config))
        if not self.entries:
            raise ConfigurationError("No entries registered; nothing to benchmark.")
        log.debug("Job configuration: %s", self.config.to_dict())

        passes = self.config.iterations
        store = HoldStore(self.config.hold_path) if self.config.hold_path else None
        if store is not None:
            self._restore_held(store.load())

        reporter = self._build_reporter()
        pending = self._pending_entries(store)
        log.debug(
            "Running %d of %d entries for %d pass(es)",
            len(pending),
            len(self.entries),
            passes,
        )

        warming_started = False
        for pass_index in range(1, passes + 1):
            todo = [e for e in pending if store is None or (e.label, pass_index) not in store]
            if todo and self.config.warmup > 0:
                if not warming_started:
                    reporter.start_warming()
                    warming_started = True
                self._run_warmup(todo, reporter)
            else:
                for e in todo:
                    self.calibrations[e.label] = CalibrationResult(cycles_per_batch=1)

            if todo:
                reporter.start_running()
            for e in todo:
                result = self._run_entry(e, pass_index, reporter)
                if store is None:
                    continue
                if result is None:
                    store.skip(e.label, pass_index)
                else:
                    store.put(result)

        reporter.footer()

        if store is not None:
            self._sort_report()
            if all(store.is_complete(e.label, passes) for e in self.entries):
                store.clear()
            else:
                self.paused = True
                click.echo(
                    "\nPausing here -- run again to measure the next benchmark...",
                    file=self.out,
                )

        if not self.paused:
            self._finish()
        return self.full_report

    def _build_reporter(self) -> MultiReport:
        multi = MultiReport(self._extra_reporters)
        if not self.config.quiet:
            multi.add(
                StreamReport.for_entries(
                    self.out,
                    self.entries,
                    fmt=self.config.format,
                    batch_time=self.config.batch_time,
                )
            )
        return multi

    def _pending_entries(self, store: HoldStore | None) -> list[Entry]:
        if store is None:
            return list(self.entries)
        for e in self.entries:
            if not store.is_complete(e.label, self.config.iterations):
                return [e]
        return []

    def _sort_report(self) -> None:
        # Pass-major, registration order within a pass, as in a single run.
        order = {e.label: i for i, e in enumerate(self.entries)}
        self.full_report.entries.sort(key=lambda r: (r.pass_index, order.get(r.label, 0)))

    def _restore_held(self, loaded: dict[tuple[str, int], dict[str, Any]]) -> None:
        known = {e.label for e in self.entries}
        for (label, pass_index), held in sorted(loaded.items()):
            if label not in known:
                log.debug("Ignoring held result for unknown entry '%s'", label)
                continue
            if pass_index > self.config.iterations:
                log.debug("Ignoring held pass %d of '%s'", pass_index, label)
                continue
            if held.get("skipped"):
                log.debug("Pass %d of '%s' was held without a result", pass_index, label)
                continue
            samples = held.get("samples") or []
            if not samples:
                log.warning("Held result for '%s' has no samples; ignoring it", label)
                continue
            self.full_report.add_entry(
                ReportEntry(
                    label=label,
                    total_microseconds=held["total_microseconds"],
                    total_iterations=held["total_iterations"],
                    cycles_per_batch=held["cycles_per_batch"],
                    stats=self._stats(samples),
                    timing_skewed=held.get("skewed", False),
                    pass_index=pass_index,
                    samples=tuple(samples),
                )
            )

    def _run_warmup(self, entries: list[Entry], reporter: MultiReport) -> None:
        for e in entries:
            reporter.warming(e.label, self.config.warmup)
            self.quiesce()
            calibration = calibrate(
                e,
                self.config.warmup,
                clock=self.clock,
                batch_us=self.config.batch_us,
            )
            self.calibrations[e.label] = calibration
            reporter.warmup_stats(calibration)

    def _run_entry(
        self,
        entry: Entry,
        pass_index: int,
        reporter: MultiReport,
    ) -> ReportEntry | None:
        cycles = self.calibrations[entry.label].cycles_per_batch
        reporter.running(entry.label, self.config.time)
        self.quiesce()
        measured = measure(entry, cycles, self.config.time, clock=self.clock)

        samples = measured.ips_samples
        if not samples:
            log.warning(
                "'%s' produced no positive-duration batches in %.2fs; no result recorded",
                entry.label,
                self.config.time,
            )
            return None

        result = ReportEntry(
            label=entry.label,
            total_microseconds=measured.total_microseconds,
            total_iterations=measured.total_iterations,
            cycles_per_batch=cycles,
            stats=self._stats(samples),
            timing_skewed=measured.skewed,
            pass_index=pass_index,
            samples=tuple(samples),
        )
        self.full_report.add_entry(result)
        reporter.add_report(result)
        return result

    def _stats(self, samples: list[float]) -> Any:
        return create_stats(
            self.config.stats,
            samples,
            confidence=self.config.confidence,
            seed=self.seed,
        )

    def _finish(self) -> None:
        if self.config.compare:
            order = {e.label: i for i, e in enumerate(self.entries)}
            latest = sorted(
                self.full_report.latest(),
                key=lambda r: order.get(r.label, len(order)),
            )
            self.comparison = compare(
                latest,
                time_s=self.config.time,
                batch_s=self.config.batch_time,
            )
            text = format_comparison(self.comparison, self.config.format)
            if text:
                click.echo(text, file=self.out)

        if self.config.json_path is not None:
            save_json(self.config.json_path, self.full_report)

        if self.config.share:
            from ipsbench.share import share_report

            self.shared_url = share_report(self.full_report, compare=self.config.compare)
            if self.shared_url:
                click.echo(f"Shared at: {self.shared_url}", file=self.out)


# ---------------------------------------------------------------------------
# Convenience entry points
# ---------------------------------------------------------------------------


def ips(
    configure: Callable[[Job], None] | None = None,
    *,
    out: TextIO | None = None,
    quiesce: QuiesceHook = no_quiesce,
    **options: Any,
) -> Report:
    """Build a job from keyword options, let *configure* register entries, run it.

    Example::

        def entries(x):
            x.item("upper", lambda: "abc".upper())
            x.item("title", lambda: "abc".title())

        report = ips(entries, warmup=1, time=2, compare=True)
    """
    job = Job(JobConfig(**options), out=out, quiesce=quiesce)
    if configure is not None:
        configure(job)
    return job.run()


def _method_caller(obj: object, name: str) -> Callable[[], Any]:
    method = getattr(obj, name)

    def call() -> Any:
        return method()

    return call


def quick_compare(obj: object, *methods: str, **options: Any) -> Report:
    """Compare several no-argument methods of the same object.

    Keyword options are JobConfig fields (``warmup``, ``time``, ...) plus
    ``out``; comparison is always enabled.
    """
    out = options.pop("out", None)
    options["compare"] = True
    job = Job(JobConfig(**options), out=out)
    for name in methods:
        job.item(name, _method_caller(obj, name))
    return job.run()
