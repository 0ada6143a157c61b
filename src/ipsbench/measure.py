"""The timed measurement loop.

Runs calibrated batches until the deadline passes and turns each batch
into a throughput sample.  Batches whose measured duration is zero or
negative are dropped entirely: they add no iterations, no time and no
sample.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ipsbench.clock import DEFAULT_CLOCK, Clock, iterations_per_second, seconds_to_us
from ipsbench.entry import Entry

log = logging.getLogger("ipsbench")

# Fraction of the requested duration the real one may differ by before
# the result is flagged.
MAX_TIME_SKEW = 0.05


@dataclass(frozen=True)
class Sample:
    """One timed batch."""

    elapsed_us: float
    cycles: int

    @property
    def ips(self) -> float:
        return iterations_per_second(self.cycles, self.elapsed_us)


@dataclass
class MeasurementResult:
    """Totals and samples from one measurement period."""

    cycles_per_batch: int
    total_iterations: int = 0
    total_microseconds: float = 0.0
    samples: list[Sample] = field(default_factory=list)
    skewed: bool = False
    discarded: int = 0

    @property
    def ips_samples(self) -> list[float]:
        """Per-batch throughput values, in batch order."""
        return [s.ips for s in self.samples]


def is_skewed(stop_us: float, deadline_us: float, duration_s: float) -> bool:
    """True if the loop stopped materially away from its deadline."""
    return abs(stop_us - deadline_us) > seconds_to_us(duration_s) * MAX_TIME_SKEW


def measure(
    entry: Entry,
    cycles: int,
    duration_s: float,
    *,
    clock: Clock = DEFAULT_CLOCK,
) -> MeasurementResult:
    """Measure *entry* in batches of *cycles* for *duration_s* seconds."""
    result = MeasurementResult(cycles_per_batch=cycles)
    deadline = clock.now_us() + seconds_to_us(duration_s)

    while clock.now_us() < deadline:
        before = clock.now_us()
        entry.call_times(cycles)
        after = clock.now_us()

        elapsed = after - before
        if elapsed <= 0:
            result.discarded += 1
            continue

        result.total_iterations += cycles
        result.total_microseconds += elapsed
        result.samples.append(Sample(elapsed_us=elapsed, cycles=cycles))

    stop = clock.now_us()
    result.skewed = is_skewed(stop, deadline, duration_s)

    if result.discarded:
        log.debug(
            "'%s': discarded %d batch(es) with non-positive duration",
            entry.label,
            result.discarded,
        )
    if result.skewed:
        log.debug(
            "'%s': measurement stopped %.0fus away from its deadline",
            entry.label,
            stop - deadline,
        )
    return result
