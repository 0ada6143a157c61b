"""Warm-up calibration.

Runs an entry one cycle at a time for the warm-up period and derives
how many cycles fit in one measurement batch (~100ms by default).
Batches need to be long enough that timer overhead is negligible, yet
short enough that a measurement period yields many of them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from ipsbench.clock import DEFAULT_CLOCK, MICROSECONDS_PER_100MS, Clock, seconds_to_us
from ipsbench.entry import Entry

log = logging.getLogger("ipsbench")


@dataclass(frozen=True)
class CalibrationResult:
    """Batch size chosen for one entry in one job run."""

    cycles_per_batch: int
    warmup_iterations: int = 0
    warmup_microseconds: float = 0.0


def cycles_per_batch(
    elapsed_us: float,
    iterations: int,
    batch_us: float = MICROSECONDS_PER_100MS,
) -> int:
    """Cycles needed to fill *batch_us*, given *iterations* took *elapsed_us*.

    Always at least 1.  A zero or negative elapsed time (clock too
    coarse to see the work) yields 1.
    """
    if elapsed_us <= 0:
        return 1
    cycles = math.floor((batch_us / elapsed_us) * iterations)
    return max(cycles, 1)


def calibrate(
    entry: Entry,
    warmup_s: float,
    *,
    clock: Clock = DEFAULT_CLOCK,
    batch_us: float = MICROSECONDS_PER_100MS,
) -> CalibrationResult:
    """Warm *entry* up for *warmup_s* seconds and size its batches.

    A non-positive warm-up skips the loop entirely and returns a batch
    size of 1.
    """
    if warmup_s <= 0:
        log.debug("Calibration skipped for '%s' (warmup=%s)", entry.label, warmup_s)
        return CalibrationResult(cycles_per_batch=1)

    before = clock.now_us()
    target = before + seconds_to_us(warmup_s)
    iterations = 0
    while clock.now_us() < target:
        entry.call_times(1)
        iterations += 1
    after = clock.now_us()

    elapsed = after - before
    cycles = cycles_per_batch(elapsed, iterations, batch_us)
    log.debug(
        "Calibrated '%s': %d warm-up calls in %.0fus -> %d cycles/batch",
        entry.label,
        iterations,
        elapsed,
        cycles,
    )
    return CalibrationResult(
        cycles_per_batch=cycles,
        warmup_iterations=iterations,
        warmup_microseconds=elapsed,
    )
