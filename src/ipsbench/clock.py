"""Time sources and environment quiescing for benchmark loops.

The engine only ever asks a clock for the current time in
microseconds.  ``MonotonicClock`` backs that with
``time.perf_counter_ns`` so readings never go backwards with wall-clock
adjustments.  Tests substitute a scripted clock.
"""

from __future__ import annotations

import gc
import logging
import time
from typing import Callable, Protocol

log = logging.getLogger("ipsbench")

MICROSECONDS_PER_SECOND = 1_000_000
MICROSECONDS_PER_100MS = 100_000


# ---------------------------------------------------------------------------
# Clocks
# ---------------------------------------------------------------------------


class Clock(Protocol):
    """Anything that can report a monotonic time in microseconds."""

    def now_us(self) -> float: ...


class MonotonicClock:
    """Monotonic clock with (at least) microsecond resolution."""

    def now_us(self) -> float:
        return time.perf_counter_ns() / 1000.0


DEFAULT_CLOCK = MonotonicClock()


def seconds_to_us(seconds: float) -> float:
    """Convert seconds to microseconds."""
    return seconds * MICROSECONDS_PER_SECOND


def iterations_per_second(cycles: int, elapsed_us: float) -> float:
    """Throughput of *cycles* invocations that took *elapsed_us*."""
    return cycles / (elapsed_us / MICROSECONDS_PER_SECOND)


# ---------------------------------------------------------------------------
# Quiesce hooks
# ---------------------------------------------------------------------------

# Called before every calibration and measurement phase.
QuiesceHook = Callable[[], None]


def no_quiesce() -> None:
    """Default hook: leave the runtime alone."""


def collect_garbage() -> None:
    """Run a full garbage collection so earlier items' churn is reclaimed."""
    collected = gc.collect()
    log.debug("Quiesce: gc collected %d objects", collected)
