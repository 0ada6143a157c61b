"""Statistical models that reduce throughput samples to a result.

Two interchangeable models are provided:

- ``SDStats`` reports the arithmetic mean of the samples with the
  population standard deviation as its error.
- ``BootstrapStats`` resamples the samples with replacement and reports
  the median of the resampled means with a percentile confidence
  interval.  It needs numpy, an optional dependency; asking for it
  without numpy installed is a configuration error, never a silent
  fallback to ``SDStats``.

Both expose the same interface so the comparator can treat them alike:
``central_tendency``, ``error``, ``footer``, ``slowdown(baseline)`` and
``overlaps(other)``.

References:
    Bootstrap CI: Efron, B. & Tibshirani, R. J. (1993). "An
        Introduction to the Bootstrap."
    Kalibera, T. & Jones, R. (2013). "Rigorous Benchmarking in
        Reasonable Time."
"""

from __future__ import annotations

import enum
import math
import statistics
from typing import Any, Sequence

from ipsbench.config import ConfigurationError

BOOTSTRAP_ITERATIONS = 10_000
# Upper bound on resample indices drawn at once.
RESAMPLE_CHUNK_ELEMENTS = 10_000_000
DEFAULT_CONFIDENCE = 95


# ---------------------------------------------------------------------------
# Model selection
# ---------------------------------------------------------------------------


class StatsMode(enum.Enum):
    """The closed set of available statistical models."""

    SD = "sd"
    BOOTSTRAP = "bootstrap"


def parse_stats_mode(value: str | StatsMode) -> StatsMode:
    """Resolve a stats mode name.

    Raises:
        ConfigurationError: If *value* names no known model.
    """
    if isinstance(value, StatsMode):
        return value
    try:
        return StatsMode(str(value).strip().lower())
    except ValueError as exc:
        valid = ", ".join(m.value for m in StatsMode)
        raise ConfigurationError(f"Unknown stats mode '{value}'. Valid modes: {valid}") from exc


def require_numpy() -> Any:
    """Import numpy for bootstrap resampling.

    Raises:
        ConfigurationError: If numpy is not installed.
    """
    try:
        import numpy
    except ImportError as exc:
        raise ConfigurationError(
            "numpy is required for the 'bootstrap' stats mode. "
            "It is optional, so it is not installed by default. "
            "Install it with: pip install 'ipsbench[bootstrap]' (or pip install numpy)"
        ) from exc
    return numpy


def create_stats(
    mode: str | StatsMode,
    samples: Sequence[float],
    *,
    confidence: float = DEFAULT_CONFIDENCE,
    seed: int | None = None,
) -> StatsModel:
    """Build the configured stats model over *samples*."""
    mode = parse_stats_mode(mode)
    if mode is StatsMode.BOOTSTRAP:
        return BootstrapStats(samples, confidence, seed=seed)
    return SDStats(samples)


# ---------------------------------------------------------------------------
# Common interface
# ---------------------------------------------------------------------------


class StatsModel:
    """Base class for throughput statistics."""

    samples: list[float]

    @property
    def central_tendency(self) -> float:
        raise NotImplementedError

    @property
    def error(self) -> float | None:
        raise NotImplementedError

    @property
    def footer(self) -> str | None:
        return None

    def slowdown(self, baseline: StatsModel) -> tuple[float, float | None]:
        """How many times slower this result is than *baseline*."""
        raise NotImplementedError

    def overlaps(self, other: StatsModel) -> bool:
        """True if this result's upper bound reaches past *other*'s lower bound.

        One-sided: answers whether this result could plausibly be at
        least as fast as *other*.
        """
        other_low = other.central_tendency - (other.error or 0.0)
        my_high = self.central_tendency + (self.error or 0.0)
        return my_high > other_low


def _check_samples(samples: Sequence[float]) -> list[float]:
    values = [float(s) for s in samples]
    if not values:
        raise ValueError("Cannot compute statistics from an empty sample set.")
    return values


# ---------------------------------------------------------------------------
# Standard deviation model
# ---------------------------------------------------------------------------


class SDStats(StatsModel):
    """Mean and population standard deviation."""

    def __init__(self, samples: Sequence[float]) -> None:
        self.samples = _check_samples(samples)
        self._mean = statistics.fmean(self.samples)
        # Population stdev (divides by N), rounded to whole i/s.
        self._error = float(round(statistics.pstdev(self.samples, self._mean)))

    @property
    def central_tendency(self) -> float:
        return self._mean

    @property
    def error(self) -> float:
        return self._error

    def slowdown(self, baseline: StatsModel) -> tuple[float, None]:
        return baseline.central_tendency / self.central_tendency, None

    def __repr__(self) -> str:
        return f"SDStats(mean={self._mean:.1f}, error={self._error:.0f}, n={len(self.samples)})"


# ---------------------------------------------------------------------------
# Bootstrap model
# ---------------------------------------------------------------------------


def _interval(sorted_values: Any, confidence: float) -> tuple[float, float, float]:
    """Return (low, median, high) of an ascending array at *confidence* percent."""
    n = len(sorted_values)
    alpha = 1 - confidence / 100.0
    lower_idx = int(math.floor(alpha / 2 * n))
    upper_idx = int(math.ceil((1 - alpha / 2) * n)) - 1
    lower_idx = max(0, min(lower_idx, n - 1))
    upper_idx = max(0, min(upper_idx, n - 1))
    return (
        float(sorted_values[lower_idx]),
        float(sorted_values[n // 2]),
        float(sorted_values[upper_idx]),
    )


class BootstrapStats(StatsModel):
    """Bootstrap estimate of mean throughput with a confidence interval."""

    def __init__(
        self,
        samples: Sequence[float],
        confidence: float = DEFAULT_CONFIDENCE,
        *,
        iterations: int = BOOTSTRAP_ITERATIONS,
        seed: int | None = None,
    ) -> None:
        self._np = require_numpy()
        if not 0 < confidence < 100:
            raise ConfigurationError(
                f"Confidence must be a percentage between 0 and 100 (got {confidence})."
            )
        self.samples = _check_samples(samples)
        self.confidence = float(confidence)
        self.iterations = iterations
        self._rng = self._np.random.default_rng(seed)

        means = self._np.sort(self.resample_means(self.samples))
        low, median, high = _interval(means, self.confidence)
        self._median = median
        self._error = (high - low) / 2
        self.interval = (low, high)

    def resample_means(self, samples: Sequence[float]) -> Any:
        """Means of ``iterations`` resamples (with replacement) of *samples*."""
        data = self._np.asarray(samples, dtype=float)
        n = len(data)
        means = self._np.empty(self.iterations)
        rows = max(1, RESAMPLE_CHUNK_ELEMENTS // n)
        for start in range(0, self.iterations, rows):
            stop = min(start + rows, self.iterations)
            idx = self._rng.integers(0, n, size=(stop - start, n))
            means[start:stop] = data[idx].mean(axis=1)
        return means

    def quotient(self, baseline: StatsModel) -> tuple[float, float, float]:
        """Bootstrap (low, mid, high) of baseline mean / own mean."""
        baseline_means = self.resample_means(baseline.samples)
        own_means = self.resample_means(self.samples)
        ratios = self._np.sort(baseline_means / own_means)
        return _interval(ratios, self.confidence)

    @property
    def central_tendency(self) -> float:
        return self._median

    @property
    def error(self) -> float:
        return self._error

    @property
    def footer(self) -> str:
        return f"with {self.confidence:.1f}% confidence"

    def slowdown(self, baseline: StatsModel) -> tuple[float, float]:
        low, mid, high = self.quotient(baseline)
        return mid, statistics.fmean([mid - low, high - mid])

    def __repr__(self) -> str:
        return (
            f"BootstrapStats(median={self._median:.1f}, error={self._error:.1f}, "
            f"confidence={self.confidence:.1f}, n={len(self.samples)})"
        )
