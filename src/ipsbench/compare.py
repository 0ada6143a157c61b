"""Ranking and comparison of finished results.

Results are sorted fastest first.  The fastest is the baseline; every
other result is either statistically indistinguishable from it (its
error interval reaches the baseline's) or slower by some factor.

The overlap test is one-sided: it only checks whether a
result's upper bound reaches the best result's lower bound.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from ipsbench.results import ReportEntry

log = logging.getLogger("ipsbench")

# Suggested measurement time must stay this many times the batch time.
MIN_TIME_TO_BATCH_RATIO = 20


# ---------------------------------------------------------------------------
# Verdicts
# ---------------------------------------------------------------------------


class VerdictKind(enum.Enum):
    BEST = "best"
    INDISTINGUISHABLE = "indistinguishable"
    SLOWER = "slower"


@dataclass(frozen=True)
class Verdict:
    """How one result relates to the best result."""

    kind: VerdictKind
    factor: float | None = None  # SLOWER only
    error: float | None = None  # SLOWER only, when the model provides one

    @classmethod
    def best(cls) -> Verdict:
        return cls(VerdictKind.BEST)

    @classmethod
    def indistinguishable(cls) -> Verdict:
        return cls(VerdictKind.INDISTINGUISHABLE)

    @classmethod
    def slower_by(cls, factor: float, error: float | None = None) -> Verdict:
        return cls(VerdictKind.SLOWER, factor=factor, error=error)


@dataclass(frozen=True)
class Suggestion:
    """Advisory stricter settings for a re-run.  Never applied automatically."""

    time: float
    batch_time: float


@dataclass
class ComparisonOutcome:
    """Results ranked fastest first, each with its verdict."""

    ranked: list[tuple[ReportEntry, Verdict]] = field(default_factory=list)
    suggestion: Suggestion | None = None

    @property
    def best(self) -> ReportEntry | None:
        return self.ranked[0][0] if self.ranked else None

    @property
    def has_indistinguishable(self) -> bool:
        return any(v.kind is VerdictKind.INDISTINGUISHABLE for _, v in self.ranked)

    def __len__(self) -> int:
        return len(self.ranked)


# ---------------------------------------------------------------------------
# Comparison logic
# ---------------------------------------------------------------------------


def suggest_stricter_config(time_s: float, batch_s: float) -> Suggestion:
    """Double the measurement time and quadruple the batch time.

    The batch suggestion is capped so that time / batch stays above
    MIN_TIME_TO_BATCH_RATIO.  If the cap would shrink the batch below
    its current length, the batch is kept and the time is raised instead.
    """
    new_time = time_s * 2
    new_batch = batch_s * 4
    if new_time / new_batch <= MIN_TIME_TO_BATCH_RATIO:
        new_batch = new_time / (MIN_TIME_TO_BATCH_RATIO + 1)
        if new_batch < batch_s:
            new_batch = batch_s
            new_time = batch_s * (MIN_TIME_TO_BATCH_RATIO + 1)
    return Suggestion(time=new_time, batch_time=new_batch)


def compare(
    results: list[ReportEntry],
    *,
    time_s: float | None = None,
    batch_s: float | None = None,
) -> ComparisonOutcome:
    """Rank *results* and classify each against the fastest.

    Fewer than two results produce an empty outcome.

    Args:
        results: Finished results, in registration order.
        time_s: Measurement time used; enables the re-run suggestion.
        batch_s: Batch time used for calibration.
    """
    outcome = ComparisonOutcome()
    if len(results) < 2:
        return outcome

    # sorted() is stable with reverse=True, so ties keep registration order.
    ranked = sorted(results, key=lambda r: r.stats.central_tendency, reverse=True)
    best = ranked[0]
    outcome.ranked.append((best, Verdict.best()))

    for result in ranked[1:]:
        if result.stats.overlaps(best.stats):
            verdict = Verdict.indistinguishable()
        else:
            factor, error = result.stats.slowdown(best.stats)
            verdict = Verdict.slower_by(factor, error)
        outcome.ranked.append((result, verdict))

    if outcome.has_indistinguishable and time_s is not None:
        outcome.suggestion = suggest_stricter_config(time_s, batch_s or 0.1)
        log.debug(
            "Indistinguishable results; suggesting time=%.1fs batch=%.3fs",
            outcome.suggestion.time,
            outcome.suggestion.batch_time,
        )

    return outcome
