"""Cycle statistics derived from logged periods."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
import math
from typing import TYPE_CHECKING, Any

from .const import MAX_CYCLE_GAP_DAYS

if TYPE_CHECKING:
    from .storage import PeriodRecord


@dataclass(frozen=True)
class CycleStatistics:
    """Derived statistics for a set of logged periods."""

    average_cycle_length: int | None = None
    average_period_duration: float | None = None
    shortest_cycle: int | None = None
    longest_cycle: int | None = None
    total_periods_logged: int = 0
    predicted_next_period: date | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "averageCycleLength": self.average_cycle_length,
            "averagePeriodDuration": self.average_period_duration,
            "shortestCycle": self.shortest_cycle,
            "longestCycle": self.longest_cycle,
            "totalPeriodsLogged": self.total_periods_logged,
            "predictedNextPeriod": (
                self.predicted_next_period.isoformat()
                if self.predicted_next_period
                else None
            ),
        }


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves upwards (28.5 -> 29) instead of to the nearest even."""
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def days_between(first: date, second: date) -> int:
    """Absolute number of whole days between two calendar dates."""
    return abs((second - first).days)


def cycle_gaps(records: Iterable[PeriodRecord]) -> list[int]:
    """Day gaps between consecutive starts, oldest first.

    Gaps outside 1..MAX_CYCLE_GAP_DAYS-1 are dropped without notice.
    """
    starts = sorted(r.start for r in records)
    gaps = [days_between(prev, cur) for prev, cur in zip(starts, starts[1:])]
    return [g for g in gaps if 0 < g < MAX_CYCLE_GAP_DAYS]


def period_durations(records: Iterable[PeriodRecord]) -> list[int]:
    """Inclusive day counts of every finished period."""
    return [days_between(r.start, r.end) + 1 for r in records if r.end is not None]


def compute_stats(records: Iterable[PeriodRecord]) -> CycleStatistics:
    records = list(records)
    if not records:
        return CycleStatistics()

    durations = period_durations(records)
    gaps = cycle_gaps(records)

    average_cycle = int(round_half_up(sum(gaps) / len(gaps))) if gaps else None
    average_duration = (
        round_half_up(sum(durations) / len(durations), 1) if durations else None
    )

    predicted = None
    if average_cycle:
        last_start = max(r.start for r in records)
        predicted = last_start + timedelta(days=average_cycle)

    return CycleStatistics(
        average_cycle_length=average_cycle,
        average_period_duration=average_duration,
        shortest_cycle=min(gaps) if gaps else None,
        longest_cycle=max(gaps) if gaps else None,
        total_periods_logged=len(records),
        predicted_next_period=predicted,
    )


def days_until(target: date, today: date) -> int:
    return (target - today).days


def describe_prediction(target: date | None, today: date) -> str:
    """Human wording for how far away a predicted start is."""
    if target is None:
        return "Not enough data"
    diff = days_until(target, today)
    if diff < 0:
        return f"{-diff} days ago"
    if diff == 0:
        return "Today"
    if diff == 1:
        return "Tomorrow"
    if diff <= 7:
        return f"In {diff} days"
    return f"{target:%b} {target.day}"


def describe_duration(record: PeriodRecord) -> str:
    days = record.duration
    if days is None:
        return "Ongoing"
    return f"{days} day{'' if days == 1 else 's'}"
