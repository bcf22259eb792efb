"""Map logged and predicted periods onto a month grid."""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from .const import DEFAULT_PREDICTION_LENGTH
from .stats import round_half_up

if TYPE_CHECKING:
    from .storage import PeriodRecord


@dataclass(frozen=True)
class MonthProjection:
    """Per-day flags for one displayed month.

    ``predicted_days`` never contains a day that is in ``period_days``.
    ``leading_blanks`` is the weekday of the 1st counted from Sunday = 0.
    """

    year: int
    month: int
    period_days: frozenset[int]
    predicted_days: frozenset[int]
    leading_blanks: int
    days_in_month: int
    today: int | None = None

    def grid(self) -> list[int | None]:
        """Cells of the month grid, None for the blanks before the 1st."""
        return [None] * self.leading_blanks + list(range(1, self.days_in_month + 1))

    def as_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "period_days": sorted(self.period_days),
            "predicted_days": sorted(self.predicted_days),
            "leading_blanks": self.leading_blanks,
            "days_in_month": self.days_in_month,
            "today": self.today,
        }


def month_layout(year: int, month: int) -> tuple[int, int]:
    """Return (leading blanks with Sunday first, number of days)."""
    weekday, days = calendar.monthrange(year, month)
    return (weekday + 1) % 7, days


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months forward (or back) from year/month."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _days_in_range(start: date, end: date, first: date, last: date) -> Iterator[int]:
    lo = max(start, first)
    hi = min(end, last)
    while lo <= hi:
        yield lo.day
        lo += timedelta(days=1)


def project_month(
    records: Iterable[PeriodRecord],
    predicted_start: date | None,
    avg_duration: float | None,
    year: int,
    month: int,
    *,
    today: date,
    default_length: int = DEFAULT_PREDICTION_LENGTH,
) -> MonthProjection:
    """Flag period and predicted days of ``year``/``month`` (1-12).

    Ongoing periods run through ``today``. The predicted window is
    ``avg_duration`` days long, or ``default_length`` when no average exists.
    """
    leading, days = month_layout(year, month)
    first = date(year, month, 1)
    last = date(year, month, days)

    period_days: set[int] = set()
    for record in records:
        end = record.end or today
        period_days.update(_days_in_range(record.start, end, first, last))

    predicted_days: set[int] = set()
    if predicted_start is not None:
        length = int(round_half_up(avg_duration)) if avg_duration else default_length
        if length > 0:
            window_end = predicted_start + timedelta(days=length - 1)
            predicted_days.update(
                d
                for d in _days_in_range(predicted_start, window_end, first, last)
                if d not in period_days
            )

    return MonthProjection(
        year=year,
        month=month,
        period_days=frozenset(period_days),
        predicted_days=frozenset(predicted_days),
        leading_blanks=leading,
        days_in_month=days,
        today=today.day if (today.year, today.month) == (year, month) else None,
    )
