"""Date picker state for choosing period start and end days."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date

from .projection import month_layout, shift_month


@dataclass(frozen=True)
class DateBounds:
    """Inclusive bounds a chosen date must fall within."""

    min_date: date | None = None
    max_date: date | None = None

    def is_disabled(self, day: date) -> bool:
        if self.min_date is not None and day < self.min_date:
            return True
        if self.max_date is not None and day > self.max_date:
            return True
        return False

    def contains(self, day: date) -> bool:
        return not self.is_disabled(day)


@dataclass(frozen=True)
class PickerDay:
    day: int
    disabled: bool
    selected: bool
    today: bool


@dataclass(frozen=True)
class DatePickerView:
    """One month of the picker. Transitions return a new view."""

    year: int
    month: int
    selected: date | None = None
    bounds: DateBounds = field(default_factory=DateBounds)

    @classmethod
    def opened_at(
        cls, selected: date | None, today: date, bounds: DateBounds | None = None
    ) -> "DatePickerView":
        """Open on the selected date's month, or on today's."""
        anchor = selected or today
        return cls(anchor.year, anchor.month, selected, bounds or DateBounds())

    @property
    def leading_blanks(self) -> int:
        return month_layout(self.year, self.month)[0]

    def days(self, today: date) -> list[PickerDay]:
        _, count = month_layout(self.year, self.month)
        result = []
        for number in range(1, count + 1):
            current = date(self.year, self.month, number)
            result.append(
                PickerDay(
                    day=number,
                    disabled=self.bounds.is_disabled(current),
                    selected=current == self.selected,
                    today=current == today,
                )
            )
        return result

    def prev_month(self) -> "DatePickerView":
        year, month = shift_month(self.year, self.month, -1)
        return replace(self, year=year, month=month)

    def next_month(self) -> "DatePickerView":
        year, month = shift_month(self.year, self.month, 1)
        return replace(self, year=year, month=month)

    def go_to_today(self, today: date) -> "DatePickerView":
        return replace(self, year=today.year, month=today.month)

    def select(self, day: int) -> date | None:
        """Return the clicked date, or None when it is out of bounds."""
        chosen = date(self.year, self.month, day)
        if self.bounds.is_disabled(chosen):
            return None
        return chosen


def start_bounds(today: date) -> DateBounds:
    return DateBounds(max_date=today)


def end_bounds(start: date | None, today: date) -> DateBounds:
    return DateBounds(min_date=start, max_date=today)


def start_picker(selected: date | None, today: date) -> DatePickerView:
    return DatePickerView.opened_at(selected, today, start_bounds(today))


def end_picker(selected: date | None, start: date | None, today: date) -> DatePickerView:
    return DatePickerView.opened_at(selected, today, end_bounds(start, today))
