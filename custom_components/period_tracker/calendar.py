"""Calendar platform for period tracker."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.components.calendar import (
    CalendarEntity,
    CalendarEntityFeature,
    CalendarEvent,
)
from homeassistant.exceptions import ServiceValidationError
from homeassistant.util import dt as dt_util

from .const import LOGGER
from .entity import PeriodTrackerEntity
from .services import async_update_period, validate_manual_entry
from .stats import round_half_up

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import PeriodTrackerUpdateCoordinator
    from .data import PeriodTrackerConfigEntry
    from .storage import PeriodRecord

SUMMARY_PERIOD = "Period"
SUMMARY_PREDICTED = "Predicted Period"
ACCEPTED_SUMMARIES = {"period", "menstruation"}


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: PeriodTrackerConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up calendar entity."""
    async_add_entities([PeriodTrackerCalendar(entry.runtime_data.coordinator)])


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return dt_util.as_local(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ServiceValidationError(f"Unsupported date value for calendar event: {value!r}")


def _inclusive_end(value: Any) -> date:
    """All-day event ends are exclusive; timed ones end on their own day."""
    if isinstance(value, datetime):
        return dt_util.as_local(value).date()
    return _to_date(value) - timedelta(days=1)


class PeriodTrackerCalendar(PeriodTrackerEntity, CalendarEntity):
    """Calendar of logged and predicted periods."""

    _attr_name = "Cycle"
    _attr_supported_features = (
        CalendarEntityFeature.CREATE_EVENT
        | CalendarEntityFeature.UPDATE_EVENT
        | CalendarEntityFeature.DELETE_EVENT
    )

    def __init__(self, coordinator: PeriodTrackerUpdateCoordinator) -> None:
        """Initialize the calendar entity."""
        super().__init__(coordinator, "calendar")

    def _period_event(self, record: PeriodRecord) -> CalendarEvent:
        # Ongoing periods are drawn through today
        end = max(record.end or self.coordinator.data.today, record.start)
        return CalendarEvent(
            summary=SUMMARY_PERIOD,
            start=record.start,
            end=end + timedelta(days=1),
            uid=record.id,
            description="Ongoing" if record.end is None else None,
        )

    def _predicted_event(self) -> CalendarEvent | None:
        stats = self.coordinator.data.stats
        start = stats.predicted_next_period
        if start is None:
            return None
        length = self.coordinator.prediction_length
        if stats.average_period_duration:
            length = max(1, int(round_half_up(stats.average_period_duration)))
        return CalendarEvent(
            summary=SUMMARY_PREDICTED,
            start=start,
            end=start + timedelta(days=length),
        )

    def _all_events(self) -> list[CalendarEvent]:
        events = [self._period_event(r) for r in self.coordinator.data.records]
        if (predicted := self._predicted_event()) is not None:
            events.append(predicted)
        return events

    @property
    def event(self) -> CalendarEvent | None:
        """Return the current or next upcoming event."""
        today = self.coordinator.data.today
        upcoming = [e for e in self._all_events() if e.end > today]
        return min(upcoming, key=lambda e: e.start) if upcoming else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        today = self.coordinator.data.today
        return self.coordinator.month_projection(today.year, today.month).as_dict()

    async def async_get_events(
        self,
        hass: HomeAssistant,  # noqa: ARG002
        start_date: datetime,
        end_date: datetime,
    ) -> list[CalendarEvent]:
        """Return calendar events within a date range."""
        first = _to_date(start_date)
        last = _to_date(end_date)
        return [e for e in self._all_events() if e.start <= last and e.end > first]

    async def async_create_event(self, **kwargs: Any) -> None:
        """Log a past period from the calendar UI.

        Only events titled "Period" (or "Menstruation") are stored; anything
        else is ignored to keep the calendar focused.
        """
        summary = str(kwargs.get("summary", "")).strip().lower()
        if summary not in ACCEPTED_SUMMARIES:
            LOGGER.debug("Ignoring calendar event with summary %r", summary)
            return
        if not kwargs.get("dtstart"):
            raise ServiceValidationError("Calendar event requires a start date")
        start = _to_date(kwargs["dtstart"])
        end = _inclusive_end(kwargs["dtend"]) if kwargs.get("dtend") else None
        validate_manual_entry(start, end, self.coordinator.data.today)

        await self.coordinator.store.async_add(start, end)
        await self.coordinator.async_request_refresh()

    async def async_update_event(
        self,
        uid: str,
        event: dict[str, Any],
        recurrence_id: str | None = None,  # noqa: ARG002
        recurrence_range: str | None = None,  # noqa: ARG002
    ) -> None:
        """Move a logged period to the dates of the edited event.

        An ongoing period is drawn through today, so an edit that leaves its
        end on today keeps it ongoing.
        """
        today = self.coordinator.data.today
        changes: dict[str, Any] = {}
        if event.get("dtstart"):
            changes["start"] = _to_date(event["dtstart"])
        if event.get("dtend"):
            end = _inclusive_end(event["dtend"])
            ongoing = any(
                r.id == uid and r.end is None for r in self.coordinator.data.records
            )
            if not (ongoing and end == today):
                changes["end"] = end
        await async_update_period(self.coordinator.store, uid, changes, today)
        await self.coordinator.async_request_refresh()

    async def async_delete_event(
        self,
        uid: str,
        recurrence_id: str | None = None,  # noqa: ARG002
        recurrence_range: str | None = None,  # noqa: ARG002
    ) -> None:
        """Delete a logged period."""
        if not await self.coordinator.store.async_delete(uid):
            raise ServiceValidationError(f"No logged period with id {uid}")
        await self.coordinator.async_request_refresh()
