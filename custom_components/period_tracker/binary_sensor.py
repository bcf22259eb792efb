"""Binary sensors for period tracker."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.binary_sensor import (
    BinarySensorEntity,
    BinarySensorEntityDescription,
)

from .entity import PeriodTrackerEntity

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import PeriodTrackerUpdateCoordinator
    from .data import PeriodTrackerConfigEntry

PERIOD_ONGOING = BinarySensorEntityDescription(
    key="period_ongoing",
    name="Period Ongoing",
    icon="mdi:water",
)


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: PeriodTrackerConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensor entities."""
    async_add_entities([PeriodOngoingBinarySensor(entry.runtime_data.coordinator)])


class PeriodOngoingBinarySensor(PeriodTrackerEntity, BinarySensorEntity):
    """On while the most recent logged period has no end."""

    def __init__(self, coordinator: PeriodTrackerUpdateCoordinator) -> None:
        super().__init__(coordinator, PERIOD_ONGOING.key)
        self.entity_description = PERIOD_ONGOING

    @property
    def is_on(self) -> bool:
        return self.coordinator.data.current is not None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        current = self.coordinator.data.current
        if current is None:
            return {"period_start": None, "period_id": None, "day_of_period": None}
        return {
            "period_start": current.start.isoformat(),
            "period_id": current.id,
            "day_of_period": (self.coordinator.data.today - current.start).days + 1,
        }
