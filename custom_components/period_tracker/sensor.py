"""Sensor platform for period tracker."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
)
from homeassistant.const import UnitOfTime

from .entity import PeriodTrackerEntity
from .stats import days_until, describe_prediction

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import PeriodTrackerUpdateCoordinator
    from .data import PeriodTrackerConfigEntry

ENTITY_DESCRIPTIONS: tuple[SensorEntityDescription, ...] = (
    SensorEntityDescription(
        key="average_cycle_length",
        name="Average Cycle Length",
        icon="mdi:calendar-clock",
        native_unit_of_measurement=UnitOfTime.DAYS,
    ),
    SensorEntityDescription(
        key="average_period_duration",
        name="Average Period Duration",
        icon="mdi:calendar-range",
        native_unit_of_measurement=UnitOfTime.DAYS,
    ),
    SensorEntityDescription(
        key="shortest_cycle",
        name="Shortest Cycle",
        icon="mdi:arrow-collapse-horizontal",
        native_unit_of_measurement=UnitOfTime.DAYS,
    ),
    SensorEntityDescription(
        key="longest_cycle",
        name="Longest Cycle",
        icon="mdi:arrow-expand-horizontal",
        native_unit_of_measurement=UnitOfTime.DAYS,
    ),
    SensorEntityDescription(
        key="total_periods_logged",
        name="Periods Logged",
        icon="mdi:counter",
    ),
    SensorEntityDescription(
        key="predicted_next_period",
        name="Next Period Start",
        device_class=SensorDeviceClass.DATE,
    ),
    SensorEntityDescription(
        key="days_until_next_period",
        name="Days Until Next Period",
        icon="mdi:calendar-arrow-right",
        native_unit_of_measurement=UnitOfTime.DAYS,
    ),
)


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: PeriodTrackerConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensor entities."""
    async_add_entities(
        PeriodTrackerSensor(entry.runtime_data.coordinator, description)
        for description in ENTITY_DESCRIPTIONS
    )


class PeriodTrackerSensor(PeriodTrackerEntity, SensorEntity):
    """Representation of a period tracker statistic."""

    def __init__(
        self,
        coordinator: PeriodTrackerUpdateCoordinator,
        description: SensorEntityDescription,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, description.key)
        self.entity_description = description

    @property
    def native_value(self) -> date | int | float | None:
        """Return the state of the sensor."""
        data = self.coordinator.data
        key = self.entity_description.key
        if key == "days_until_next_period":
            predicted = data.stats.predicted_next_period
            return days_until(predicted, data.today) if predicted else None
        return getattr(data.stats, key)

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        if self.entity_description.key != "predicted_next_period":
            return None
        data = self.coordinator.data
        return {
            "description": describe_prediction(data.stats.predicted_next_period, data.today)
        }
