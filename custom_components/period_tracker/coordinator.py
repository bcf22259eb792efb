"""Data coordinator for period tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .const import CONF_PREDICTION_LENGTH, DEFAULT_PREDICTION_LENGTH, LOGGER
from .projection import MonthProjection, project_month
from .stats import CycleStatistics, compute_stats

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .storage import PeriodRecord, PeriodStore


@dataclass
class PeriodTrackerState:
    """Snapshot rendered by the entities after each refresh."""

    today: date
    records: list[PeriodRecord] = field(default_factory=list)
    current: PeriodRecord | None = None
    stats: CycleStatistics = field(default_factory=CycleStatistics)


class PeriodTrackerUpdateCoordinator(DataUpdateCoordinator[PeriodTrackerState]):
    """Recompute cycle statistics from the full period history."""

    def __init__(
        self,
        hass: HomeAssistant,
        *,
        config_entry: ConfigEntry,
        store: PeriodStore,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            logger=LOGGER,
            name="period_tracker",
            update_interval=timedelta(days=1),
        )
        self.config_entry = config_entry
        self.store = store

    @property
    def prediction_length(self) -> int:
        return int(
            self.config_entry.options.get(CONF_PREDICTION_LENGTH, DEFAULT_PREDICTION_LENGTH)
        )

    async def _async_update_data(self) -> PeriodTrackerState:
        return await self.async_snapshot(dt_util.now().date())

    async def async_snapshot(self, today: date) -> PeriodTrackerState:
        """Read the store and derive the state as of ``today``."""
        records = await self.store.async_list()
        current = await self.store.async_current_open()
        stats = compute_stats(records)
        LOGGER.debug(
            "Recomputed stats over %d periods: average cycle %s, next %s",
            stats.total_periods_logged,
            stats.average_cycle_length,
            stats.predicted_next_period,
        )
        return PeriodTrackerState(today=today, records=records, current=current, stats=stats)

    def month_projection(self, year: int, month: int) -> MonthProjection:
        """Project the latest snapshot onto a displayed month."""
        data = self.data
        return project_month(
            data.records,
            data.stats.predicted_next_period,
            data.stats.average_period_duration,
            year,
            month,
            today=data.today,
            default_length=self.prediction_length,
        )
