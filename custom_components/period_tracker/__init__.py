"""Setup for period tracker integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.const import Platform
from homeassistant.loader import async_get_loaded_integration

from .const import LOGGER
from .coordinator import PeriodTrackerUpdateCoordinator
from .data import PeriodTrackerConfigEntry, PeriodTrackerData
from .services import async_register_services
from .storage import HomeAssistantBackend, PeriodStore

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
    Platform.CALENDAR,
]


async def async_setup_entry(hass: HomeAssistant, entry: PeriodTrackerConfigEntry) -> bool:
    """Set up period tracker from a config entry."""
    # Ensure domain services are registered once
    async_register_services(hass)

    store = PeriodStore(HomeAssistantBackend(hass, entry.entry_id))
    coordinator = PeriodTrackerUpdateCoordinator(hass, config_entry=entry, store=store)
    entry.runtime_data = PeriodTrackerData(
        coordinator=coordinator,
        integration=async_get_loaded_integration(hass, entry.domain),
        store=store,
    )
    await coordinator.async_config_entry_first_refresh()
    LOGGER.debug(
        "Loaded %d logged periods for %s",
        coordinator.data.stats.total_periods_logged,
        entry.title,
    )
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    return True


async def async_unload_entry(hass: HomeAssistant, entry: PeriodTrackerConfigEntry) -> bool:
    """Unload a config entry."""
    return await hass.config_entries.async_unload_platforms(entry, PLATFORMS)


async def async_reload_entry(hass: HomeAssistant, entry: PeriodTrackerConfigEntry) -> None:
    """Reload when config entry options change."""
    await hass.config_entries.async_reload(entry.entry_id)
