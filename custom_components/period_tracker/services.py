"""Services for period_tracker."""

from __future__ import annotations

from datetime import date
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv, entity_registry as er
from homeassistant.util import dt as dt_util

from .const import DOMAIN, LOGGER
from .picker import end_bounds, start_bounds
from .storage import InvalidPeriodError, export_filename

if TYPE_CHECKING:
    from .data import PeriodTrackerConfigEntry
    from .storage import PeriodRecord, PeriodStore


SERVICE_START_PERIOD = "start_period"
SERVICE_END_PERIOD = "end_period"
SERVICE_LOG_PERIOD = "log_period"
SERVICE_UPDATE_PERIOD = "update_period"
SERVICE_DELETE_PERIOD = "delete_period"
SERVICE_CLEAR_DATA = "clear_data"
SERVICE_EXPORT_DATA = "export_data"

_TARGET = {
    vol.Optional("entity_id"): cv.entity_ids,
    vol.Optional("entry_id"): cv.string,
}

_DAY_SCHEMA = vol.Schema({vol.Optional("date"): cv.date, **_TARGET})

_LOG_SCHEMA = vol.Schema(
    {vol.Required("start"): cv.date, vol.Optional("end"): cv.date, **_TARGET}
)

_UPDATE_SCHEMA = vol.Schema(
    {
        vol.Required("id"): cv.string,
        vol.Optional("start"): cv.date,
        vol.Optional("end"): vol.Any(None, cv.date),
        **_TARGET,
    }
)

_DELETE_SCHEMA = vol.Schema({vol.Required("id"): cv.string, **_TARGET})

_TARGET_SCHEMA = vol.Schema(_TARGET)


def validate_manual_entry(start: date, end: date | None, today: date) -> None:
    """Check a logged period against the date picker bounds.

    The start may not be in the future and the end must fall between the
    start and today.
    """
    if not start_bounds(today).contains(start):
        raise ServiceValidationError(
            f"Period start {start.isoformat()} cannot be after today ({today.isoformat()})"
        )
    if end is not None and not end_bounds(start, today).contains(end):
        raise ServiceValidationError(
            f"Period end {end.isoformat()} must be between {start.isoformat()} "
            f"and {today.isoformat()}"
        )


def validate_new_start(day: date, records: list[PeriodRecord], today: date) -> None:
    """Check that a newly started period would be reported as ongoing.

    Only the latest period by start can be ongoing, so a new one must begin
    after every logged start.
    """
    validate_manual_entry(day, None, today)
    if records and day <= (latest := max(r.start for r in records)):
        raise ServiceValidationError(
            f"A new period must start after the latest logged start ({latest.isoformat()})"
        )


async def async_update_period(
    store: PeriodStore, record_id: str, changes: dict[str, Any], today: date
) -> PeriodRecord:
    """Apply start/end changes to a logged period after checking the merged dates."""
    existing = next((r for r in await store.async_list() if r.id == record_id), None)
    if existing is None:
        raise ServiceValidationError(f"No logged period with id {record_id}")
    validate_manual_entry(
        changes.get("start", existing.start), changes.get("end", existing.end), today
    )
    try:
        updated = await store.async_update(record_id, **changes)
    except InvalidPeriodError as err:
        raise ServiceValidationError(str(err)) from err
    if updated is None:
        raise ServiceValidationError(f"No logged period with id {record_id}")
    return updated


async def _resolve_entry_id(hass: HomeAssistant, call: ServiceCall) -> str | None:
    """Resolve a config entry_id from a service call.

    Priority:
    1) entity_id provided -> map to config_entry_id via entity registry
    2) entry_id provided
    3) if only one entry for DOMAIN, use that
    """
    if entity_ids := call.data.get("entity_id"):
        ent_reg = er.async_get(hass)
        for entity_id in (entity_ids if isinstance(entity_ids, list) else [entity_ids]):
            ent = ent_reg.async_get(entity_id)
            if ent and ent.config_entry_id:
                return ent.config_entry_id

    if entry_id := call.data.get("entry_id"):
        return entry_id

    entries = hass.config_entries.async_entries(DOMAIN)
    if len(entries) == 1:
        return entries[0].entry_id

    return None


async def _async_get_entry(hass: HomeAssistant, call: ServiceCall) -> PeriodTrackerConfigEntry:
    target_entry_id = await _resolve_entry_id(hass, call)
    if not target_entry_id:
        LOGGER.error(
            "%s: Could not resolve a config entry. Provide entity_id or entry_id",
            call.service,
        )
        raise ServiceValidationError("Could not resolve a period tracker entry")
    entry = hass.config_entries.async_get_entry(target_entry_id)
    if not entry or entry.domain != DOMAIN:
        LOGGER.error("%s: Invalid or unknown entry_id: %s", call.service, target_entry_id)
        raise ServiceValidationError(f"Unknown period tracker entry: {target_entry_id}")
    return entry


def async_register_services(hass: HomeAssistant) -> None:
    """Register integration services once."""
    key = f"{DOMAIN}_services_registered"
    if hass.data.get(key):
        return

    async def _handle_start_period(call: ServiceCall) -> None:
        entry = await _async_get_entry(hass, call)
        store = entry.runtime_data.store
        today = dt_util.now().date()
        day: date = call.data.get("date") or today

        if current := await store.async_current_open():
            raise ServiceValidationError(
                f"A period is already ongoing since {current.start.isoformat()}"
            )
        validate_new_start(day, await store.async_list(), today)
        record = await store.async_add(day)
        LOGGER.debug("start_period: started %s on %s", record.id, day)
        await entry.runtime_data.coordinator.async_request_refresh()

    async def _handle_end_period(call: ServiceCall) -> None:
        entry = await _async_get_entry(hass, call)
        store = entry.runtime_data.store
        today = dt_util.now().date()
        day: date = call.data.get("date") or today

        current = await store.async_current_open()
        if current is None:
            raise ServiceValidationError("No ongoing period to end")
        validate_manual_entry(current.start, day, today)
        await store.async_update(current.id, end=day)
        LOGGER.debug("end_period: ended %s on %s", current.id, day)
        await entry.runtime_data.coordinator.async_request_refresh()

    async def _handle_log_period(call: ServiceCall) -> None:
        entry = await _async_get_entry(hass, call)
        start: date = call.data["start"]
        end: date | None = call.data.get("end")
        validate_manual_entry(start, end, dt_util.now().date())
        await entry.runtime_data.store.async_add(start, end)
        await entry.runtime_data.coordinator.async_request_refresh()

    async def _handle_update_period(call: ServiceCall) -> None:
        entry = await _async_get_entry(hass, call)
        changes: dict[str, Any] = {
            field: call.data[field] for field in ("start", "end") if field in call.data
        }
        await async_update_period(
            entry.runtime_data.store, call.data["id"], changes, dt_util.now().date()
        )
        await entry.runtime_data.coordinator.async_request_refresh()

    async def _handle_delete_period(call: ServiceCall) -> None:
        entry = await _async_get_entry(hass, call)
        if not await entry.runtime_data.store.async_delete(call.data["id"]):
            raise ServiceValidationError(f"No logged period with id {call.data['id']}")
        await entry.runtime_data.coordinator.async_request_refresh()

    async def _handle_clear_data(call: ServiceCall) -> None:
        entry = await _async_get_entry(hass, call)
        await entry.runtime_data.store.async_clear()
        LOGGER.info("clear_data: removed all period history for %s", entry.title)
        await entry.runtime_data.coordinator.async_request_refresh()

    async def _handle_export_data(call: ServiceCall) -> ServiceResponse:
        entry = await _async_get_entry(hass, call)
        store = entry.runtime_data.store
        payload = await store.async_export()
        path = Path(hass.config.path(export_filename(dt_util.now().date())))
        try:
            await hass.async_add_executor_job(path.write_text, payload, "utf-8")
        except OSError as err:
            LOGGER.exception("export_data: Failed to write %s", path)
            raise HomeAssistantError(f"Export failed: could not write {path}") from err
        LOGGER.debug("export_data: wrote %s", path)
        return {
            "path": str(path),
            "periods": json.loads(payload),
        }

    for name, handler, schema in (
        (SERVICE_START_PERIOD, _handle_start_period, _DAY_SCHEMA),
        (SERVICE_END_PERIOD, _handle_end_period, _DAY_SCHEMA),
        (SERVICE_LOG_PERIOD, _handle_log_period, _LOG_SCHEMA),
        (SERVICE_UPDATE_PERIOD, _handle_update_period, _UPDATE_SCHEMA),
        (SERVICE_DELETE_PERIOD, _handle_delete_period, _DELETE_SCHEMA),
        (SERVICE_CLEAR_DATA, _handle_clear_data, _TARGET_SCHEMA),
    ):
        hass.services.async_register(DOMAIN, name, handler, schema=schema)

    hass.services.async_register(
        DOMAIN,
        SERVICE_EXPORT_DATA,
        _handle_export_data,
        schema=_TARGET_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    hass.data[key] = True
    LOGGER.debug("Registered %s services", DOMAIN)
