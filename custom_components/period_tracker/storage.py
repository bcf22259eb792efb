"""Persistent storage for period_tracker history."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
import json
from typing import TYPE_CHECKING, Any, Protocol

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store
from homeassistant.util.ulid import ulid_now

from .const import DOMAIN, EXPORT_FILENAME, LOGGER, STORAGE_KEY, STORAGE_VERSION

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

_UNSET: Any = object()


class InvalidPeriodError(ValueError):
    """Raised when a period would end before it starts."""


@dataclass
class PeriodRecord:
    """A logged period. A missing end means it is still ongoing."""

    id: str
    start: date
    end: date | None = None

    @property
    def duration(self) -> int | None:
        """Inclusive number of days, or None while ongoing."""
        if self.end is None:
            return None
        return abs((self.end - self.start).days) + 1

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "startDate": self.start.isoformat()}
        if self.end is not None:
            data["endDate"] = self.end.isoformat()
        return data

    @staticmethod
    def from_dict(obj: dict[str, Any]) -> "PeriodRecord":
        record_id = obj["id"]
        if not isinstance(record_id, str):
            raise TypeError(f"Period id must be a string, got {record_id!r}")
        start = date.fromisoformat(obj["startDate"])  # raises if invalid
        end = date.fromisoformat(obj["endDate"]) if obj.get("endDate") else None
        return PeriodRecord(id=record_id, start=start, end=end)


class KeyValueBackend(Protocol):
    """Minimal key-value medium the store persists into."""

    async def async_get(self, key: str) -> Any: ...

    async def async_set(self, key: str, value: Any) -> None: ...

    async def async_remove(self, key: str) -> None: ...


class HomeAssistantBackend:
    """Key-value backend over Home Assistant's JSON storage helper."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        self.hass = hass
        self.entry_id = entry_id
        self._stores: dict[str, Store] = {}

    def _store(self, key: str) -> Store:
        if key not in self._stores:
            self._stores[key] = Store(
                self.hass, version=STORAGE_VERSION, key=f"{DOMAIN}.{self.entry_id}.{key}"
            )
        return self._stores[key]

    async def async_get(self, key: str) -> Any:
        return await self._store(key).async_load()

    async def async_set(self, key: str, value: Any) -> None:
        await self._store(key).async_save(value)

    async def async_remove(self, key: str) -> None:
        await self._store(key).async_remove()


def _validate(start: date, end: date | None) -> None:
    if end is not None and end < start:
        raise InvalidPeriodError(
            f"Period end {end.isoformat()} is before its start {start.isoformat()}"
        )


def export_filename(today: date) -> str:
    """Return the file name used for a data export made on ``today``."""
    return EXPORT_FILENAME.format(date=today.isoformat())


class PeriodStore:
    """Manage the persisted period collection.

    Every call reads the whole collection from the backend and every mutation
    writes it back in full, newest start first. Unreadable data reads as an
    empty collection.
    """

    def __init__(self, backend: KeyValueBackend, key: str = STORAGE_KEY) -> None:
        self._backend = backend
        self._key = key

    async def _async_read(self) -> list[PeriodRecord]:
        try:
            raw = await self._backend.async_get(self._key)
        except (HomeAssistantError, OSError):
            LOGGER.warning("Period history under %s is unavailable", self._key, exc_info=True)
            return []
        if raw is None:
            return []
        try:
            if isinstance(raw, str):
                raw = json.loads(raw)
            if not isinstance(raw, list):
                raise TypeError(f"Expected a list, got {type(raw).__name__}")
            return [PeriodRecord.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError):
            LOGGER.warning("Discarding unreadable period history under %s", self._key)
            return []

    async def _async_write(self, records: list[PeriodRecord]) -> None:
        records.sort(key=lambda r: r.start, reverse=True)
        await self._backend.async_set(self._key, [r.to_dict() for r in records])
        LOGGER.debug("Saved %d period records under %s", len(records), self._key)

    async def async_list(self) -> list[PeriodRecord]:
        return await self._async_read()

    async def async_add(self, start: date, end: date | None = None) -> PeriodRecord:
        """Log a new period and return it with a freshly generated id."""
        _validate(start, end)
        records = await self._async_read()
        taken = {r.id for r in records}
        record_id = ulid_now()
        while record_id in taken:
            record_id = ulid_now()
        record = PeriodRecord(id=record_id, start=start, end=end)
        records.append(record)
        await self._async_write(records)
        return record

    async def async_update(
        self,
        record_id: str,
        *,
        start: date = _UNSET,
        end: date | None = _UNSET,
    ) -> PeriodRecord | None:
        """Merge the given fields into a record.

        Returns None and writes nothing when ``record_id`` is unknown. Passing
        ``end=None`` explicitly reopens a period.
        """
        records = await self._async_read()
        for index, existing in enumerate(records):
            if existing.id == record_id:
                break
        else:
            return None

        changes: dict[str, Any] = {}
        if start is not _UNSET:
            changes["start"] = start
        if end is not _UNSET:
            changes["end"] = end
        updated = replace(existing, **changes)
        _validate(updated.start, updated.end)

        records[index] = updated
        await self._async_write(records)
        return updated

    async def async_delete(self, record_id: str) -> bool:
        records = await self._async_read()
        kept = [r for r in records if r.id != record_id]
        if len(kept) == len(records):
            return False
        await self._async_write(kept)
        return True

    async def async_clear(self) -> None:
        await self._backend.async_remove(self._key)
        LOGGER.debug("Cleared period history under %s", self._key)

    async def async_current_open(self) -> PeriodRecord | None:
        """Return the latest period if it has no end yet.

        Only the most recent record by start can be ongoing; older records
        without an end are not reported.
        """
        records = await self._async_read()
        if not records:
            return None
        latest = max(records, key=lambda r: r.start)
        return latest if latest.end is None else None

    async def async_export(self) -> str:
        """Serialize the full collection as pretty-printed JSON."""
        records = await self._async_read()
        return json.dumps([r.to_dict() for r in records], indent=2)
