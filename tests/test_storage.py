"""Tests for the period store."""

from __future__ import annotations

import copy
from datetime import date
import json

import pytest
from homeassistant.exceptions import HomeAssistantError

from custom_components.period_tracker.const import STORAGE_KEY
from custom_components.period_tracker.storage import (
    InvalidPeriodError,
    PeriodRecord,
    PeriodStore,
    export_filename,
)
from tests.conftest import FakeBackend


def _stored(backend: FakeBackend) -> list[dict]:
    return backend.data[STORAGE_KEY]


class TestPeriodRecord:
    def test_round_trip_omits_missing_end(self) -> None:
        record = PeriodRecord(id="abc", start=date(2024, 1, 1))
        assert record.to_dict() == {"id": "abc", "startDate": "2024-01-01"}
        assert PeriodRecord.from_dict(record.to_dict()) == record

    def test_duration_is_inclusive(self) -> None:
        assert PeriodRecord("a", date(2024, 1, 1), date(2024, 1, 1)).duration == 1
        assert PeriodRecord("a", date(2024, 1, 1), date(2024, 1, 5)).duration == 5
        assert PeriodRecord("a", date(2024, 1, 1)).duration is None


class TestReading:
    @pytest.mark.asyncio
    async def test_missing_key_is_empty(self, store: PeriodStore) -> None:
        assert await store.async_list() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            '{"id": "a"}',
            {"periods": []},
            [{"id": "a"}],
            [{"id": "a", "startDate": "not-a-date"}],
            [{"id": 7, "startDate": "2024-01-01"}],
            ["2024-01-01"],
        ],
    )
    async def test_unreadable_data_is_empty(self, payload: object) -> None:
        store = PeriodStore(FakeBackend({STORAGE_KEY: payload}))
        assert await store.async_list() == []

    @pytest.mark.asyncio
    async def test_json_string_payload(self) -> None:
        raw = json.dumps([{"id": "a", "startDate": "2024-01-01", "endDate": "2024-01-04"}])
        store = PeriodStore(FakeBackend({STORAGE_KEY: raw}))
        assert await store.async_list() == [
            PeriodRecord("a", date(2024, 1, 1), date(2024, 1, 4))
        ]

    @pytest.mark.asyncio
    async def test_backend_failure_is_empty(self) -> None:
        class BrokenBackend(FakeBackend):
            async def async_get(self, key: str) -> object:
                raise HomeAssistantError("storage unavailable")

        assert await PeriodStore(BrokenBackend()).async_list() == []


class TestAdd:
    @pytest.mark.asyncio
    async def test_add_then_list(self, store: PeriodStore, backend: FakeBackend) -> None:
        first = await store.async_add(date(2024, 1, 1), date(2024, 1, 5))
        second = await store.async_add(date(2024, 1, 29))

        records = await store.async_list()
        assert records == [second, first]
        assert first.id != second.id
        assert _stored(backend)[0] == {"id": second.id, "startDate": "2024-01-29"}

    @pytest.mark.asyncio
    async def test_keeps_newest_first(self, store: PeriodStore) -> None:
        for start in (date(2024, 2, 26), date(2024, 1, 1), date(2024, 3, 25), date(2024, 1, 29)):
            await store.async_add(start)
        starts = [r.start for r in await store.async_list()]
        assert starts == sorted(starts, reverse=True)

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, store: PeriodStore) -> None:
        for _ in range(20):
            await store.async_add(date(2024, 1, 1))
        ids = [r.id for r in await store.async_list()]
        assert len(set(ids)) == 20

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, store: PeriodStore, backend: FakeBackend) -> None:
        with pytest.raises(InvalidPeriodError):
            await store.async_add(date(2024, 1, 5), date(2024, 1, 1))
        assert backend.writes == 0


class TestUpdate:
    @pytest.mark.asyncio
    async def test_merges_given_fields(self, store: PeriodStore) -> None:
        record = await store.async_add(date(2024, 1, 1))
        updated = await store.async_update(record.id, end=date(2024, 1, 4))
        assert updated == PeriodRecord(record.id, date(2024, 1, 1), date(2024, 1, 4))
        assert await store.async_list() == [updated]

    @pytest.mark.asyncio
    async def test_explicit_none_reopens(self, store: PeriodStore) -> None:
        record = await store.async_add(date(2024, 1, 1), date(2024, 1, 4))
        updated = await store.async_update(record.id, end=None)
        assert updated is not None
        assert updated.end is None

    @pytest.mark.asyncio
    async def test_moving_start_resorts(self, store: PeriodStore) -> None:
        older = await store.async_add(date(2024, 1, 1))
        await store.async_add(date(2024, 1, 29))
        await store.async_update(older.id, start=date(2024, 2, 26))
        assert (await store.async_list())[0].id == older.id

    @pytest.mark.asyncio
    async def test_unknown_id_leaves_collection(self, store: PeriodStore, backend: FakeBackend) -> None:
        await store.async_add(date(2024, 1, 1))
        before = copy.deepcopy(backend.data)
        writes = backend.writes
        assert await store.async_update("missing", end=date(2024, 1, 3)) is None
        assert backend.data == before
        assert backend.writes == writes

    @pytest.mark.asyncio
    async def test_invalid_merge_rejected(self, store: PeriodStore, backend: FakeBackend) -> None:
        record = await store.async_add(date(2024, 1, 10))
        before = copy.deepcopy(backend.data)
        with pytest.raises(InvalidPeriodError):
            await store.async_update(record.id, end=date(2024, 1, 9))
        assert backend.data == before


class TestDeleteAndClear:
    @pytest.mark.asyncio
    async def test_delete_twice(self, store: PeriodStore) -> None:
        record = await store.async_add(date(2024, 1, 1))
        keep = await store.async_add(date(2024, 1, 29))
        assert await store.async_delete(record.id) is True
        assert [r.id for r in await store.async_list()] == [keep.id]
        assert await store.async_delete(record.id) is False

    @pytest.mark.asyncio
    async def test_clear_removes_key(self, store: PeriodStore, backend: FakeBackend) -> None:
        await store.async_add(date(2024, 1, 1))
        await store.async_clear()
        assert STORAGE_KEY not in backend.data
        assert await store.async_list() == []


class TestCurrentOpen:
    @pytest.mark.asyncio
    async def test_empty(self, store: PeriodStore) -> None:
        assert await store.async_current_open() is None

    @pytest.mark.asyncio
    async def test_latest_open_is_current(self, store: PeriodStore) -> None:
        await store.async_add(date(2024, 1, 1), date(2024, 1, 5))
        latest = await store.async_add(date(2024, 1, 29))
        assert await store.async_current_open() == latest

    @pytest.mark.asyncio
    async def test_older_open_record_is_not_reported(self, store: PeriodStore) -> None:
        await store.async_add(date(2024, 1, 1))
        await store.async_add(date(2024, 1, 29), date(2024, 2, 2))
        assert await store.async_current_open() is None

    @pytest.mark.asyncio
    async def test_unsorted_storage(self) -> None:
        backend = FakeBackend(
            {
                STORAGE_KEY: [
                    {"id": "old", "startDate": "2024-01-01"},
                    {"id": "new", "startDate": "2024-01-29"},
                ]
            }
        )
        current = await PeriodStore(backend).async_current_open()
        assert current is not None
        assert current.id == "new"


class TestExport:
    @pytest.mark.asyncio
    async def test_export_matches_stored_layout(self, store: PeriodStore, backend: FakeBackend) -> None:
        await store.async_add(date(2024, 1, 1), date(2024, 1, 5))
        await store.async_add(date(2024, 1, 29))
        exported = await store.async_export()
        assert json.loads(exported) == _stored(backend)
        assert exported.startswith("[\n  {")

    @pytest.mark.asyncio
    async def test_export_empty(self, store: PeriodStore) -> None:
        assert await store.async_export() == "[]"

    def test_filename(self) -> None:
        assert export_filename(date(2024, 3, 12)) == "period-tracker-export-2024-03-12.json"
