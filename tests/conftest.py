"""Shared fixtures for period tracker tests."""

from __future__ import annotations

import copy
from datetime import date
from typing import Any

import pytest

from custom_components.period_tracker.const import STORAGE_KEY
from custom_components.period_tracker.storage import PeriodRecord, PeriodStore

TODAY = date(2024, 3, 12)


class FakeBackend:
    """In-memory stand-in for Home Assistant storage."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(initial or {})
        self.writes = 0

    async def async_get(self, key: str) -> Any:
        return copy.deepcopy(self.data.get(key))

    async def async_set(self, key: str, value: Any) -> None:
        self.writes += 1
        self.data[key] = copy.deepcopy(value)

    async def async_remove(self, key: str) -> None:
        self.data.pop(key, None)


def make_record(start: str, end: str | None = None, record_id: str | None = None) -> PeriodRecord:
    return PeriodRecord(
        id=record_id or f"id-{start}",
        start=date.fromisoformat(start),
        end=date.fromisoformat(end) if end else None,
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def store(backend: FakeBackend) -> PeriodStore:
    return PeriodStore(backend, STORAGE_KEY)
