"""Test fixtures for TaskCalendar."""

from collections.abc import Iterator
from datetime import date
from pathlib import Path

import pytest

from task_calendar.models import Settings
from task_calendar.scheduler.calendar import HolidaySet
from task_calendar.scheduler.placement import PlacementPolicy, ScheduleContext
from task_calendar.service import SchedulerService
from task_calendar.store.db import Database
from task_calendar.store.repository import SqliteScheduleStore

# Monday
TODAY = date(2026, 3, 2)


@pytest.fixture
def database(tmp_path: Path) -> Database:
    """Create a migrated database in a temporary directory."""
    db = Database(tmp_path / "calendar.sqlite3", busy_timeout_seconds=1.0)
    db.migrate()
    return db


@pytest.fixture
def store(database: Database) -> Iterator[SqliteScheduleStore]:
    """Open a store inside one transaction, committed after the test."""
    with database.transaction() as conn:
        yield SqliteScheduleStore(conn)


@pytest.fixture
def service(database: Database) -> SchedulerService:
    """Create a scheduler service whose clock is fixed to TODAY."""
    return SchedulerService(database, PlacementPolicy(), clock=lambda: TODAY)


def make_context(
    store: SqliteScheduleStore,
    today: date = TODAY,
    settings: Settings | None = None,
) -> ScheduleContext:
    """Build a scheduling context from the store's current settings and holidays."""
    return ScheduleContext(
        settings=settings or store.get_settings(),
        holidays=HolidaySet(store.list_holidays()),
        today=today,
        policy=PlacementPolicy(),
    )


def assert_schedule_consistent(store: SqliteScheduleStore, settings: Settings | None = None) -> None:
    """Check no overlap, window containment and one commitment per date."""
    settings = settings or store.get_settings()
    window_start, window_end = settings.work_start_hour * 60, settings.work_end_hour * 60
    by_date: dict[date, list] = {}
    for placement in store.list_placements():
        by_date.setdefault(placement.date, []).append(placement)

    for day, placements in by_date.items():
        placements.sort(key=lambda p: p.start)
        for first, second in zip(placements, placements[1:]):
            assert first.end <= second.start, f"Overlap on {day}: {first} / {second}"
        for placement in placements:
            assert window_start <= placement.start < placement.end <= window_end
        assert sum(1 for p in placements if p.is_commitment) <= 1
