"""Tests for the bulk rescheduler."""

from dataclasses import replace
from datetime import date, timedelta

from conftest import TODAY, assert_schedule_consistent, make_context

from task_calendar.models import PlacementKind, Priority, Settings, TaskStatus
from task_calendar.scheduler.calendar import HolidaySet, is_workable_day, iter_days
from task_calendar.scheduler.rescheduler import (
    relocate_holiday_placements,
    reschedule_all,
    seed_commitments,
)
from task_calendar.store.repository import SqliteScheduleStore


def test_reschedule_clears_existing_placements(store: SqliteScheduleStore) -> None:
    """Test stale placements are removed and open tasks placed again."""
    task = store.insert_task("Report", Priority.HIGH, date(2026, 3, 12), 60)
    store.insert_placement(PlacementKind.TASK, task.id, date(2026, 3, 10), 900, 990)

    outcome = reschedule_all(store, make_context(store))

    assert outcome.cleared == 1
    assert outcome.placed == 1
    assert [(p.date, p.start, p.end) for p in store.placements_for_task(task.id)] == [
        (TODAY, 540, 630)
    ]


def test_reschedule_orders_by_priority_then_deadline(store: SqliteScheduleStore) -> None:
    """Test High is placed before Low even when Low is due sooner."""
    low = store.insert_task("Low", Priority.LOW, TODAY + timedelta(days=2), 60)
    high = store.insert_task("High", Priority.HIGH, TODAY + timedelta(days=5), 60)

    reschedule_all(store, make_context(store))

    high_placement = store.placements_for_task(high.id)[0]
    low_placement = store.placements_for_task(low.id)[0]
    assert high_placement.date <= low_placement.date
    assert (high_placement.start, low_placement.start) == (540, 630)


def test_reschedule_orders_same_priority_by_deadline(store: SqliteScheduleStore) -> None:
    """Test equal priorities are placed by ascending deadline."""
    later = store.insert_task("Later", Priority.MEDIUM, date(2026, 3, 20), 60)
    sooner = store.insert_task("Sooner", Priority.MEDIUM, date(2026, 3, 12), 60)

    reschedule_all(store, make_context(store))

    assert store.placements_for_task(sooner.id)[0].start == 540
    assert store.placements_for_task(later.id)[0].start == 630


def test_reschedule_skips_completed_tasks(store: SqliteScheduleStore) -> None:
    """Test completed tasks are not placed again."""
    done = store.insert_task("Done", Priority.HIGH, date(2026, 3, 12), 60)
    store.update_task(replace(done, actual_duration=50, status=TaskStatus.COMPLETED))
    in_progress = store.insert_task("Doing", Priority.LOW, date(2026, 3, 12), 60)

    outcome = reschedule_all(store, make_context(store))

    assert store.placements_for_task(done.id) == []
    assert len(store.placements_for_task(in_progress.id)) == 1
    assert (outcome.placed, outcome.unplaced) == (1, 0)


def test_reschedule_counts_unplaced(store: SqliteScheduleStore) -> None:
    """Test tasks without room are counted as unplaced."""
    store.insert_task("Overdue", Priority.HIGH, date(2026, 2, 1), 60)

    outcome = reschedule_all(store, make_context(store))

    assert (outcome.placed, outcome.unplaced) == (0, 1)


def test_seed_commitments_on_every_workable_day(store: SqliteScheduleStore) -> None:
    """Test commitments cover each workable day of the 30 day horizon."""
    store.insert_holiday(date(2026, 3, 4), "Offsite", recurring=False)
    ctx = make_context(store, settings=Settings(daily_work_minutes=60))

    seeded = seed_commitments(store, ctx)

    holidays = HolidaySet(store.list_holidays())
    expected = [
        day
        for day in iter_days(TODAY, TODAY + timedelta(days=29))
        if is_workable_day(day, holidays)
    ]
    commitments = [p for p in store.list_placements() if p.is_commitment]
    assert seeded == len(expected) == 21
    assert [p.date for p in commitments] == expected
    assert all((p.start, p.end) == (540, 600) for p in commitments)


def test_seed_commitments_disabled(store: SqliteScheduleStore) -> None:
    """Test nothing is seeded without a daily commitment."""
    assert seed_commitments(store, make_context(store)) == 0
    assert store.list_placements() == []


def test_reschedule_places_tasks_after_commitment(store: SqliteScheduleStore) -> None:
    """Test tasks fill the day after the seeded commitment."""
    ctx = make_context(store, settings=Settings(daily_work_minutes=120))
    task = store.insert_task("Report", Priority.HIGH, date(2026, 3, 12), 60)

    outcome = reschedule_all(store, ctx)

    assert outcome.commitments == 22
    placement = store.placements_for_task(task.id)[0]
    assert (placement.date, placement.start, placement.end) == (TODAY, 660, 750)
    assert_schedule_consistent(store, ctx.settings)


def test_relocate_holiday_placements(store: SqliteScheduleStore) -> None:
    """Test task placements leave a holiday and commitments on it are dropped."""
    holiday = date(2026, 3, 3)
    task = store.insert_task("Report", Priority.HIGH, date(2026, 3, 20), 60)
    store.insert_placement(PlacementKind.COMMITMENT, None, holiday, 540, 600)
    store.insert_placement(PlacementKind.TASK, task.id, holiday, 600, 690)
    store.insert_holiday(holiday, "Surprise", recurring=False)

    relocated = relocate_holiday_placements(store, make_context(store))

    assert relocated == 1
    assert store.placements_on(holiday) == []
    moved = store.placements_for_task(task.id)
    assert [(p.date, p.start, p.end) for p in moved] == [(date(2026, 3, 4), 540, 630)]


def test_reschedule_respects_holidays_and_invariants(store: SqliteScheduleStore) -> None:
    """Test a full rebuild keeps every invariant with holidays and a commitment."""
    store.insert_holiday(TODAY, "Today off", recurring=False)
    store.insert_holiday(date(2025, 3, 3), "Yearly", recurring=True)
    ctx = make_context(store, settings=Settings(daily_work_minutes=30, buffer_minutes=10))
    for index, priority in enumerate([Priority.LOW, Priority.HIGH, Priority.MEDIUM] * 4):
        store.insert_task(f"T{index}", priority, date(2026, 3, 25), 60 + index * 20)

    outcome = reschedule_all(store, ctx)

    assert outcome.unplaced == 0
    assert_schedule_consistent(store, ctx.settings)
    for placement in store.list_placements():
        assert placement.date not in (TODAY, date(2026, 3, 3))
        assert placement.date.weekday() < 5


def test_relocate_holiday_placements_leaves_past_and_completed_work(
    store: SqliteScheduleStore,
) -> None:
    """Test past placements and completed work stay on a holiday."""
    past_day = date(2026, 2, 20)
    done = store.insert_task("Done", Priority.HIGH, date(2026, 2, 25), 60)
    store.update_task(replace(done, actual_duration=60, status=TaskStatus.COMPLETED))
    done_today = store.insert_task("Done today", Priority.HIGH, date(2026, 3, 12), 60)
    store.update_task(replace(done_today, actual_duration=60, status=TaskStatus.COMPLETED))
    stale = store.insert_task("Stale", Priority.LOW, date(2026, 3, 12), 60)
    past = store.insert_placement(PlacementKind.TASK, done.id, past_day, 540, 630)
    today = store.insert_placement(PlacementKind.TASK, done_today.id, TODAY, 540, 630)
    pending_past = store.insert_placement(PlacementKind.TASK, stale.id, past_day, 630, 720)
    store.insert_holiday(past_day, "Late notice", recurring=False)
    store.insert_holiday(TODAY, "Today off", recurring=False)

    relocated = relocate_holiday_placements(store, make_context(store))

    assert relocated == 0
    assert store.placements_for_task(done.id) == [past]
    assert store.placements_for_task(done_today.id) == [today]
    assert store.placements_for_task(stale.id) == [pending_past]
