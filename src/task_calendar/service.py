"""Scheduler service: store-mutating operations with their scheduling side effects.

Every mutating method runs as one serialized write transaction and every
read as a deferred one. Placement on create, overrun handling on completion
and relocation on holiday add happen inside the same transaction as the
write that triggers them.
"""

import logging
from collections.abc import Callable, Iterable
from contextlib import suppress
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, TypeVar

from task_calendar.errors import NotFoundError, ValidationError
from task_calendar.models import Holiday, Priority, ScheduleEntry, Settings, Task, TaskStatus
from task_calendar.scheduler.calendar import HolidaySet
from task_calendar.scheduler.overrun import handle_overrun
from task_calendar.scheduler.placement import PlacementPolicy, ScheduleContext, place_task
from task_calendar.scheduler.rescheduler import (
    RescheduleOutcome,
    relocate_holiday_placements,
    reschedule_all,
)
from task_calendar.store.db import Database
from task_calendar.store.repository import SqliteScheduleStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_NAME_LENGTH = 200

# Completed is terminal
_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED},
    TaskStatus.IN_PROGRESS: {TaskStatus.PENDING, TaskStatus.COMPLETED},
    TaskStatus.COMPLETED: set(),
}


@dataclass(frozen=True)
class CompletionResult:
    """Result of completing a task."""

    task: Task
    actual_duration: int
    time_overrun: bool


class SchedulerService:
    """Entry point for every operation the request layer exposes."""

    def __init__(
        self,
        database: Database,
        policy: PlacementPolicy | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        """Initialize with a migrated database, scheduling policy and clock."""
        self._db = database
        self._policy = policy or PlacementPolicy()
        self._clock = clock

    # ---------- Tasks ----------
    def create_task(
        self, name: str, priority: Priority | str, deadline: date, estimated_duration: int
    ) -> Task:
        """Persist a task, then place it once."""
        name = _validate_name(name)
        priority = _parse_priority(priority)
        deadline = _validate_date(deadline, "deadline")
        estimated_duration = _validate_minutes(estimated_duration, "estimated_duration", positive=True)

        def operation(store: SqliteScheduleStore) -> Task:
            task = store.insert_task(name, priority, deadline, estimated_duration)
            logger.info(f"Created task {task.id} '{task.name}' ({priority.value}, due {deadline})")
            place_task(task, store, self._context(store))
            return task

        return self._run(operation)

    def get_task(self, task_id: int) -> Task:
        """Get a task by id."""
        return self._read(lambda store: _require_task(store, task_id))

    def list_tasks(self) -> list[Task]:
        """List tasks by priority, then deadline."""
        return self._read(lambda store: store.list_tasks())

    def update_task(
        self,
        task_id: int,
        *,
        name: str | None = None,
        priority: Priority | str | None = None,
        deadline: date | None = None,
        estimated_duration: int | None = None,
        status: TaskStatus | str | None = None,
        actual_duration: int | None = None,
    ) -> Task:
        """Edit task fields.

        When ``actual_duration`` is given and exceeds the (updated) estimate,
        later work on the task's placement date is shifted.
        A status change must follow the task lifecycle; completed tasks keep
        their status.
        """
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = _validate_name(name)
        if priority is not None:
            changes["priority"] = _parse_priority(priority)
        if deadline is not None:
            changes["deadline"] = _validate_date(deadline, "deadline")
        if estimated_duration is not None:
            changes["estimated_duration"] = _validate_minutes(
                estimated_duration, "estimated_duration", positive=True
            )
        if status is not None:
            changes["status"] = _parse_status(status)
        if actual_duration is not None:
            changes["actual_duration"] = _validate_minutes(actual_duration, "actual_duration")

        def operation(store: SqliteScheduleStore) -> Task:
            current = _require_task(store, task_id)
            if "status" in changes:
                _check_transition(current, changes["status"])
            task = replace(current, **changes)
            store.update_task(task)
            if actual_duration is not None and task.actual_duration > task.estimated_duration:
                handle_overrun(
                    task.id,
                    task.actual_duration,
                    task.estimated_duration,
                    store,
                    self._context(store),
                )
            return task

        return self._run(operation)

    def start_task(self, task_id: int) -> tuple[Task, datetime]:
        """Move a pending task to in progress and return the start time."""

        def operation(store: SqliteScheduleStore) -> Task:
            task = _require_task(store, task_id)
            if task.status is not TaskStatus.PENDING:
                raise ValidationError(f"Task {task_id} is {task.status.value}, cannot start")
            task = replace(task, status=TaskStatus.IN_PROGRESS)
            store.update_task(task)
            return task

        task = self._run(operation)
        started_at = datetime.now()
        logger.info(f"Started task {task_id} at {started_at.isoformat()}")
        return task, started_at

    def cancel_task(self, task_id: int) -> Task:
        """Return an in-progress task to pending without recording a duration."""

        def operation(store: SqliteScheduleStore) -> Task:
            task = _require_task(store, task_id)
            if task.status is not TaskStatus.IN_PROGRESS:
                raise ValidationError(f"Task {task_id} is {task.status.value}, cannot cancel")
            task = replace(task, status=TaskStatus.PENDING)
            store.update_task(task)
            return task

        return self._run(operation)

    def complete_task(self, task_id: int, actual_duration: int) -> CompletionResult:
        """Mark a task completed and absorb any overrun into later work."""
        actual_duration = _validate_minutes(actual_duration, "actual_duration")

        def operation(store: SqliteScheduleStore) -> CompletionResult:
            task = _require_task(store, task_id)
            if task.status is TaskStatus.COMPLETED:
                raise ValidationError(f"Task {task_id} is already completed")
            task = replace(task, status=TaskStatus.COMPLETED, actual_duration=actual_duration)
            store.update_task(task)
            overrun = actual_duration > task.estimated_duration
            if overrun:
                handle_overrun(
                    task.id, actual_duration, task.estimated_duration, store, self._context(store)
                )
            logger.info(
                f"Completed task {task.id} in {actual_duration}min "
                f"(estimate {task.estimated_duration}min)"
            )
            return CompletionResult(task=task, actual_duration=actual_duration, time_overrun=overrun)

        return self._run(operation)

    def delete_task(self, task_id: int) -> None:
        """Delete a task together with its placements."""

        def operation(store: SqliteScheduleStore) -> None:
            if not store.delete_task(task_id):
                raise NotFoundError("Task", task_id)
            logger.info(f"Deleted task {task_id}")

        self._run(operation)

    # ---------- Schedule ----------
    def list_schedule(self, day: date | None = None) -> list[ScheduleEntry]:
        """List placements with task details, optionally for one date."""
        return self._read(lambda store: store.schedule_entries(day))

    def reschedule_all(self) -> RescheduleOutcome:
        """Clear and rebuild the entire schedule."""
        return self._run(lambda store: reschedule_all(store, self._context(store)))

    # ---------- Settings ----------
    def get_settings(self) -> Settings:
        """Load current settings."""
        return self._read(lambda store: store.get_settings())

    def put_settings(
        self,
        buffer_minutes: int,
        daily_work_minutes: int,
        work_start_hour: int,
        work_end_hour: int,
    ) -> Settings:
        """Replace settings. Existing placements are left as they are."""
        settings = _validate_settings(
            Settings(
                buffer_minutes=_validate_minutes(buffer_minutes, "buffer_minutes"),
                daily_work_minutes=_validate_minutes(daily_work_minutes, "daily_work_minutes"),
                work_start_hour=_validate_int(work_start_hour, "work_start_hour"),
                work_end_hour=_validate_int(work_end_hour, "work_end_hour"),
            )
        )

        def operation(store: SqliteScheduleStore) -> Settings:
            store.put_settings(settings)
            logger.info(f"Saved settings: {settings}")
            return settings

        return self._run(operation)

    # ---------- Holidays ----------
    def list_holidays(self) -> list[Holiday]:
        """List holidays by date."""
        return self._read(lambda store: store.list_holidays())

    def add_holiday(self, day: date, name: str, recurring: bool = False) -> Holiday:
        """Add a holiday and move any work placed on it to later days."""
        day = _validate_date(day, "date")
        name = _validate_name(name)

        def operation(store: SqliteScheduleStore) -> Holiday:
            holiday = store.insert_holiday(day, name, bool(recurring))
            relocated = relocate_holiday_placements(store, self._context(store))
            logger.info(f"Added holiday '{name}' on {day} (recurring={recurring}), relocated {relocated}")
            return holiday

        return self._run(operation)

    def delete_holiday(self, holiday_id: int) -> None:
        """Delete a holiday. The schedule is not rebuilt."""

        def operation(store: SqliteScheduleStore) -> None:
            if not store.delete_holiday(holiday_id):
                raise NotFoundError("Holiday", holiday_id)
            logger.info(f"Deleted holiday {holiday_id}")

        self._run(operation)

    def import_holidays(self, holidays: Iterable[tuple[date, str, bool]]) -> int:
        """Add holidays not already stored (same date and name) and relocate work.

        Returns:
            Number of holidays added
        """
        entries = [(_validate_date(d, "date"), _validate_name(n), bool(r)) for d, n, r in holidays]

        def operation(store: SqliteScheduleStore) -> int:
            added = 0
            for day, name, recurring in entries:
                if store.find_holiday(day, name) is None:
                    store.insert_holiday(day, name, recurring)
                    added += 1
            if added:
                relocate_holiday_placements(store, self._context(store))
            return added

        return self._run(operation)

    # ---------- Internals ----------
    def _run(self, operation: Callable[[SqliteScheduleStore], T]) -> T:
        return self._db.run(lambda conn: operation(SqliteScheduleStore(conn)))

    def _read(self, operation: Callable[[SqliteScheduleStore], T]) -> T:
        return self._db.run(lambda conn: operation(SqliteScheduleStore(conn)), immediate=False)

    def _context(self, store: SqliteScheduleStore) -> ScheduleContext:
        return ScheduleContext(
            settings=store.get_settings(),
            holidays=HolidaySet(store.list_holidays()),
            today=self._clock(),
            policy=self._policy,
        )


def _require_task(store: SqliteScheduleStore, task_id: int) -> Task:
    task = store.get_task(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


def _check_transition(task: Task, status: TaskStatus) -> None:
    if status is task.status:
        return
    if status not in _TRANSITIONS[task.status]:
        raise ValidationError(
            f"Task {task.id} is {task.status.value}, cannot change status to {status.value}"
        )


def _validate_name(value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Name must be a non-empty string")
    value = value.strip()
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return value


def _validate_date(value: Any, field_name: str) -> date:
    # datetime is a date subclass but carries a time of day
    if isinstance(value, datetime) or not isinstance(value, date):
        raise ValidationError(f"{field_name} must be a date")
    return value


def _validate_int(value: Any, field_name: str) -> int:
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    return value


def _validate_minutes(value: Any, field_name: str, positive: bool = False) -> int:
    value = _validate_int(value, field_name)
    if positive and value <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    if value < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return value


def _parse_priority(value: Priority | str) -> Priority:
    if isinstance(value, Priority):
        return value
    if isinstance(value, str):
        with suppress(ValueError):
            return Priority(value.strip().lower())
    raise ValidationError(f"Invalid priority: {value!r} (expected high, medium or low)")


def _parse_status(value: TaskStatus | str) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    if isinstance(value, str):
        with suppress(ValueError):
            return TaskStatus(value.strip().lower())
    raise ValidationError(f"Invalid status: {value!r}")


def _validate_settings(settings: Settings) -> Settings:
    start, end = settings.work_start_hour, settings.work_end_hour
    if not 0 <= start < end <= 24:
        raise ValidationError(f"Working hours must satisfy 0 <= start < end <= 24, got {start}-{end}")
    window = (end - start) * 60
    if settings.daily_work_minutes > window:
        raise ValidationError(
            f"daily_work_minutes {settings.daily_work_minutes} exceeds the {window}min working window"
        )
    return settings
