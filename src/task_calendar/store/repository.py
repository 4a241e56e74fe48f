"""Persistent store for tasks, placements, settings and holidays."""

import logging
import sqlite3
from datetime import date
from typing import Protocol

from task_calendar.models import (
    Holiday,
    Placement,
    PlacementKind,
    Priority,
    ScheduleEntry,
    Settings,
    Task,
    TaskStatus,
)
from task_calendar.scheduler.calendar import hhmm_to_minutes, minutes_to_hhmm

logger = logging.getLogger(__name__)

COMMITMENT_NAME = "Daily commitment"

_PRIORITY_ORDER = """
    CASE priority
        WHEN 'high' THEN 1
        WHEN 'medium' THEN 2
        WHEN 'low' THEN 3
    END
"""


class ScheduleStore(Protocol):
    """Protocol for the store the scheduler reads and writes."""

    def get_settings(self) -> Settings:
        """Load the settings singleton."""
        ...

    def list_holidays(self) -> list[Holiday]:
        """List all holidays."""
        ...

    def get_task(self, task_id: int) -> Task | None:
        """Get a task by id."""
        ...

    def list_open_tasks(self) -> list[Task]:
        """List tasks that are not completed, in scheduling order."""
        ...

    def placements_on(self, day: date) -> list[Placement]:
        """List placements on a date ordered by start."""
        ...

    def placements_for_task(self, task_id: int) -> list[Placement]:
        """List placements of a task ordered by date and start."""
        ...

    def list_placements(self) -> list[Placement]:
        """List every placement ordered by date and start."""
        ...

    def has_commitment(self, day: date) -> bool:
        """Return True if the daily commitment is placed on the date."""
        ...

    def insert_placement(
        self, kind: PlacementKind, task_id: int | None, day: date, start: int, end: int
    ) -> Placement:
        """Insert a placement."""
        ...

    def move_placement(self, placement_id: int, start: int, end: int) -> None:
        """Change a placement's start and end on the same date."""
        ...

    def delete_placement(self, placement_id: int) -> None:
        """Delete a placement."""
        ...

    def clear_placements(self) -> int:
        """Delete every placement and return how many were removed."""
        ...


class SqliteScheduleStore:
    """ScheduleStore backed by an open SQLite connection.

    The caller owns the connection and its transaction.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize with a connection inside an open transaction."""
        self.conn = conn

    # ---------- Settings ----------
    def get_settings(self) -> Settings:
        """Load the settings singleton, falling back to defaults per key."""
        rows = self.conn.execute("SELECT key, value FROM settings").fetchall()
        values = {r["key"]: r["value"] for r in rows}
        defaults = Settings()
        return Settings(
            buffer_minutes=int(values.get("buffer_minutes", defaults.buffer_minutes)),
            daily_work_minutes=int(values.get("daily_work_minutes", defaults.daily_work_minutes)),
            work_start_hour=int(values.get("work_start_hour", defaults.work_start_hour)),
            work_end_hour=int(values.get("work_end_hour", defaults.work_end_hour)),
        )

    def put_settings(self, settings: Settings) -> None:
        """Persist all settings keys."""
        values = {
            "buffer_minutes": settings.buffer_minutes,
            "daily_work_minutes": settings.daily_work_minutes,
            "work_start_hour": settings.work_start_hour,
            "work_end_hour": settings.work_end_hour,
        }
        self.conn.executemany(
            "INSERT INTO settings(key, value) VALUES(?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            [(k, str(v)) for k, v in values.items()],
        )

    # ---------- Tasks ----------
    def insert_task(
        self, name: str, priority: Priority, deadline: date, estimated_duration: int
    ) -> Task:
        """Insert a pending task and return it."""
        cur = self.conn.execute(
            """
            INSERT INTO tasks(name, priority, deadline, estimated_duration)
            VALUES(?, ?, ?, ?)
            """,
            (name, priority.value, deadline.isoformat(), estimated_duration),
        )
        return Task(
            id=int(cur.lastrowid),
            name=name,
            priority=priority,
            deadline=deadline,
            estimated_duration=estimated_duration,
        )

    def get_task(self, task_id: int) -> Task | None:
        """Get a task by id, or None."""
        r = self.conn.execute("SELECT * FROM tasks WHERE id=?", (task_id,)).fetchone()
        return _task_from_row(r) if r else None

    def list_tasks(self) -> list[Task]:
        """List all tasks by priority, then deadline."""
        rows = self.conn.execute(
            f"SELECT * FROM tasks ORDER BY {_PRIORITY_ORDER}, deadline, id"
        ).fetchall()
        return [_task_from_row(r) for r in rows]

    def list_open_tasks(self) -> list[Task]:
        """List tasks that are not completed, by priority, then deadline."""
        rows = self.conn.execute(
            f"SELECT * FROM tasks WHERE status != 'completed' "
            f"ORDER BY {_PRIORITY_ORDER}, deadline, id"
        ).fetchall()
        return [_task_from_row(r) for r in rows]

    def update_task(self, task: Task) -> None:
        """Write every mutable field of the task."""
        self.conn.execute(
            """
            UPDATE tasks
            SET name=?, priority=?, deadline=?, estimated_duration=?,
                actual_duration=?, status=?, updated_at=CURRENT_TIMESTAMP
            WHERE id=?
            """,
            (
                task.name,
                task.priority.value,
                task.deadline.isoformat(),
                task.estimated_duration,
                task.actual_duration,
                task.status.value,
                task.id,
            ),
        )

    def delete_task(self, task_id: int) -> bool:
        """Delete a task; its placements cascade. Returns False if missing."""
        self.conn.execute("DELETE FROM placements WHERE task_id=?", (task_id,))
        cur = self.conn.execute("DELETE FROM tasks WHERE id=?", (task_id,))
        return cur.rowcount > 0

    # ---------- Placements ----------
    def placements_on(self, day: date) -> list[Placement]:
        """List placements on a date ordered by start."""
        rows = self.conn.execute(
            "SELECT * FROM placements WHERE scheduled_date=? ORDER BY start_time, id",
            (day.isoformat(),),
        ).fetchall()
        return [_placement_from_row(r) for r in rows]

    def placements_for_task(self, task_id: int) -> list[Placement]:
        """List placements of a task ordered by date and start."""
        rows = self.conn.execute(
            "SELECT * FROM placements WHERE task_id=? ORDER BY scheduled_date, start_time, id",
            (task_id,),
        ).fetchall()
        return [_placement_from_row(r) for r in rows]

    def list_placements(self) -> list[Placement]:
        """List every placement ordered by date and start."""
        rows = self.conn.execute(
            "SELECT * FROM placements ORDER BY scheduled_date, start_time, id"
        ).fetchall()
        return [_placement_from_row(r) for r in rows]

    def has_commitment(self, day: date) -> bool:
        """Return True if the daily commitment is placed on the date."""
        r = self.conn.execute(
            "SELECT 1 FROM placements WHERE scheduled_date=? AND kind='commitment'",
            (day.isoformat(),),
        ).fetchone()
        return r is not None

    def insert_placement(
        self, kind: PlacementKind, task_id: int | None, day: date, start: int, end: int
    ) -> Placement:
        """Insert a placement for a task or for the daily commitment."""
        cur = self.conn.execute(
            """
            INSERT INTO placements(kind, task_id, scheduled_date, start_time, end_time, duration_minutes)
            VALUES(?, ?, ?, ?, ?, ?)
            """,
            (
                kind.value,
                task_id,
                day.isoformat(),
                minutes_to_hhmm(start),
                minutes_to_hhmm(end),
                end - start,
            ),
        )
        return Placement(
            id=int(cur.lastrowid),
            kind=kind,
            task_id=task_id,
            date=day,
            start=start,
            end=end,
            duration_minutes=end - start,
        )

    def move_placement(self, placement_id: int, start: int, end: int) -> None:
        """Change a placement's start and end on the same date."""
        self.conn.execute(
            "UPDATE placements SET start_time=?, end_time=? WHERE id=?",
            (minutes_to_hhmm(start), minutes_to_hhmm(end), placement_id),
        )

    def delete_placement(self, placement_id: int) -> None:
        """Delete a placement."""
        self.conn.execute("DELETE FROM placements WHERE id=?", (placement_id,))

    def clear_placements(self) -> int:
        """Delete every placement and return how many were removed."""
        cur = self.conn.execute("DELETE FROM placements")
        return cur.rowcount

    def schedule_entries(self, day: date | None = None) -> list[ScheduleEntry]:
        """List placements joined with task name, priority and status.

        Commitment placements surface as a synthetic "Daily commitment" entry.
        """
        query = """
            SELECT p.*, t.name AS task_name, t.priority, t.status
            FROM placements p
            LEFT JOIN tasks t ON p.task_id = t.id
        """
        params: tuple[str, ...] = ()
        if day is not None:
            query += " WHERE p.scheduled_date = ?"
            params = (day.isoformat(),)
        query += " ORDER BY p.scheduled_date, p.start_time, p.id"
        rows = self.conn.execute(query, params).fetchall()
        return [_entry_from_row(r) for r in rows]

    # ---------- Holidays ----------
    def list_holidays(self) -> list[Holiday]:
        """List all holidays by date."""
        rows = self.conn.execute("SELECT * FROM holidays ORDER BY holiday_date, id").fetchall()
        return [_holiday_from_row(r) for r in rows]

    def get_holiday(self, holiday_id: int) -> Holiday | None:
        """Get a holiday by id, or None."""
        r = self.conn.execute("SELECT * FROM holidays WHERE id=?", (holiday_id,)).fetchone()
        return _holiday_from_row(r) if r else None

    def find_holiday(self, day: date, name: str) -> Holiday | None:
        """Find a holiday by exact date and name."""
        r = self.conn.execute(
            "SELECT * FROM holidays WHERE holiday_date=? AND name=?",
            (day.isoformat(), name),
        ).fetchone()
        return _holiday_from_row(r) if r else None

    def insert_holiday(self, day: date, name: str, recurring: bool) -> Holiday:
        """Insert a holiday and return it."""
        cur = self.conn.execute(
            "INSERT INTO holidays(holiday_date, name, recurring) VALUES(?, ?, ?)",
            (day.isoformat(), name, 1 if recurring else 0),
        )
        return Holiday(id=int(cur.lastrowid), date=day, name=name, recurring=recurring)

    def delete_holiday(self, holiday_id: int) -> bool:
        """Delete a holiday. Returns False if missing."""
        cur = self.conn.execute("DELETE FROM holidays WHERE id=?", (holiday_id,))
        return cur.rowcount > 0


def _task_from_row(r: sqlite3.Row) -> Task:
    return Task(
        id=r["id"],
        name=r["name"],
        priority=Priority(r["priority"]),
        deadline=date.fromisoformat(r["deadline"]),
        estimated_duration=r["estimated_duration"],
        actual_duration=r["actual_duration"],
        status=TaskStatus(r["status"]),
    )


def _placement_from_row(r: sqlite3.Row) -> Placement:
    return Placement(
        id=r["id"],
        kind=PlacementKind(r["kind"]),
        task_id=r["task_id"],
        date=date.fromisoformat(r["scheduled_date"]),
        start=hhmm_to_minutes(r["start_time"]),
        end=hhmm_to_minutes(r["end_time"]),
        duration_minutes=r["duration_minutes"],
    )


def _entry_from_row(r: sqlite3.Row) -> ScheduleEntry:
    kind = PlacementKind(r["kind"])
    if kind is PlacementKind.COMMITMENT:
        task_name, priority, status = COMMITMENT_NAME, None, None
    else:
        task_name = r["task_name"]
        priority = Priority(r["priority"])
        status = TaskStatus(r["status"])
    return ScheduleEntry(
        id=r["id"],
        kind=kind,
        date=date.fromisoformat(r["scheduled_date"]),
        start=hhmm_to_minutes(r["start_time"]),
        end=hhmm_to_minutes(r["end_time"]),
        duration_minutes=r["duration_minutes"],
        task_id=r["task_id"],
        task_name=task_name,
        priority=priority,
        status=status,
    )


def _holiday_from_row(r: sqlite3.Row) -> Holiday:
    return Holiday(
        id=r["id"],
        date=date.fromisoformat(r["holiday_date"]),
        name=r["name"],
        recurring=bool(r["recurring"]),
    )
