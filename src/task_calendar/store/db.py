"""SQLite connection, schema and serialized transactions."""

import logging
import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import closing, contextmanager
from pathlib import Path
from typing import TypeVar

from task_calendar.errors import ConcurrencyConflict, TransientFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    priority TEXT NOT NULL CHECK (priority IN ('high', 'medium', 'low')),
    deadline TEXT NOT NULL, -- YYYY-MM-DD
    estimated_duration INTEGER NOT NULL CHECK (estimated_duration > 0),
    actual_duration INTEGER NOT NULL DEFAULT 0 CHECK (actual_duration >= 0),
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'in_progress', 'completed')),
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS placements (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL CHECK (kind IN ('task', 'commitment')),
    task_id INTEGER REFERENCES tasks(id) ON DELETE CASCADE,
    scheduled_date TEXT NOT NULL, -- YYYY-MM-DD
    start_time TEXT NOT NULL, -- HH:MM
    end_time TEXT NOT NULL, -- HH:MM
    duration_minutes INTEGER NOT NULL,
    CHECK ((kind = 'task') = (task_id IS NOT NULL))
);

CREATE INDEX IF NOT EXISTS idx_placements_date ON placements(scheduled_date, start_time);
CREATE INDEX IF NOT EXISTS idx_placements_task ON placements(task_id);
CREATE UNIQUE INDEX IF NOT EXISTS uq_placements_commitment
    ON placements(scheduled_date) WHERE kind = 'commitment';

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS holidays (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    holiday_date TEXT NOT NULL, -- YYYY-MM-DD
    name TEXT NOT NULL,
    recurring INTEGER NOT NULL DEFAULT 0
);
"""

DEFAULT_SETTINGS = {
    "buffer_minutes": "0",
    "daily_work_minutes": "0",
    "work_start_hour": "9",
    "work_end_hour": "18",
}

_CONFLICT_MESSAGES = ("database is locked", "database is busy")


def _is_conflict(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return any(text in message for text in _CONFLICT_MESSAGES)


class Database:
    """SQLite database holding tasks, placements, settings and holidays.

    Every transaction is opened with BEGIN IMMEDIATE, which takes the
    database write lock before the first read. Read-decide-write sequences
    are therefore serialized against each other, bulk rebuilds included.
    """

    def __init__(
        self,
        path: str | Path,
        busy_timeout_seconds: float = 5.0,
        max_conflict_retries: int = 5,
        retry_backoff_seconds: float = 0.05,
    ) -> None:
        """Initialize with database file path and conflict retry policy."""
        self.path = Path(path)
        self._busy_timeout = busy_timeout_seconds
        self._max_retries = max_conflict_retries
        self._backoff = retry_backoff_seconds

    def connect(self) -> sqlite3.Connection:
        """Open a connection in autocommit mode with foreign keys enabled."""
        conn = sqlite3.connect(
            self.path,
            timeout=self._busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    def migrate(self) -> None:
        """Create tables and insert default settings. Idempotent."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self.connect()) as conn:
            conn.executescript(SCHEMA)
            conn.executemany(
                "INSERT OR IGNORE INTO settings(key, value) VALUES(?, ?)",
                DEFAULT_SETTINGS.items(),
            )
        logger.info(f"[Database] Schema ready at {self.path}")

    @contextmanager
    def transaction(self, immediate: bool = True) -> Iterator[sqlite3.Connection]:
        """Run a block inside one transaction.

        Write transactions (``immediate``) take the write lock up front and are
        serialized against each other. Read-only blocks use a deferred
        transaction and run alongside a writer.

        Raises:
            ConcurrencyConflict: If the write lock could not be taken or the
                commit was rejected because another writer holds the database
        """
        with closing(self.connect()) as conn:
            try:
                conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            except sqlite3.OperationalError as e:
                if _is_conflict(e):
                    raise ConcurrencyConflict(str(e)) from e
                raise
            try:
                yield conn
                conn.execute("COMMIT")
            except sqlite3.OperationalError as e:
                conn.execute("ROLLBACK")
                if _is_conflict(e):
                    raise ConcurrencyConflict(str(e)) from e
                raise
            except BaseException:
                conn.execute("ROLLBACK")
                raise

    def run(self, operation: Callable[[sqlite3.Connection], T], immediate: bool = True) -> T:
        """Run ``operation`` in a transaction, retrying on conflicts.

        The whole operation is re-executed on each attempt, so its reads see
        whatever the competing writer committed.

        Raises:
            TransientFailure: If every attempt hit a conflict
        """
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                with self.transaction(immediate) as conn:
                    return operation(conn)
            except ConcurrencyConflict as e:
                if attempt == attempts:
                    raise TransientFailure(
                        f"Gave up after {attempts} conflicting attempts: {e}"
                    ) from e
                logger.warning(f"[Database] Conflict on attempt {attempt}/{attempts}, retrying: {e}")
                time.sleep(self._backoff * attempt)
        raise AssertionError("unreachable")
