"""Domain models for TaskCalendar."""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Priority(str, Enum):
    """Task priority. Declaration order is the scheduling order."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: High < Medium < Low."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 1, Priority.MEDIUM: 2, Priority.LOW: 3}


class TaskStatus(str, Enum):
    """Task lifecycle state."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PlacementKind(str, Enum):
    """What a placement reserves time for."""

    TASK = "task"
    COMMITMENT = "commitment"


@dataclass(frozen=True)
class Task:
    """A unit of work to be placed on the calendar."""

    id: int
    name: str
    priority: Priority
    deadline: date
    estimated_duration: int  # minutes
    actual_duration: int = 0  # minutes
    status: TaskStatus = TaskStatus.PENDING


@dataclass(frozen=True)
class Placement:
    """A reserved interval on a single date.

    Either a task placement (``task_id`` set) or the recurring daily
    commitment (``task_id`` is None). Times are minutes from midnight.
    """

    id: int
    kind: PlacementKind
    task_id: int | None
    date: date
    start: int
    end: int
    duration_minutes: int

    def __post_init__(self) -> None:
        """Reject a kind/task_id mismatch."""
        if (self.kind is PlacementKind.TASK) != (self.task_id is not None):
            raise ValueError(f"Placement {self.id}: kind {self.kind.value} with task_id {self.task_id}")

    @property
    def is_commitment(self) -> bool:
        """True for the recurring daily commitment block."""
        return self.kind is PlacementKind.COMMITMENT


@dataclass(frozen=True)
class Settings:
    """User-editable work settings (singleton)."""

    buffer_minutes: int = 0
    daily_work_minutes: int = 0  # 0 disables the daily commitment
    work_start_hour: int = 9
    work_end_hour: int = 18


@dataclass(frozen=True)
class Holiday:
    """A non-working date. Recurring holidays repeat every year on month/day."""

    id: int
    date: date
    name: str
    recurring: bool = False


@dataclass(frozen=True)
class ScheduleEntry:
    """Placement joined with its task for read-only schedule views."""

    id: int
    kind: PlacementKind
    date: date
    start: int
    end: int
    duration_minutes: int
    task_id: int | None
    task_name: str
    priority: Priority | None
    status: TaskStatus | None
