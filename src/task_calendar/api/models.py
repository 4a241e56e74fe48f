"""API models for TaskCalendar."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from task_calendar.models import (
    Holiday,
    PlacementKind,
    Priority,
    ScheduleEntry,
    Settings,
    Task,
    TaskStatus,
)
from task_calendar.scheduler.calendar import minutes_to_hhmm


class CreateTaskRequest(BaseModel):
    """Request model for creating a task."""

    name: str = Field(min_length=1, max_length=200)
    priority: Priority
    deadline: date
    estimated_duration: int = Field(gt=0)  # minutes


class UpdateTaskRequest(BaseModel):
    """Request model for editing a task. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    priority: Priority | None = None
    deadline: date | None = None
    estimated_duration: int | None = Field(default=None, gt=0)
    status: TaskStatus | None = None
    actual_duration: int | None = Field(default=None, ge=0)


class CompleteTaskRequest(BaseModel):
    """Request model for completing a task."""

    actual_duration: int = Field(ge=0)  # minutes


class TaskResponse(BaseModel):
    """API response model for tasks."""

    id: int
    name: str
    priority: Priority
    deadline: date
    estimated_duration: int
    actual_duration: int
    status: TaskStatus

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Convert domain Task to response."""
        return cls(
            id=task.id,
            name=task.name,
            priority=task.priority,
            deadline=task.deadline,
            estimated_duration=task.estimated_duration,
            actual_duration=task.actual_duration,
            status=task.status,
        )


class StartTaskResponse(BaseModel):
    """API response model for starting a task."""

    message: str
    task_id: int
    start_time: datetime


class CompleteTaskResponse(BaseModel):
    """API response model for completing a task."""

    message: str
    actual_duration: int = Field(serialization_alias="actualDuration")
    time_overrun: bool = Field(serialization_alias="timeOverrun")


class ScheduleEntryResponse(BaseModel):
    """API response model for a schedule entry."""

    id: int
    kind: PlacementKind
    scheduled_date: date
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    duration_minutes: int
    task_id: int | None
    task_name: str
    priority: Priority | None
    status: TaskStatus | None

    @classmethod
    def from_entry(cls, entry: ScheduleEntry) -> "ScheduleEntryResponse":
        """Convert domain ScheduleEntry to response."""
        return cls(
            id=entry.id,
            kind=entry.kind,
            scheduled_date=entry.date,
            start_time=minutes_to_hhmm(entry.start),
            end_time=minutes_to_hhmm(entry.end),
            duration_minutes=entry.duration_minutes,
            task_id=entry.task_id,
            task_name=entry.task_name,
            priority=entry.priority,
            status=entry.status,
        )


class SettingsModel(BaseModel):
    """Request and response model for work settings."""

    buffer_minutes: int = Field(default=0, ge=0)
    daily_work_minutes: int = Field(default=0, ge=0)
    work_start_hour: int = Field(default=9, ge=0, le=23)
    work_end_hour: int = Field(default=18, ge=1, le=24)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SettingsModel":
        """Convert domain Settings to response."""
        return cls(
            buffer_minutes=settings.buffer_minutes,
            daily_work_minutes=settings.daily_work_minutes,
            work_start_hour=settings.work_start_hour,
            work_end_hour=settings.work_end_hour,
        )


class CreateHolidayRequest(BaseModel):
    """Request model for adding a holiday."""

    model_config = ConfigDict(populate_by_name=True)

    holiday_date: date = Field(alias="date")
    name: str = Field(min_length=1, max_length=200)
    recurring: bool = False


class HolidayResponse(BaseModel):
    """API response model for holidays."""

    id: int
    holiday_date: date = Field(serialization_alias="date")
    name: str
    recurring: bool

    @classmethod
    def from_holiday(cls, holiday: Holiday) -> "HolidayResponse":
        """Convert domain Holiday to response."""
        return cls(
            id=holiday.id,
            holiday_date=holiday.date,
            name=holiday.name,
            recurring=holiday.recurring,
        )


class RescheduleResponse(BaseModel):
    """API response model for a bulk reschedule."""

    message: str
    cleared: int
    commitments: int
    placed: int
    unplaced: int
    relocated: int
