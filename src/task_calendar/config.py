"""Configuration for TaskCalendar."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration.

    Deployment and scheduling policy values. User-editable work settings
    (buffer, daily commitment, working hours) live in the database.
    """

    model_config = SettingsConfigDict(env_prefix="TASK_CALENDAR_")

    database_path: str = Field(default="task_calendar.sqlite3")
    holidays_file: str | None = Field(default=None)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    task_buffer_minutes: int = Field(default=30, ge=0)
    deadline_lead_days: int = Field(default=3, ge=0)
    relocation_horizon_days: int = Field(default=30, ge=1)
    reschedule_horizon_days: int = Field(default=30, ge=1)

    max_conflict_retries: int = Field(default=5, ge=0)
    busy_timeout_seconds: float = Field(default=5.0, gt=0)
