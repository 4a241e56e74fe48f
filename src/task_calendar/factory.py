"""Dependency injection factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from task_calendar.config import Config
from task_calendar.scheduler.placement import PlacementPolicy
from task_calendar.service import SchedulerService
from task_calendar.store.db import Database
from task_calendar.store.holiday_file import read_holiday_file

logger = logging.getLogger(__name__)

# Global config instance for dependency injection
_config: Config | None = None

# Global scheduler service
_service: SchedulerService | None = None


def get_config() -> Config:
    """Get or create Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_database() -> Database:
    """Create Database for the configured path and retry policy."""
    config = get_config()
    return Database(
        config.database_path,
        busy_timeout_seconds=config.busy_timeout_seconds,
        max_conflict_retries=config.max_conflict_retries,
    )


def get_service() -> SchedulerService:
    """Get or create SchedulerService singleton with a migrated database."""
    global _service
    if _service is None:
        database = get_database()
        database.migrate()
        _service = SchedulerService(database, PlacementPolicy.from_config(get_config()))
    return _service


def load_holiday_file(service: SchedulerService, config: Config) -> int:
    """Import holidays from the configured seed file, if any.

    Returns:
        Number of holidays added
    """
    if not config.holidays_file:
        return 0
    holidays = read_holiday_file(config.holidays_file)
    added = service.import_holidays(holidays)
    logger.info(f"[Factory] Imported {added} of {len(holidays)} holidays from {config.holidays_file}")
    return added


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle - startup and shutdown."""
    logger.info("[Lifespan] Preparing database...")
    service = get_service()
    load_holiday_file(service, get_config())
    try:
        yield
    finally:
        logger.info("[Lifespan] Shutting down")


def create_app() -> FastAPI:
    """Create FastAPI application (composition root)."""
    from task_calendar.api.holidays import router as holidays_router
    from task_calendar.api.schedules import router as schedules_router
    from task_calendar.api.settings import router as settings_router
    from task_calendar.api.tasks import router as tasks_router

    app = FastAPI(
        title="TaskCalendar",
        description="Place tasks into a working-day calendar and keep the schedule consistent",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(tasks_router, prefix="/api")
    app.include_router(schedules_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(holidays_router, prefix="/api")

    return app
