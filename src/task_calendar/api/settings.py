"""Settings API endpoints."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException

from task_calendar.api.models import SettingsModel
from task_calendar.errors import TransientFailure, ValidationError
from task_calendar.factory import get_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/settings", response_model=SettingsModel)
async def get_settings() -> SettingsModel:
    """Get work settings."""
    service = get_service()
    try:
        settings = await asyncio.to_thread(service.get_settings)
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error reading settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch settings") from e
    return SettingsModel.from_settings(settings)


@router.put("/settings", response_model=SettingsModel)
async def put_settings(request: SettingsModel) -> SettingsModel:
    """Replace work settings.

    Existing placements are not moved; call POST /api/reschedule to apply
    new hours or a new daily commitment to the whole schedule.
    """
    service = get_service()
    try:
        settings = await asyncio.to_thread(
            service.put_settings,
            request.buffer_minutes,
            request.daily_work_minutes,
            request.work_start_hour,
            request.work_end_hour,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error saving settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to save settings") from e
    return SettingsModel.from_settings(settings)
