"""Schedule API endpoints."""

import asyncio
import logging
from datetime import date

from fastapi import APIRouter, HTTPException

from task_calendar.api.models import RescheduleResponse, ScheduleEntryResponse
from task_calendar.errors import TransientFailure
from task_calendar.factory import get_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/schedules", response_model=list[ScheduleEntryResponse])
async def list_schedule() -> list[ScheduleEntryResponse]:
    """List every placement ordered by date and start time."""
    service = get_service()
    try:
        entries = await asyncio.to_thread(service.list_schedule)
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error listing schedule: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch schedules") from e
    return [ScheduleEntryResponse.from_entry(entry) for entry in entries]


@router.get("/schedules/{day}", response_model=list[ScheduleEntryResponse])
async def list_schedule_for_date(day: date) -> list[ScheduleEntryResponse]:
    """List placements on one date (YYYY-MM-DD) ordered by start time."""
    service = get_service()
    try:
        entries = await asyncio.to_thread(service.list_schedule, day)
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error listing schedule for {day}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch day schedules") from e
    return [ScheduleEntryResponse.from_entry(entry) for entry in entries]


@router.post("/reschedule", response_model=RescheduleResponse)
async def reschedule() -> RescheduleResponse:
    """Clear the schedule and place every open task again."""
    service = get_service()
    try:
        outcome = await asyncio.to_thread(service.reschedule_all)
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error rescheduling: {e}")
        raise HTTPException(status_code=500, detail="Failed to reschedule tasks") from e
    return RescheduleResponse(
        message="All tasks rescheduled successfully",
        cleared=outcome.cleared,
        commitments=outcome.commitments,
        placed=outcome.placed,
        unplaced=outcome.unplaced,
        relocated=outcome.relocated,
    )
