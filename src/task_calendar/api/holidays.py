"""Holiday API endpoints."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException

from task_calendar.api.models import CreateHolidayRequest, HolidayResponse
from task_calendar.errors import NotFoundError, TransientFailure, ValidationError
from task_calendar.factory import get_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/holidays", response_model=list[HolidayResponse])
async def list_holidays() -> list[HolidayResponse]:
    """List holidays ordered by date."""
    service = get_service()
    try:
        holidays = await asyncio.to_thread(service.list_holidays)
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error listing holidays: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch holidays") from e
    return [HolidayResponse.from_holiday(holiday) for holiday in holidays]


@router.post("/holidays", response_model=HolidayResponse)
async def add_holiday(request: CreateHolidayRequest) -> HolidayResponse:
    """Add a holiday. Work already placed on it moves to later days."""
    service = get_service()
    try:
        holiday = await asyncio.to_thread(
            service.add_holiday, request.holiday_date, request.name, request.recurring
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error adding holiday: {e}")
        raise HTTPException(status_code=500, detail="Failed to add holiday") from e
    return HolidayResponse.from_holiday(holiday)


@router.delete("/holidays/{holiday_id}")
async def delete_holiday(holiday_id: int) -> dict[str, str]:
    """Delete a holiday. The schedule is left as it is."""
    service = get_service()
    try:
        await asyncio.to_thread(service.delete_holiday, holiday_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error deleting holiday {holiday_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete holiday") from e
    return {"message": "Holiday deleted successfully"}
