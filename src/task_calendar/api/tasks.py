"""Task API endpoints."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException

from task_calendar.api.models import (
    CompleteTaskRequest,
    CompleteTaskResponse,
    CreateTaskRequest,
    StartTaskResponse,
    TaskResponse,
    UpdateTaskRequest,
)
from task_calendar.errors import NotFoundError, TransientFailure, ValidationError
from task_calendar.factory import get_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks() -> list[TaskResponse]:
    """List all tasks ordered by priority, then deadline."""
    service = get_service()
    try:
        tasks = await asyncio.to_thread(service.list_tasks)
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error listing tasks: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch tasks") from e
    return [TaskResponse.from_task(task) for task in tasks]


@router.post("/tasks", response_model=TaskResponse)
async def create_task(request: CreateTaskRequest) -> TaskResponse:
    """Create a task and place it on the calendar.

    Placement is best effort: a task with no free slot before its deadline
    is created but stays unplaced. Query the schedule to find out.

    Args:
        request: Task fields

    Returns:
        The created task

    Raises:
        HTTPException: 400 on invalid input, 503 on persistent contention
    """
    service = get_service()
    try:
        task = await asyncio.to_thread(
            service.create_task,
            request.name,
            request.priority,
            request.deadline,
            request.estimated_duration,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error creating task: {e}")
        raise HTTPException(status_code=500, detail="Failed to create task") from e
    return TaskResponse.from_task(task)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int) -> TaskResponse:
    """Get a single task."""
    service = get_service()
    try:
        task = await asyncio.to_thread(service.get_task, task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error reading task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch task") from e
    return TaskResponse.from_task(task)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(task_id: int, request: UpdateTaskRequest) -> TaskResponse:
    """Edit a task.

    When actual_duration is sent and exceeds the estimate, later work on the
    same day is shifted or moved to a later day.

    Args:
        task_id: Task ID
        request: Fields to change

    Returns:
        The updated task

    Raises:
        HTTPException: 404 if the task does not exist, 400 on invalid input
    """
    service = get_service()
    fields = request.model_dump(exclude_none=True)
    try:
        task = await asyncio.to_thread(service.update_task, task_id, **fields)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error updating task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update task") from e
    return TaskResponse.from_task(task)


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: int) -> dict[str, str]:
    """Delete a task and its placements."""
    service = get_service()
    try:
        await asyncio.to_thread(service.delete_task, task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error deleting task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete task") from e
    return {"message": "Task deleted successfully"}


@router.post("/tasks/{task_id}/start", response_model=StartTaskResponse)
async def start_task(task_id: int) -> StartTaskResponse:
    """Start the stopwatch on a pending task."""
    service = get_service()
    try:
        _task, started_at = await asyncio.to_thread(service.start_task, task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error starting task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to start task") from e
    return StartTaskResponse(message="Task started", task_id=task_id, start_time=started_at)


@router.post("/tasks/{task_id}/cancel", response_model=TaskResponse)
async def cancel_task(task_id: int) -> TaskResponse:
    """Stop an in-progress task without recording a duration."""
    service = get_service()
    try:
        task = await asyncio.to_thread(service.cancel_task, task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error cancelling task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to cancel task") from e
    return TaskResponse.from_task(task)


@router.post("/tasks/{task_id}/complete", response_model=CompleteTaskResponse)
async def complete_task(task_id: int, request: CompleteTaskRequest) -> CompleteTaskResponse:
    """Complete a task with its measured duration.

    Returns:
        Actual duration and whether it overran the estimate
    """
    service = get_service()
    try:
        result = await asyncio.to_thread(service.complete_task, task_id, request.actual_duration)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except TransientFailure as e:
        raise HTTPException(status_code=503, detail="Schedule busy, try again") from e
    except Exception as e:
        logger.exception(f"Error completing task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to complete task") from e
    return CompleteTaskResponse(
        message="Task completed",
        actual_duration=result.actual_duration,
        time_overrun=result.time_overrun,
    )
