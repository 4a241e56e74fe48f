"""Placement engine: find and reserve a slot for a task across a horizon."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from task_calendar.config import Config
from task_calendar.models import Placement, PlacementKind, Settings, Task
from task_calendar.scheduler.calendar import (
    HolidaySet,
    is_workable_day,
    iter_days,
    minutes_to_hhmm,
    working_window,
)
from task_calendar.scheduler.slots import find_slot
from task_calendar.store.repository import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementPolicy:
    """Fixed scheduling policy values."""

    task_buffer_minutes: int = 30
    deadline_lead_days: int = 3
    relocation_horizon_days: int = 30
    reschedule_horizon_days: int = 30

    @classmethod
    def from_config(cls, config: Config) -> "PlacementPolicy":
        """Build policy from application config."""
        return cls(
            task_buffer_minutes=config.task_buffer_minutes,
            deadline_lead_days=config.deadline_lead_days,
            relocation_horizon_days=config.relocation_horizon_days,
            reschedule_horizon_days=config.reschedule_horizon_days,
        )


@dataclass(frozen=True)
class ScheduleContext:
    """Everything a scheduling call needs, loaded once per operation."""

    settings: Settings
    holidays: HolidaySet
    today: date
    policy: PlacementPolicy = PlacementPolicy()

    @property
    def window(self) -> tuple[int, int]:
        """Working window in minutes from midnight."""
        return working_window(self.settings)


def task_horizon(task: Task, ctx: ScheduleContext) -> tuple[date, date]:
    """Return the inclusive date range searched for a new task.

    Work should finish ``deadline_lead_days`` before the deadline. When that
    leaves no room after today, the search runs up to the deadline itself.
    """
    end = task.deadline - timedelta(days=ctx.policy.deadline_lead_days)
    if end <= ctx.today:
        end = task.deadline
    return ctx.today, end


def required_minutes(task: Task, ctx: ScheduleContext) -> int:
    """Estimated duration plus the per-task and configured buffers."""
    return task.estimated_duration + ctx.policy.task_buffer_minutes + ctx.settings.buffer_minutes


def ensure_commitment(store: ScheduleStore, day: date, ctx: ScheduleContext) -> Placement | None:
    """Insert the daily commitment on ``day`` if enabled and missing.

    The block takes the earliest free slot of the working window, which is
    the window start unless something already occupies it.
    """
    minutes = ctx.settings.daily_work_minutes
    if minutes <= 0 or store.has_commitment(day):
        return None
    busy = [(p.start, p.end) for p in store.placements_on(day)]
    slot = find_slot(busy, ctx.window, minutes)
    if slot is None:
        logger.debug(f"No room for {minutes}min daily commitment on {day}")
        return None
    return store.insert_placement(PlacementKind.COMMITMENT, None, day, *slot)


def find_first_slot(
    store: ScheduleStore, start: date, end: date, duration: int, ctx: ScheduleContext
) -> tuple[date, int, int] | None:
    """Scan workable days from start to end and return the first fitting slot.

    The daily commitment is ensured on every workable day visited, so it is
    always placed ahead of task work.
    """
    for day in iter_days(start, end):
        if not is_workable_day(day, ctx.holidays):
            continue
        ensure_commitment(store, day, ctx)
        busy = [(p.start, p.end) for p in store.placements_on(day)]
        slot = find_slot(busy, ctx.window, duration)
        if slot is not None:
            return day, slot[0], slot[1]
        logger.debug(f"No {duration}min slot on {day}")
    return None


def place_task(task: Task, store: ScheduleStore, ctx: ScheduleContext) -> Placement | None:
    """Place a task at the earliest fitting slot of its horizon.

    Best effort: returns None and leaves the task unplaced when nothing fits.
    """
    start, end = task_horizon(task, ctx)
    duration = required_minutes(task, ctx)
    found = find_first_slot(store, start, end, duration, ctx)
    if found is None:
        logger.warning(
            f"[Scheduler] Task {task.id} left unplaced: no {duration}min slot "
            f"between {start} and {end}"
        )
        return None
    day, slot_start, slot_end = found
    placement = store.insert_placement(PlacementKind.TASK, task.id, day, slot_start, slot_end)
    logger.info(
        f"[Scheduler] Placed task {task.id} on {day} "
        f"{minutes_to_hhmm(slot_start)}-{minutes_to_hhmm(slot_end)}"
    )
    return placement


def relocate(placement: Placement, store: ScheduleStore, ctx: ScheduleContext) -> Placement | None:
    """Move a task placement to the first free slot after its current date.

    The placement is deleted first. The search starts the day after the later
    of its date and today, and runs ``relocation_horizon_days`` forward with
    the same duration. Returns None if no slot was found.
    """
    store.delete_placement(placement.id)
    start = max(placement.date, ctx.today) + timedelta(days=1)
    end = start + timedelta(days=ctx.policy.relocation_horizon_days)
    found = find_first_slot(store, start, end, placement.duration_minutes, ctx)
    if found is None:
        logger.warning(
            f"[Scheduler] Task {placement.task_id} removed from {placement.date}, "
            f"no slot until {end}"
        )
        return None
    day, slot_start, slot_end = found
    moved = store.insert_placement(PlacementKind.TASK, placement.task_id, day, slot_start, slot_end)
    logger.info(
        f"[Scheduler] Relocated task {placement.task_id} from {placement.date} to {day} "
        f"{minutes_to_hhmm(slot_start)}-{minutes_to_hhmm(slot_end)}"
    )
    return moved
