"""Rebuild the whole schedule and evict work from holidays."""

import logging
from dataclasses import dataclass, replace
from datetime import timedelta

from task_calendar.models import TaskStatus
from task_calendar.scheduler.calendar import HolidaySet, is_workable_day, iter_days
from task_calendar.scheduler.placement import (
    ScheduleContext,
    ensure_commitment,
    place_task,
    relocate,
)
from task_calendar.store.repository import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RescheduleOutcome:
    """Counts from one bulk reschedule."""

    cleared: int
    commitments: int
    placed: int
    unplaced: int
    relocated: int


def seed_commitments(store: ScheduleStore, ctx: ScheduleContext) -> int:
    """Place the daily commitment on every workable day of the reschedule horizon."""
    if ctx.settings.daily_work_minutes <= 0:
        return 0
    end = ctx.today + timedelta(days=ctx.policy.reschedule_horizon_days - 1)
    seeded = 0
    for day in iter_days(ctx.today, end):
        if is_workable_day(day, ctx.holidays) and ensure_commitment(store, day, ctx):
            seeded += 1
    return seeded


def relocate_holiday_placements(store: ScheduleStore, ctx: ScheduleContext) -> int:
    """Move task placements off holidays and drop commitments on holidays.

    Only placements dated today or later are touched. Placements of
    completed tasks stay where they are.

    Returns:
        Number of task placements relocated (found a new slot or not)
    """
    relocated = 0
    for placement in store.list_placements():
        if placement.date < ctx.today or placement.date not in ctx.holidays:
            continue
        if placement.is_commitment:
            store.delete_placement(placement.id)
            logger.info(f"[Scheduler] Dropped daily commitment on holiday {placement.date}")
            continue
        task = store.get_task(placement.task_id)
        if task is not None and task.status is TaskStatus.COMPLETED:
            continue
        relocate(placement, store, ctx)
        relocated += 1
    return relocated


def reschedule_all(store: ScheduleStore, ctx: ScheduleContext) -> RescheduleOutcome:
    """Clear every placement and place all open tasks again.

    Steps: clear placements, seed daily commitments over the reschedule
    horizon, place open tasks by priority then deadline, then relocate
    anything that landed on a holiday using a freshly loaded holiday set.
    """
    cleared = store.clear_placements()
    commitments = seed_commitments(store, ctx)

    tasks = sorted(store.list_open_tasks(), key=lambda t: (t.priority.rank, t.deadline, t.id))
    placed = 0
    for task in tasks:
        if place_task(task, store, ctx) is not None:
            placed += 1

    ctx = replace(ctx, holidays=HolidaySet(store.list_holidays()))
    relocated = relocate_holiday_placements(store, ctx)

    outcome = RescheduleOutcome(
        cleared=cleared,
        commitments=commitments,
        placed=placed,
        unplaced=len(tasks) - placed,
        relocated=relocated,
    )
    logger.info(f"[Scheduler] Rescheduled all tasks: {outcome}")
    return outcome
