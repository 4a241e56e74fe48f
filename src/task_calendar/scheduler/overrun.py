"""Shift or relocate same-day work after a task ran over its estimate."""

import logging
from dataclasses import dataclass, field

from task_calendar.scheduler.calendar import minutes_to_hhmm
from task_calendar.scheduler.placement import ScheduleContext, relocate
from task_calendar.store.repository import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class OverrunOutcome:
    """What one overrun pass changed.

    ``shifted`` and ``dropped`` hold placement ids, ``relocated`` holds task ids.
    """

    shifted: list[int] = field(default_factory=list)
    relocated: list[int] = field(default_factory=list)
    dropped: list[int] = field(default_factory=list)


def handle_overrun(
    task_id: int,
    actual_duration: int,
    estimated_duration: int,
    store: ScheduleStore,
    ctx: ScheduleContext,
) -> OverrunOutcome:
    """Push later placements on the overrun task's date by the overrun.

    Every placement starting at or after the overrun task's placement end
    is shifted by ``actual - estimated`` minutes. A task placement whose
    shifted end would leave the working window is relocated to a later day
    instead; a daily commitment in that position is dropped for the day.

    This is a single pass. A shift is not re-checked against the placements
    after it, and free gaps between later placements do not absorb any of
    the overrun.

    Returns:
        Placements shifted or dropped and tasks relocated
    """
    outcome = OverrunOutcome()
    overrun = actual_duration - estimated_duration
    if overrun <= 0:
        return outcome

    placements = store.placements_for_task(task_id)
    if not placements:
        logger.debug(f"Task {task_id} has no placement, nothing to shift")
        return outcome
    current = placements[0]

    _, window_end = ctx.window
    later = [
        p
        for p in store.placements_on(current.date)
        if p.id != current.id and p.start >= current.end
    ]
    for placement in later:
        new_start = placement.start + overrun
        new_end = placement.end + overrun
        if new_end <= window_end:
            store.move_placement(placement.id, new_start, new_end)
            outcome.shifted.append(placement.id)
            logger.info(
                f"[Scheduler] Shifted placement {placement.id} on {placement.date} to "
                f"{minutes_to_hhmm(new_start)}-{minutes_to_hhmm(new_end)}"
            )
        elif placement.is_commitment:
            # the commitment belongs to its date and is never moved to another day
            store.delete_placement(placement.id)
            outcome.dropped.append(placement.id)
            logger.info(f"[Scheduler] Dropped daily commitment on {placement.date} after overrun")
        else:
            relocate(placement, store, ctx)
            outcome.relocated.append(placement.task_id)
    return outcome
