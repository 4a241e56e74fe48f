"""Earliest-fit free slot search within a single day."""

from collections.abc import Sequence

Interval = tuple[int, int]


def find_slot(busy: Sequence[Interval], window: Interval, duration: int) -> Interval | None:
    """Find the earliest free interval of ``duration`` minutes inside ``window``.

    Args:
        busy: Busy (start, end) intervals, sorted by start and non-overlapping
        window: Working window (start, end) in minutes from midnight
        duration: Required length in minutes

    Returns:
        (start, end) of the first gap that fits, or None if the day is full
    """
    window_start, window_end = window
    cursor = window_start
    for start, end in busy:
        if start - cursor >= duration:
            return cursor, cursor + duration
        cursor = max(cursor, end)
    if window_end - cursor >= duration:
        return cursor, cursor + duration
    return None
