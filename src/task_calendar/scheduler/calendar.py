"""Working-day calendar: weekends, holidays and the daily working window."""

from collections.abc import Iterable
from datetime import date, timedelta

from task_calendar.models import Holiday, Settings

SATURDAY = 5
SUNDAY = 6


class HolidaySet:
    """Holiday lookup for one operation.

    Exact holidays match a single date. Recurring holidays match the same
    month and day in every year, so no expansion window is needed.
    """

    def __init__(self, holidays: Iterable[Holiday] = ()) -> None:
        """Index holidays by exact date and by (month, day)."""
        self._exact: set[date] = set()
        self._recurring: set[tuple[int, int]] = set()
        for holiday in holidays:
            if holiday.recurring:
                self._recurring.add((holiday.date.month, holiday.date.day))
            else:
                self._exact.add(holiday.date)

    def __contains__(self, day: object) -> bool:
        if not isinstance(day, date):
            return False
        return day in self._exact or (day.month, day.day) in self._recurring

    def __len__(self) -> int:
        return len(self._exact) + len(self._recurring)


def is_workable_day(day: date, holidays: HolidaySet) -> bool:
    """Return False for Saturdays, Sundays and holidays."""
    if day.weekday() in (SATURDAY, SUNDAY):
        return False
    return day not in holidays


def working_window(settings: Settings) -> tuple[int, int]:
    """Convert configured work hours into minute-of-day bounds (9 -> 540)."""
    return settings.work_start_hour * 60, settings.work_end_hour * 60


def iter_days(start: date, end: date) -> Iterable[date]:
    """Yield every date from start to end inclusive."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def minutes_to_hhmm(minutes: int) -> str:
    """Format minute-of-day as HH:MM (570 -> "09:30")."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def hhmm_to_minutes(value: str) -> int:
    """Parse HH:MM into minute-of-day ("09:30" -> 570)."""
    hours, _, mins = value.partition(":")
    try:
        return int(hours) * 60 + int(mins)
    except ValueError as e:
        raise ValueError(f"Invalid time: {value!r}") from e
