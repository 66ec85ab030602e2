"""
Helpers shared by the repository adapters to narrow appointment lists.
"""

from typing import Iterable, List

from pendulum import Date, DateTime

from ..domain.models import Appointment


def appointments_on_day(appointments: Iterable[Appointment], day: Date) -> List[Appointment]:
    """Appointments starting on a calendar day, ordered by start time."""
    return sorted(
        (a for a in appointments if a.scheduled_at.date() == day),
        key=lambda a: a.scheduled_at
    )


def appointments_near(
    appointments: Iterable[Appointment],
    center: DateTime,
    window_hours: int = 2
) -> List[Appointment]:
    """
    Appointments whose interval overlaps ``center`` ± ``window_hours``.
    """
    window_start = center.subtract(hours=window_hours)
    window_end = center.add(hours=window_hours)

    return [
        a for a in appointments
        if a.scheduled_at <= window_end and a.end >= window_start
    ]
