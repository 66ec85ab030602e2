"""
Single-point availability decision for a craftsman.

The check runs in two phases: working hours first, then conflicts with booked
appointments. Appointments are only fetched when the first phase passes.
"""

import logging
from typing import Callable, Optional, Sequence, Union

from pendulum import Date, DateTime

from .conflicts import ConflictDetector
from .models import (
    Appointment,
    AvailabilityCheck,
    TimeRange,
    WorkingHours,
    minute_of_day,
    weekday_name,
)

logger = logging.getLogger(__name__)


class AvailabilityChecker:
    """
    Answers whether a craftsman can take an appointment on a date/time.

    Stateless: every call works only on the data passed in.
    """

    def __init__(self, conflict_detector: Optional[ConflictDetector] = None):
        self.conflict_detector = conflict_detector or ConflictDetector()

    def check(
        self,
        craftsman_name: str,
        working_hours: Optional[WorkingHours],
        day: Union[Date, DateTime],
        requested_at: Optional[DateTime],
        fetch_appointments: Callable[[], Sequence[Appointment]]
    ) -> AvailabilityCheck:
        """
        Run both phases of the availability check.

        Args:
            craftsman_name: Used in the human-readable reason
            working_hours: Weekly working hours (None means no working day)
            day: Requested calendar date
            requested_at: Requested moment, or None to check the whole day
            fetch_appointments: Called once, only if the working-hours phase passes

        Returns:
            AvailabilityCheck describing the decision
        """
        rejection = self.check_working_hours(craftsman_name, working_hours, day, requested_at)
        if rejection is not None:
            return rejection

        day_ranges = working_hours.ranges_for(weekday_name(day)) if working_hours else None
        return self.check_conflicts(
            craftsman_name,
            requested_at,
            list(fetch_appointments()),
            working_hours=day_ranges
        )

    def check_working_hours(
        self,
        craftsman_name: str,
        working_hours: Optional[WorkingHours],
        day: Union[Date, DateTime],
        requested_at: Optional[DateTime] = None
    ) -> Optional[AvailabilityCheck]:
        """
        Working-hours phase.

        Returns an unavailable result, or None when the request lies inside
        the craftsman's working window.
        """
        day_name = weekday_name(day)

        if working_hours is None or not working_hours.works_on(day_name):
            return AvailabilityCheck(
                available=False,
                reason=f"{craftsman_name} does not work on {day_name}"
            )

        if requested_at is None:
            return None

        day_ranges = working_hours.ranges_for(day_name)
        first_range = working_hours.first_range(day_name)
        time_range = TimeRange.parse(first_range)
        if time_range is None:
            logger.warning(
                "Unparseable working hours %r for %s on %s", first_range, craftsman_name, day_name
            )
            return AvailabilityCheck(
                available=False,
                reason=f"{craftsman_name} has an invalid time range format on {day_name}",
                working_hours=day_ranges
            )

        if not time_range.contains_minute(minute_of_day(requested_at)):
            return AvailabilityCheck(
                available=False,
                reason=(
                    f"{craftsman_name} does not work at {requested_at.format('HH:mm')} "
                    f"on {day_name} (outside working hours {time_range})"
                ),
                working_hours=day_ranges
            )

        return None

    def check_conflicts(
        self,
        craftsman_name: str,
        requested_at: Optional[DateTime],
        appointments: Sequence[Appointment],
        working_hours: Optional[Sequence[str]] = None
    ) -> AvailabilityCheck:
        """
        Conflict phase.

        With a requested moment only bookings covering that moment count.
        Without one, any booking on the day makes the day unavailable.
        """
        if requested_at is None:
            booked = bool(appointments)
        else:
            booked = self.conflict_detector.is_booked_at(requested_at, appointments)

        day_ranges = list(working_hours) if working_hours is not None else None

        if booked:
            at_time = f" at {requested_at.format('HH:mm')}" if requested_at is not None else ""
            return AvailabilityCheck(
                available=False,
                reason=f"{craftsman_name} has conflicting appointments{at_time}",
                working_hours=day_ranges,
                appointments=list(appointments)
            )

        return AvailabilityCheck(
            available=True,
            working_hours=day_ranges,
            appointments=list(appointments)
        )
