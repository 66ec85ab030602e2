"""
Forward search for alternative appointment slots.

Pure domain logic: appointments are fetched through a callable supplied by the
caller, and "now" comes from an injectable clock so searches are reproducible.
"""

import logging
from typing import Callable, Iterator, List, Optional, Sequence

import pendulum
from pendulum import Date, DateTime

from .conflicts import ConflictDetector
from .models import Appointment, TimeRange, WorkingHours, weekday_name

logger = logging.getLogger(__name__)

AppointmentFetcher = Callable[[str, Date], Sequence[Appointment]]


class SlotFinder:
    """
    Finds the nearest free slots after a rejected appointment request.

    Algorithm:
    1. Walk forward day by day, starting on the requested date
    2. Skip days without a (parseable) working window
    3. Fetch the day's bookings once
    4. Generate candidates on full and half hours inside the window
    5. Drop past candidates, the rejected request itself and conflicting slots
    6. Stop as soon as enough slots are collected

    Both loops only move forward in time, so results come out sorted.
    """

    MINUTE_MARKS = (0, 30)

    def __init__(
        self,
        fetch_appointments: AppointmentFetcher,
        conflict_detector: Optional[ConflictDetector] = None,
        clock: Optional[Callable[[], DateTime]] = None,
        timezone: str = "Europe/Berlin"
    ):
        self._fetch_appointments = fetch_appointments
        self.conflict_detector = conflict_detector or ConflictDetector()
        self._clock = clock or (lambda: pendulum.now(timezone))

    def find_slots(
        self,
        craftsman_id: str,
        working_hours: Optional[WorkingHours],
        requested_date: DateTime,
        days_to_check: int = 7,
        slots_to_return: int = 3
    ) -> List[DateTime]:
        """
        Collect up to ``slots_to_return`` free slots within ``days_to_check`` days.

        Args:
            craftsman_id: Craftsman whose bookings are checked
            working_hours: Weekly working hours of the craftsman
            requested_date: The rejected request; the search starts on its day
            days_to_check: Number of days to scan, including the requested day
            slots_to_return: Maximum number of slots to return

        Returns:
            Slot start times in ascending order
        """
        slots: List[DateTime] = []
        if working_hours is None or slots_to_return <= 0:
            return slots

        now = self._clock()
        first_day = requested_date.start_of("day")

        for day_offset in range(days_to_check):
            if len(slots) >= slots_to_return:
                break

            day = first_day.add(days=day_offset)
            time_range = self._working_window(working_hours, day)
            if time_range is None:
                continue

            appointments = sorted(
                self._fetch_appointments(craftsman_id, day.date()),
                key=lambda a: a.scheduled_at
            )

            for candidate in self._candidates(day, time_range):
                if candidate < now:
                    continue

                # The requested time was already rejected
                if (
                    day_offset == 0
                    and candidate.hour == requested_date.hour
                    and candidate.minute == requested_date.minute
                ):
                    continue

                if self.conflict_detector.has_conflict(candidate, appointments):
                    continue

                slots.append(candidate)
                if len(slots) >= slots_to_return:
                    break

        return slots

    def _working_window(self, working_hours: WorkingHours, day: DateTime) -> TimeRange | None:
        """
        The parsed working window of a day, or None if the day is skipped.
        """
        day_name = weekday_name(day)
        first_range = working_hours.first_range(day_name)

        if first_range is None:
            logger.debug("No working hours on %s (%s)", day.to_date_string(), day_name)
            return None

        time_range = TimeRange.parse(first_range)
        if time_range is None or not time_range.is_within_day():
            logger.warning(
                "Skipping %s: invalid working hours %r for %s",
                day.to_date_string(), first_range, day_name
            )
            return None

        return time_range

    def _candidates(self, day: DateTime, time_range: TimeRange) -> Iterator[DateTime]:
        """
        Candidate slot starts on the minute marks inside a working window.

        Hours run from the opening hour up to, but not including, the closing
        hour. Marks before the opening minute or at/after the closing minute
        are dropped.
        """
        for hour in range(time_range.start_hour, time_range.end_hour):
            for minute in self.MINUTE_MARKS:
                if not time_range.start_minute <= hour * 60 + minute < time_range.end_minute:
                    continue

                yield day.set(hour=hour, minute=minute, second=0, microsecond=0)
