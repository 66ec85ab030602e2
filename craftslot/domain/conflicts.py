"""
Conflict detection between candidate times and booked appointments.

All intervals are half-open: ``[start, end)``. Back-to-back appointments
therefore never conflict.
"""

from typing import Iterable

from pendulum import DateTime

from .models import Appointment

# Width assumed for every candidate slot during the alternative-slot search
SEARCH_SLOT_MINUTES = 60


class ConflictDetector:
    """
    Decides whether a slot or a single moment collides with existing bookings.

    The slot search uses a fixed slot width (``slot_minutes``) regardless of how
    long the booked appointments are, while the point check uses each booking's
    stored duration.
    """

    def __init__(self, slot_minutes: int = SEARCH_SLOT_MINUTES):
        self.slot_minutes = slot_minutes

    def has_conflict(
        self,
        slot_start: DateTime,
        appointments: Iterable[Appointment],
        duration_minutes: int | None = None
    ) -> bool:
        """
        Check a candidate slot against booked appointments.

        A conflict exists when the slot starts inside a booking, ends inside
        a booking, or fully contains a booking.
        """
        slot_end = slot_start.add(minutes=duration_minutes or self.slot_minutes)

        for appointment in appointments:
            booked_start = appointment.scheduled_at
            booked_end = appointment.end

            starts_inside = booked_start <= slot_start < booked_end
            ends_inside = booked_start < slot_end <= booked_end
            contains = slot_start <= booked_start < slot_end and booked_end <= slot_end

            if starts_inside or ends_inside or contains:
                return True

        return False

    @staticmethod
    def is_booked_at(moment: DateTime, appointments: Iterable[Appointment]) -> bool:
        """Check whether a single moment falls inside any booking."""
        return bool(ConflictDetector.conflicting_appointments(moment, appointments))

    @staticmethod
    def conflicting_appointments(
        moment: DateTime,
        appointments: Iterable[Appointment]
    ) -> list[Appointment]:
        """Bookings that cover the given moment, in input order."""
        return [
            appointment for appointment in appointments
            if appointment.scheduled_at <= moment < appointment.end
        ]
