"""
Domain models for working hours, appointments and availability results.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pendulum
from pendulum import Date, DateTime

logger = logging.getLogger(__name__)


# Index 0 is Sunday, matching the weekday convention of the stored working hours
WEEKDAY_NAMES = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)

MINUTES_PER_DAY = 24 * 60

DEFAULT_APPOINTMENT_MINUTES = 60


def weekday_name(day: Union[Date, DateTime]) -> str:
    """Return the lowercase English weekday name of a date."""
    return WEEKDAY_NAMES[day.isoweekday() % 7]


def minute_of_day(moment: DateTime) -> int:
    """Minutes since local midnight of a datetime."""
    return moment.hour * 60 + moment.minute


@dataclass(frozen=True)
class TimeRange:
    """
    A working window within one day, in minutes since local midnight.

    Parsed from strings like ``"9:00-17:00"``. No validity checks happen while
    parsing; ``is_within_day`` tells whether the values describe a usable window.
    """
    start_minute: int
    end_minute: int

    @classmethod
    def parse(cls, text: Optional[str]) -> "TimeRange | None":
        """
        Parse an ``H:MM-H:MM`` string.

        Returns None for anything structurally wrong or non-numeric.
        """
        if not isinstance(text, str):
            return None

        parts = text.split("-")
        if len(parts) != 2:
            return None

        bounds: List[int] = []
        for part in parts:
            pieces = part.strip().split(":")
            if len(pieces) != 2:
                return None
            try:
                hours, minutes = int(pieces[0]), int(pieces[1])
            except ValueError:
                return None
            bounds.append(hours * 60 + minutes)

        return cls(start_minute=bounds[0], end_minute=bounds[1])

    @property
    def start_hour(self) -> int:
        return self.start_minute // 60

    @property
    def end_hour(self) -> int:
        return self.end_minute // 60

    def contains_minute(self, minute: int) -> bool:
        """Inclusive on both ends: a request at closing time still counts."""
        return self.start_minute <= minute <= self.end_minute

    def is_within_day(self) -> bool:
        """Check the window opens before it closes and stays inside one day."""
        return 0 <= self.start_minute < self.end_minute <= MINUTES_PER_DAY

    def __str__(self) -> str:
        return (
            f"{self.start_minute // 60}:{self.start_minute % 60:02d}"
            f"-{self.end_minute // 60}:{self.end_minute % 60:02d}"
        )


@dataclass
class WorkingHours:
    """
    Weekly working hours of a craftsman.

    Maps lowercase weekday names to lists of range strings. Only the first
    range of a day is used for availability; later ranges (split shifts) are
    kept for display but ignored by the checker and the slot search.
    """
    ranges: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "WorkingHours":
        """
        Build working hours from stored data (e.g. a JSON column).

        A missing map yields working hours without any working day.
        """
        ranges: Dict[str, List[str]] = {}
        if not data:
            return cls(ranges=ranges)

        for day, day_ranges in data.items():
            day_key = str(day).lower()
            if day_key not in WEEKDAY_NAMES:
                logger.warning("Ignoring working hours for unknown weekday %r", day)
                continue
            if isinstance(day_ranges, str):
                day_ranges = [day_ranges]
            ranges[day_key] = [str(r) for r in (day_ranges or [])]

        return cls(ranges=ranges)

    def ranges_for(self, day: Union[int, str]) -> List[str]:
        """All stored ranges of a weekday (index 0=Sunday or name)."""
        return list(self.ranges.get(self._day_key(day)) or [])

    def first_range(self, day: Union[int, str]) -> Optional[str]:
        """
        The single working window consulted for a weekday.

        Returns None when the craftsman does not work that day.
        """
        day_ranges = self.ranges_for(day)
        if not day_ranges:
            return None
        return day_ranges[0]

    def works_on(self, day: Union[int, str]) -> bool:
        return self.first_range(day) is not None

    def to_dict(self) -> Dict[str, List[str]]:
        return {day: self.ranges_for(day) for day in WEEKDAY_NAMES if day in self.ranges}

    @staticmethod
    def _day_key(day: Union[int, str]) -> str:
        if isinstance(day, int):
            return WEEKDAY_NAMES[day % 7]
        return day.lower()


@dataclass(frozen=True)
class Appointment:
    """
    A booked appointment, read from the appointments collaborator.
    """
    craftsman_id: str
    scheduled_at: DateTime
    duration_minutes: int = DEFAULT_APPOINTMENT_MINUTES
    id: Optional[str] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None

    @property
    def end(self) -> DateTime:
        return self.scheduled_at.add(minutes=self.duration_minutes)

    @classmethod
    def from_row(cls, row: Mapping[str, Any], timezone: str) -> "Appointment":
        """
        Build an appointment from a data-source row.

        Raises:
            ValueError: If the row has no parseable ``scheduled_at``
        """
        raw_start = row.get("scheduled_at")
        if not raw_start:
            raise ValueError("Appointment row has no scheduled_at")

        scheduled_at = pendulum.parse(str(raw_start), tz=timezone)
        if not isinstance(scheduled_at, DateTime):
            raise ValueError(f"Could not parse scheduled_at: {raw_start}")

        duration = row.get("duration_minutes")
        if duration is None:
            duration = DEFAULT_APPOINTMENT_MINUTES

        row_id = row.get("id")
        return cls(
            craftsman_id=str(row.get("craftsman_id", "")),
            scheduled_at=scheduled_at.in_timezone(timezone),
            duration_minutes=int(duration),
            id=str(row_id) if row_id is not None else None,
            customer_name=row.get("customer_name"),
            notes=row.get("notes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "craftsman_id": self.craftsman_id,
            "scheduled_at": self.scheduled_at.to_iso8601_string(),
            "duration_minutes": self.duration_minutes,
            "customer_name": self.customer_name,
            "notes": self.notes,
        }


@dataclass
class Craftsman:
    """A craftsman as returned by the craftsmen collaborator."""
    id: str
    name: str
    working_hours: Optional[WorkingHours] = None
    specialty: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Craftsman":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or str(row["id"]),
            working_hours=WorkingHours.from_mapping(row.get("availability_hours")),
            specialty=row.get("specialty"),
            phone=row.get("phone"),
        )


@dataclass(frozen=True)
class AvailabilityQuery:
    """Input of a single availability decision."""
    craftsman_id: str
    requested_datetime: DateTime


@dataclass
class AvailabilityCheck:
    """
    Outcome of checking one date (and optionally one time) for a craftsman.
    """
    available: bool
    reason: Optional[str] = None
    working_hours: Optional[List[str]] = None
    appointments: List[Appointment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"available": self.available}
        if self.reason is not None:
            data["reason"] = self.reason
        if self.working_hours is not None:
            data["workingHours"] = list(self.working_hours)
        data["appointments"] = [a.to_dict() for a in self.appointments]
        return data


@dataclass
class AvailabilityResult:
    """
    Availability decision with alternative slots.

    Invariant: alternative slots are only offered when the requested time
    is unavailable, and they are in ascending order.
    """
    is_available: bool
    requested_datetime: DateTime
    alternative_slots: List[DateTime] = field(default_factory=list)
    reason: Optional[str] = None
    message_to_send: str = ""

    def __post_init__(self):
        if self.is_available and self.alternative_slots:
            raise ValueError("Alternative slots must be empty when the request is available")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "isAvailable": self.is_available,
            "requestedDateTime": self.requested_datetime.to_iso8601_string(),
            "alternativeSlots": [slot.to_iso8601_string() for slot in self.alternative_slots],
            "messageToSend": self.message_to_send,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        return data


def format_slot_display(slot: DateTime) -> str:
    """
    Format a slot for display.
    Format: Wochentag, DD.MM.YYYY | HH:MM Uhr
    """
    # Get German weekday name
    weekday_names = {
        0: "Montag",
        1: "Dienstag",
        2: "Mittwoch",
        3: "Donnerstag",
        4: "Freitag",
        5: "Samstag",
        6: "Sonntag"
    }

    weekday = weekday_names[slot.weekday()]
    return f"{weekday}, {slot.format('DD.MM.YYYY')} | {slot.format('HH:mm')} Uhr"


def format_slot_list(slots: Sequence[DateTime]) -> List[str]:
    return [format_slot_display(slot) for slot in slots]
