"""
Application service for craftsman availability checks.

The service validates raw request values, resolves the craftsman through a
repository adapter and delegates the decisions to the domain-level
``AvailabilityChecker`` and ``SlotFinder``. The repository is described by a
protocol so tests can plug in an in-memory stub instead of the backend API.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Sequence

import pendulum
from pendulum import Date, DateTime

from ..config import AppConfig, SearchDefaults
from ..domain.availability_checker import AvailabilityChecker
from ..domain.conflicts import ConflictDetector
from ..domain.exceptions import CraftsmanNotFoundError, ValidationError
from ..domain.models import (
    Appointment,
    AvailabilityCheck,
    AvailabilityQuery,
    AvailabilityResult,
    Craftsman,
    WorkingHours,
    format_slot_list,
)
from ..domain.slot_finder import SlotFinder

logger = logging.getLogger(__name__)


class CraftsmanRepositoryProtocol(Protocol):
    """Protocol describing the data access the availability service needs."""

    def get_craftsman(self, craftsman_id: str) -> Optional[Craftsman]:
        """Return the craftsman, or None if the id is unknown."""

    def list_craftsmen(
        self,
        name: Optional[str] = None,
        specialty: Optional[str] = None,
    ) -> List[Craftsman]:
        """Return craftsmen, optionally filtered by name/specialty substrings."""

    def get_working_hours(self, craftsman_id: str) -> Optional[WorkingHours]:
        """Return the weekly working hours of a craftsman."""

    def get_appointments(self, craftsman_id: str, day: Date) -> List[Appointment]:
        """Return the appointments of one day, ordered by start time."""

    def get_appointments_near(
        self,
        craftsman_id: str,
        day: Date,
        center: DateTime,
        window_hours: int = 2,
    ) -> List[Appointment]:
        """Return appointments of a day overlapping ``center`` ± ``window_hours``."""


class AvailabilityService:
    """
    Orchestrates validation, data retrieval and availability decisions.

    Every call is independent; the service keeps no per-request state.
    """

    def __init__(
        self,
        repository: CraftsmanRepositoryProtocol,
        timezone: str = "Europe/Berlin",
        search_defaults: Optional[SearchDefaults] = None,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._repository = repository
        self.timezone = timezone
        self.search_defaults = search_defaults or SearchDefaults()
        self._clock = clock or (lambda: pendulum.now(timezone))

        conflict_detector = ConflictDetector(slot_minutes=self.search_defaults.slot_minutes)
        self._checker = AvailabilityChecker(conflict_detector=conflict_detector)
        self._slot_finder = SlotFinder(
            fetch_appointments=repository.get_appointments,
            conflict_detector=conflict_detector,
            clock=self._clock,
            timezone=timezone,
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        repository: CraftsmanRepositoryProtocol,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> "AvailabilityService":
        return cls(
            repository=repository,
            timezone=config.timezone,
            search_defaults=config.search,
            clock=clock,
        )

    def check_availability(
        self,
        craftsman_id: str,
        date: Optional[str],
        time: Optional[str] = None,
    ) -> AvailabilityCheck:
        """
        Check whether a craftsman is available on a date and optional time.

        Args:
            craftsman_id: Craftsman identifier
            date: Requested date (YYYY-MM-DD)
            time: Optional time of day (H:MM)

        Raises:
            ValidationError: If date or time is missing or unparseable
            CraftsmanNotFoundError: If the craftsman does not exist
            DataAccessError: If the repository fails
        """
        day = self._parse_date(date)
        requested_at = self._parse_time(day, time) if time else None

        craftsman = self._require_craftsman(craftsman_id)
        working_hours = self._working_hours_of(craftsman)

        return self._check(craftsman, working_hours, day, requested_at)

    def check_availability_with_alternatives(
        self,
        craftsman_id: str,
        requested_datetime: Optional[str],
        days_to_check: Optional[int] = None,
        slots_to_return: Optional[int] = None,
    ) -> AvailabilityResult:
        """
        Check a requested appointment time and suggest alternatives if it is taken.

        Args:
            craftsman_id: Craftsman identifier
            requested_datetime: ISO 8601 date-time of the requested appointment
            days_to_check: Days to scan for alternatives (default from config)
            slots_to_return: Maximum number of alternatives (default from config)

        Raises:
            ValidationError: If the request values are missing or invalid
            CraftsmanNotFoundError: If the craftsman does not exist
            DataAccessError: If the repository fails
        """
        query = AvailabilityQuery(
            craftsman_id=craftsman_id,
            requested_datetime=self._parse_datetime(requested_datetime),
        )
        requested_at = query.requested_datetime
        days = self._positive("days_to_check", days_to_check, self.search_defaults.days_to_check)
        slots = self._positive("slots_to_return", slots_to_return, self.search_defaults.slots_to_return)

        craftsman = self._require_craftsman(query.craftsman_id)
        working_hours = self._working_hours_of(craftsman)

        check = self._check(craftsman, working_hours, requested_at.start_of("day"), requested_at)

        alternatives: List[DateTime] = []
        if not check.available:
            alternatives = self._slot_finder.find_slots(
                craftsman_id=craftsman.id,
                working_hours=working_hours,
                requested_date=requested_at,
                days_to_check=days,
                slots_to_return=slots,
            )
            logger.info(
                "Craftsman %s unavailable at %s (%s), %d alternative(s) found",
                craftsman.id, requested_at.to_iso8601_string(), check.reason, len(alternatives),
            )

        return AvailabilityResult(
            is_available=check.available,
            requested_datetime=requested_at,
            alternative_slots=alternatives,
            reason=check.reason,
            message_to_send=compose_message(requested_at, check.reason, alternatives, days,
                                            available=check.available),
        )

    def list_craftsmen(
        self,
        name: Optional[str] = None,
        specialty: Optional[str] = None,
    ) -> List[Craftsman]:
        return self._repository.list_craftsmen(name=name, specialty=specialty)

    def get_craftsman(self, craftsman_id: str) -> Craftsman:
        """Return a craftsman with working hours resolved through the repository."""
        craftsman = self._require_craftsman(craftsman_id)
        craftsman.working_hours = self._working_hours_of(craftsman)
        return craftsman

    def _check(
        self,
        craftsman: Craftsman,
        working_hours: Optional[WorkingHours],
        day: DateTime,
        requested_at: Optional[DateTime],
    ) -> AvailabilityCheck:
        if requested_at is None:
            def fetch() -> Sequence[Appointment]:
                return self._repository.get_appointments(craftsman.id, day.date())
        else:
            def fetch() -> Sequence[Appointment]:
                return self._repository.get_appointments_near(
                    craftsman.id,
                    day.date(),
                    requested_at,
                    window_hours=self.search_defaults.near_window_hours,
                )

        return self._checker.check(
            craftsman_name=craftsman.name,
            working_hours=working_hours,
            day=day,
            requested_at=requested_at,
            fetch_appointments=fetch,
        )

    def _require_craftsman(self, craftsman_id: str) -> Craftsman:
        if craftsman_id is None or str(craftsman_id).strip() == "":
            raise ValidationError("Craftsman id is required")

        craftsman = self._repository.get_craftsman(str(craftsman_id))
        if craftsman is None:
            raise CraftsmanNotFoundError(str(craftsman_id))
        return craftsman

    def _working_hours_of(self, craftsman: Craftsman) -> Optional[WorkingHours]:
        # Adapters usually resolve the hours together with the craftsman row
        if craftsman.working_hours is not None:
            return craftsman.working_hours
        return self._repository.get_working_hours(craftsman.id)

    def _parse_date(self, value: Optional[str]) -> DateTime:
        if not value:
            raise ValidationError("Date parameter is required (YYYY-MM-DD format)")
        try:
            return pendulum.from_format(value.strip(), "YYYY-MM-DD", tz=self.timezone).start_of("day")
        except ValueError as exc:
            raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc

    def _parse_time(self, day: DateTime, value: str) -> DateTime:
        try:
            return pendulum.from_format(
                f"{day.to_date_string()} {value.strip()}",
                "YYYY-MM-DD H:mm",
                tz=self.timezone,
            )
        except ValueError as exc:
            raise ValidationError(f"Invalid time {value!r}, expected H:MM") from exc

    def _parse_datetime(self, value: Optional[str]) -> DateTime:
        if not value:
            raise ValidationError("requestedDateTime parameter is required (ISO 8601 format)")
        try:
            parsed = pendulum.parse(value.strip(), tz=self.timezone, exact=True)
        except ValueError as exc:
            raise ValidationError(f"Invalid date-time {value!r}") from exc

        if not isinstance(parsed, DateTime):
            raise ValidationError(f"Invalid date-time {value!r}, a date and time are required")

        return parsed.in_timezone(self.timezone)

    @staticmethod
    def _positive(name: str, value: Optional[int], default: int) -> int:
        if value is None:
            return default
        if value <= 0:
            raise ValidationError(f"{name} must be greater than zero, got {value}")
        return value


def compose_message(
    requested_at: DateTime,
    reason: Optional[str],
    alternative_slots: Sequence[DateTime],
    days_to_check: int,
    available: bool = False,
) -> str:
    """
    Build the customer-facing message for an availability result.
    """
    requested = f"am {requested_at.format('DD.MM.YYYY')} um {requested_at.format('HH:mm')} Uhr"

    if available:
        return f"Der gewünschte Termin {requested} ist verfügbar."

    headline = f"Der gewünschte Termin {requested} ist leider nicht verfügbar"
    lines = [f"{headline} ({reason})." if reason else f"{headline}."]

    if alternative_slots:
        lines.append("Folgende Termine können wir Ihnen alternativ anbieten:")
        lines.extend(f"- {slot}" for slot in format_slot_list(alternative_slots))
    else:
        lines.append(
            f"In den nächsten {days_to_check} Tagen ist leider kein anderer Termin frei."
        )

    return "\n".join(lines)
