"""
Tests for the AvailabilityService orchestration layer.
"""

from typing import Dict, List, Optional

import pendulum
import pytest

from craftslot.adapters.appointment_filters import appointments_near, appointments_on_day
from craftslot.config import SearchDefaults
from craftslot.domain.exceptions import CraftsmanNotFoundError, DataAccessError, ValidationError
from craftslot.domain.models import Appointment, Craftsman, WorkingHours
from craftslot.services.availability_service import AvailabilityService, compose_message

TZ = "Europe/Berlin"
FROZEN_NOW = pendulum.parse("2024-11-24 12:00", tz=TZ)


class StubRepository:
    """Minimal in-memory repository matching CraftsmanRepositoryProtocol."""

    def __init__(
        self,
        craftsmen: Dict[str, Craftsman],
        appointments: Optional[List[Appointment]] = None,
        fail_fetch: bool = False,
    ):
        self.craftsmen = craftsmen
        self.appointments = appointments or []
        self.fail_fetch = fail_fetch
        self.calls: List[str] = []

    def get_craftsman(self, craftsman_id):
        self.calls.append(f"craftsman:{craftsman_id}")
        return self.craftsmen.get(craftsman_id)

    def list_craftsmen(self, name=None, specialty=None):
        return list(self.craftsmen.values())

    def get_working_hours(self, craftsman_id):
        self.calls.append(f"hours:{craftsman_id}")
        craftsman = self.craftsmen.get(craftsman_id)
        return craftsman.working_hours if craftsman else None

    def get_appointments(self, craftsman_id, day):
        self.calls.append(f"day:{day.isoformat()}")
        if self.fail_fetch:
            raise DataAccessError("database unavailable")
        own = [a for a in self.appointments if a.craftsman_id == craftsman_id]
        return appointments_on_day(own, day)

    def get_appointments_near(self, craftsman_id, day, center, window_hours=2):
        self.calls.append(f"near:{center.format('HH:mm')}:{window_hours}")
        if self.fail_fetch:
            raise DataAccessError("database unavailable")
        own = [a for a in self.appointments if a.craftsman_id == craftsman_id]
        return appointments_near(appointments_on_day(own, day), center, window_hours)


def _at(text: str):
    return pendulum.parse(text, tz=TZ)


def _booking(start: str, minutes: int = 60) -> Appointment:
    return Appointment(craftsman_id="1", scheduled_at=_at(start), duration_minutes=minutes)


def _craftsman(hours=None) -> Craftsman:
    if hours is None:
        hours = {"monday": ["9:00-17:00"], "tuesday": ["9:00-17:00"]}
    return Craftsman(id="1", name="Max Müller", working_hours=WorkingHours.from_mapping(hours))


def _build_service(appointments=None, craftsman=None, **kwargs) -> AvailabilityService:
    repository = StubRepository({"1": craftsman or _craftsman()}, appointments, **kwargs)
    return AvailabilityService(repository=repository, timezone=TZ, clock=lambda: FROZEN_NOW)


class TestCheckAvailability:
    """Tests for the single-point check."""

    def test_available_without_bookings(self):
        service = _build_service()

        result = service.check_availability("1", "2024-11-25", "10:00")

        assert result.available
        assert result.working_hours == ["9:00-17:00"]

    def test_conflict_and_half_open_boundary(self):
        service = _build_service([_booking("2024-11-25 10:00")])

        busy = service.check_availability("1", "2024-11-25", "10:00")
        free = service.check_availability("1", "2024-11-25", "11:00")

        assert not busy.available
        assert "conflicting appointments" in busy.reason
        assert free.available

    def test_uses_near_window_from_defaults(self):
        repository = StubRepository({"1": _craftsman()})
        service = AvailabilityService(
            repository=repository,
            timezone=TZ,
            search_defaults=SearchDefaults(near_window_hours=3),
        )

        service.check_availability("1", "2024-11-25", "9:30")

        assert "near:09:30:3" in repository.calls

    def test_whole_day_without_time(self):
        service = _build_service([_booking("2024-11-25 15:00")])

        result = service.check_availability("1", "2024-11-25")

        assert not result.available
        assert result.to_dict()["appointments"][0]["scheduled_at"] == "2024-11-25T15:00:00+01:00"

    def test_day_off(self):
        result = _build_service().check_availability("1", "2024-11-27", "10:00")

        assert not result.available
        assert "does not work on wednesday" in result.reason

    @pytest.mark.parametrize("date, time", [(None, None), ("", "10:00"), ("2024-13-45", None), ("25.11.2024", None)])
    def test_invalid_date(self, date, time):
        with pytest.raises(ValidationError):
            _build_service().check_availability("1", date, time)

    @pytest.mark.parametrize("time", ["25:99", "morgen", "10"])
    def test_invalid_time(self, time):
        with pytest.raises(ValidationError):
            _build_service().check_availability("1", "2024-11-25", time)

    def test_validation_before_lookup(self):
        """Test bad input is rejected before the craftsman is resolved."""
        repository = StubRepository({})
        service = AvailabilityService(repository=repository, timezone=TZ)

        with pytest.raises(ValidationError):
            service.check_availability("99", "not-a-date")
        assert repository.calls == []

    def test_unknown_craftsman(self):
        with pytest.raises(CraftsmanNotFoundError) as exc_info:
            _build_service().check_availability("99", "2024-11-25", "10:00")

        assert exc_info.value.craftsman_id == "99"

    def test_fetch_failure_propagates(self):
        with pytest.raises(DataAccessError):
            _build_service(fail_fetch=True).check_availability("1", "2024-11-25", "10:00")

    def test_repeated_checks_are_identical(self):
        service = _build_service([_booking("2024-11-25 10:00")])

        first = service.check_availability("1", "2024-11-25", "10:30")
        second = service.check_availability("1", "2024-11-25", "10:30")

        assert first.to_dict() == second.to_dict()


class TestCheckAvailabilityWithAlternatives:
    """Tests for the check with alternative slots."""

    def test_fully_booked_monday(self):
        """End-to-end: a booked Monday yields three Tuesday alternatives."""
        service = _build_service([_booking("2024-11-25 09:00", minutes=480)])

        result = service.check_availability_with_alternatives("1", "2024-11-25T10:00:00")

        assert not result.is_available
        assert result.to_dict()["alternativeSlots"] == [
            "2024-11-26T09:00:00+01:00",
            "2024-11-26T09:30:00+01:00",
            "2024-11-26T10:00:00+01:00",
        ]
        assert "Dienstag, 26.11.2024 | 09:00 Uhr" in result.message_to_send

    def test_available_request_has_no_alternatives(self):
        service = _build_service()

        result = service.check_availability_with_alternatives("1", "2024-11-25T10:00")

        assert result.is_available
        assert result.alternative_slots == []
        assert "ist verfügbar" in result.message_to_send

    def test_outside_working_hours_offers_same_day(self):
        service = _build_service()

        result = service.check_availability_with_alternatives(
            "1", "2024-11-25T18:00", days_to_check=1, slots_to_return=2
        )

        assert "outside working hours" in result.reason
        assert result.alternative_slots == [_at("2024-11-25 09:00"), _at("2024-11-25 09:30")]

    def test_slot_limit(self):
        service = _build_service([_booking("2024-11-25 10:00")])

        result = service.check_availability_with_alternatives(
            "1", "2024-11-25T10:00", days_to_check=7, slots_to_return=5
        )

        assert len(result.alternative_slots) == 5

    def test_no_working_days(self):
        service = _build_service(craftsman=_craftsman(hours={}))

        result = service.check_availability_with_alternatives("1", "2024-11-25T10:00")

        assert not result.is_available
        assert result.alternative_slots == []
        assert "7 Tagen" in result.message_to_send

    def test_utc_request_is_converted(self):
        """Test a UTC timestamp is checked in local time."""
        service = _build_service([_booking("2024-11-25 10:00")])

        result = service.check_availability_with_alternatives("1", "2024-11-25T09:00:00Z")

        assert not result.is_available
        assert result.requested_datetime.hour == 10

    @pytest.mark.parametrize("value", [None, "", "gestern", "2024-11-25T25:00", "2024-11-25", "10:00"])
    def test_invalid_requested_datetime(self, value):
        with pytest.raises(ValidationError):
            _build_service().check_availability_with_alternatives("1", value)

    @pytest.mark.parametrize("days, slots", [(0, 3), (7, 0), (-1, 3)])
    def test_invalid_bounds(self, days, slots):
        with pytest.raises(ValidationError):
            _build_service().check_availability_with_alternatives(
                "1", "2024-11-25T10:00", days_to_check=days, slots_to_return=slots
            )

    def test_unknown_craftsman(self):
        with pytest.raises(CraftsmanNotFoundError):
            _build_service().check_availability_with_alternatives("2", "2024-11-25T10:00")

    def test_fetch_failure_returns_no_partial_result(self):
        with pytest.raises(DataAccessError):
            _build_service(fail_fetch=True).check_availability_with_alternatives("1", "2024-11-25T10:00")


class TestComposeMessage:
    """Tests for the customer message."""

    def test_lists_alternatives(self):
        message = compose_message(
            _at("2024-11-25 10:00"),
            "Max Müller has conflicting appointments at 10:00",
            [_at("2024-11-26 09:00")],
            days_to_check=7,
        )

        assert message.splitlines() == [
            "Der gewünschte Termin am 25.11.2024 um 10:00 Uhr ist leider nicht verfügbar "
            "(Max Müller has conflicting appointments at 10:00).",
            "Folgende Termine können wir Ihnen alternativ anbieten:",
            "- Dienstag, 26.11.2024 | 09:00 Uhr",
        ]


class TestWorkingHoursResolution:
    """Tests for resolving working hours alongside the craftsman lookup."""

    def test_hours_taken_from_craftsman_lookup(self):
        repository = StubRepository({"1": _craftsman()})
        service = AvailabilityService(repository=repository, timezone=TZ, clock=lambda: FROZEN_NOW)

        service.check_availability_with_alternatives("1", "2024-11-25T10:00")

        assert repository.calls[0] == "craftsman:1"
        assert not any(call.startswith("hours:") for call in repository.calls)

    def test_falls_back_to_repository_hours(self):
        craftsman = Craftsman(id="1", name="Max Müller")
        repository = StubRepository({"1": craftsman})
        service = AvailabilityService(repository=repository, timezone=TZ, clock=lambda: FROZEN_NOW)

        result = service.check_availability("1", "2024-11-25", "10:00")

        assert "hours:1" in repository.calls
        assert not result.available
        assert "does not work on monday" in result.reason
