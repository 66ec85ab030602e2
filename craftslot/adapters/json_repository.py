"""
File-backed craftsman repository for offline use and testing.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pendulum import Date, DateTime

from ..domain.exceptions import DataAccessError
from ..domain.models import Appointment, Craftsman, WorkingHours
from .appointment_filters import appointments_near, appointments_on_day

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_data.json"


class JsonCraftsmanRepository:
    """
    Repository that reads craftsmen and appointments from a JSON file.

    The file mirrors the rows of the backend's ``craftsmen`` and
    ``appointments`` tables:

        {
            "craftsmen": [{"id": 1, "name": "...", "availability_hours": {...}}],
            "appointments": [{"craftsman_id": 1, "scheduled_at": "...", "duration_minutes": 60}]
        }
    """

    def __init__(
        self,
        data_file: Optional[Path] = None,
        timezone: str = "Europe/Berlin",
        data: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the repository.

        Args:
            data_file: JSON file to read; defaults to the bundled mock data
            timezone: IANA timezone used for naive appointment timestamps
            data: Already loaded content; the file is not read when given

        Raises:
            DataAccessError: If the file cannot be read or parsed
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.timezone = timezone
        self._craftsmen: Dict[str, Craftsman] = {}
        self._appointments: List[Appointment] = []
        self._load_rows(data if data is not None else self._read_file())

    def _read_file(self) -> Dict[str, Any]:
        """Load the raw JSON content."""
        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataAccessError(f"Could not load data file {self.data_file}: {e}") from e

        if not isinstance(data, dict):
            raise DataAccessError(f"Data file {self.data_file} must contain a JSON object")
        return data

    def _load_rows(self, data: Dict[str, Any]):
        for row in data.get("craftsmen", []):
            try:
                craftsman = Craftsman.from_row(row)
            except KeyError:
                logger.warning("Skipping craftsman row without id: %r", row)
                continue
            self._craftsmen[craftsman.id] = craftsman

        for row in data.get("appointments", []):
            try:
                self._appointments.append(Appointment.from_row(row, self.timezone))
            except (KeyError, ValueError, TypeError) as e:
                # Skip invalid appointments
                logger.warning("Skipping invalid appointment row %r: %s", row, e)

    def get_craftsman(self, craftsman_id: str) -> Optional[Craftsman]:
        return self._craftsmen.get(str(craftsman_id))

    def list_craftsmen(
        self,
        name: Optional[str] = None,
        specialty: Optional[str] = None
    ) -> List[Craftsman]:
        """Craftsmen sorted by name, filtered by case-insensitive substrings."""
        result = []
        for craftsman in self._craftsmen.values():
            if name and name.lower() not in craftsman.name.lower():
                continue
            if specialty and specialty.lower() not in (craftsman.specialty or "").lower():
                continue
            result.append(craftsman)
        return sorted(result, key=lambda c: c.name)

    def get_working_hours(self, craftsman_id: str) -> Optional[WorkingHours]:
        craftsman = self.get_craftsman(craftsman_id)
        return craftsman.working_hours if craftsman else None

    def get_appointments(self, craftsman_id: str, day: Date) -> List[Appointment]:
        return appointments_on_day(self._for_craftsman(craftsman_id), day)

    def get_appointments_near(
        self,
        craftsman_id: str,
        day: Date,
        center: DateTime,
        window_hours: int = 2
    ) -> List[Appointment]:
        return appointments_near(self.get_appointments(craftsman_id, day), center, window_hours)

    def _for_craftsman(self, craftsman_id: str) -> List[Appointment]:
        return [a for a in self._appointments if a.craftsman_id == str(craftsman_id)]

