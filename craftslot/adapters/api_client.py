"""
REST client for the craftsman backend (craftsmen and appointments).
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from pendulum import Date, DateTime

from ..domain.exceptions import DataAccessError
from ..domain.models import Appointment, Craftsman, WorkingHours
from .appointment_filters import appointments_near, appointments_on_day

logger = logging.getLogger(__name__)


class CraftsmanApiClient:
    """
    Client for the backend's craftsmen endpoints.

    Uses ``GET /craftsmen``, ``GET /craftsmen/{id}`` and
    ``GET /craftsmen/{id}/appointments``. The appointments endpoint returns the
    full history of a craftsman, so day and window filtering happens here.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30,
        timezone: str = "Europe/Berlin",
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the API client.

        Args:
            base_url: Backend URL, e.g. ``https://api.example.com/api``
            token: Bearer token for the protected endpoints
            timeout: Request timeout in seconds
            timezone: IANA timezone used for naive appointment timestamps
            session: Optional requests session (connection reuse, testing)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.timezone = timezone
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_config(cls, api_config, timezone: str = "Europe/Berlin") -> "CraftsmanApiClient":
        return cls(
            base_url=api_config.base_url,
            token=api_config.token,
            timeout=api_config.timeout,
            timezone=timezone
        )

    def get_craftsman(self, craftsman_id: str) -> Optional[Craftsman]:
        """
        Fetch a single craftsman.

        Returns:
            Craftsman, or None if the backend answers 404

        Raises:
            DataAccessError: If the API call fails
        """
        data = self._get(f"/craftsmen/{craftsman_id}", allow_not_found=True)
        if data is None:
            return None

        try:
            return Craftsman.from_row(data)
        except KeyError as e:
            raise DataAccessError(f"Malformed craftsman response: missing {e}") from e

    def list_craftsmen(
        self,
        name: Optional[str] = None,
        specialty: Optional[str] = None
    ) -> List[Craftsman]:
        params = {key: value for key, value in (("name", name), ("specialty", specialty)) if value}
        rows = self._get("/craftsmen", params=params) or []

        craftsmen: List[Craftsman] = []
        for row in rows:
            try:
                craftsmen.append(Craftsman.from_row(row))
            except KeyError:
                logger.warning("Skipping craftsman without id in API response: %r", row)
        return craftsmen

    def get_working_hours(self, craftsman_id: str) -> Optional[WorkingHours]:
        craftsman = self.get_craftsman(craftsman_id)
        return craftsman.working_hours if craftsman else None

    def get_appointments(self, craftsman_id: str, day: Date) -> List[Appointment]:
        """
        Fetch the appointments of one day, ordered by start time.

        Raises:
            DataAccessError: If the API call fails
        """
        rows = self._get(f"/craftsmen/{craftsman_id}/appointments") or []
        return appointments_on_day(self._parse_appointments(rows, craftsman_id), day)

    def get_appointments_near(
        self,
        craftsman_id: str,
        day: Date,
        center: DateTime,
        window_hours: int = 2
    ) -> List[Appointment]:
        return appointments_near(self.get_appointments(craftsman_id, day), center, window_hours)

    def _parse_appointments(self, rows: List[Dict[str, Any]], craftsman_id: str) -> List[Appointment]:
        appointments: List[Appointment] = []

        for row in rows:
            row = {"craftsman_id": craftsman_id, **row}
            try:
                appointments.append(Appointment.from_row(row, self.timezone))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Could not parse appointment %r: %s", row.get("id"), e)
                continue

        return appointments

    def _get(
        self,
        path: str,
        params: Optional[Dict[str, str]] = None,
        allow_not_found: bool = False
    ) -> Any:
        url = f"{self.base_url}{path}"

        try:
            response = self.session.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.timeout
            )
            if allow_not_found and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise DataAccessError(f"Failed to fetch {path} from craftsman API: {e}") from e
        except ValueError as e:
            raise DataAccessError(f"Invalid JSON from craftsman API for {path}: {e}") from e
