"""
Domain layer - Pure availability logic without external dependencies.
"""

from .availability_checker import AvailabilityChecker
from .conflicts import ConflictDetector
from .models import (
    Appointment,
    AvailabilityCheck,
    AvailabilityQuery,
    AvailabilityResult,
    Craftsman,
    TimeRange,
    WorkingHours,
)
from .slot_finder import SlotFinder

__all__ = [
    "Appointment",
    "AvailabilityCheck",
    "AvailabilityChecker",
    "AvailabilityQuery",
    "AvailabilityResult",
    "ConflictDetector",
    "Craftsman",
    "SlotFinder",
    "TimeRange",
    "WorkingHours",
]
