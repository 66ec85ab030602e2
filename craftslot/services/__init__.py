"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, CraftsmanRepositoryProtocol, compose_message

__all__ = ["AvailabilityService", "CraftsmanRepositoryProtocol", "compose_message"]
