"""
Domain-specific exception hierarchy for the craftslot application.
"""


class CraftslotError(Exception):
    """Base class for all application-level errors."""


class ValidationError(CraftslotError):
    """Raised when a request is missing required input or cannot be parsed."""


class CraftsmanNotFoundError(CraftslotError):
    """Raised when a craftsman identifier does not resolve to a craftsman."""

    def __init__(self, craftsman_id: str):
        super().__init__(f"Craftsman not found: {craftsman_id}")
        self.craftsman_id = craftsman_id


class DataAccessError(CraftslotError):
    """Raised when craftsman or appointment data cannot be fetched or parsed."""
