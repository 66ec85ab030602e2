"""
Adapters layer - Craftsman data sources (backend REST API, JSON file).
"""

from .api_client import CraftsmanApiClient
from .json_repository import JsonCraftsmanRepository

__all__ = ["CraftsmanApiClient", "JsonCraftsmanRepository"]
