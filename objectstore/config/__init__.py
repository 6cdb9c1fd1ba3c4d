"""
Application configuration using Pydantic settings.

Configuration comes from environment variables with sensible defaults.
Supports a mock mode for local development.
"""

from .settings import Settings, create_storage_client_from_settings, get_settings

__all__ = ["Settings", "create_storage_client_from_settings", "get_settings"]
