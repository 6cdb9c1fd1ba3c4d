"""
Framework-agnostic value types for stored objects.

Nothing in here imports boto3 or pydantic.
"""

from .models import (
    UNKNOWN_SIZE,
    ObjectMetadata,
    StoredObject,
    TimeUnit,
    WriteResult,
)

__all__ = [
    "UNKNOWN_SIZE",
    "ObjectMetadata",
    "StoredObject",
    "TimeUnit",
    "WriteResult",
]
