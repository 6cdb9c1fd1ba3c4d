"""
Object storage for a single S3-compatible bucket.

Supports any S3-compatible backend (Civo, R2, MinIO, AWS S3) via boto3.
Includes mock mode for local development without credentials.
"""

from .client import (
    CIVO_FRA1_ENDPOINT,
    MockObjectStorage,
    ObjectStorage,
    S3ObjectStorage,
    StorageConfig,
    StorageError,
    create_storage_client,
)

__all__ = [
    "CIVO_FRA1_ENDPOINT",
    "MockObjectStorage",
    "ObjectStorage",
    "S3ObjectStorage",
    "StorageConfig",
    "StorageError",
    "create_storage_client",
]
