"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (or a .env file)
with sensible defaults. Mock mode enables local development without
a real bucket.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..infrastructure.storage.client import (
    CIVO_FRA1_ENDPOINT,
    MockObjectStorage,
    ObjectStorage,
    StorageConfig,
    create_storage_client,
)


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Every field can be overridden by the upper-cased environment variable
    of the same name, e.g. STORAGE_BUCKET_NAME.
    """

    # Object storage
    storage_endpoint_url: str = Field(
        default=CIVO_FRA1_ENDPOINT,
        description="S3-compatible endpoint URL, e.g. https://objectstore.fra1.civo.com"
    )
    storage_access_key_id: str = Field(
        default="",
        description="Access key for the bucket. Required unless in mock mode."
    )
    storage_secret_access_key: str = Field(
        default="",
        description="Secret key for the bucket. Required unless in mock mode."
    )
    storage_bucket_name: str = Field(
        default="",
        description="Bucket every operation targets. Required unless in mock mode."
    )
    storage_region: str = Field(
        default="auto",
        description="Signing region. Most S3-compatible backends accept 'auto'."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use the in-memory mock instead of a real bucket."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_required_fields(self) -> list[str]:
        """
        Return the environment variables that still need a value.

        Nothing is required in mock mode.
        """
        if self.storage_mock_mode:
            return []

        missing = []
        if not self.storage_endpoint_url:
            missing.append("STORAGE_ENDPOINT_URL")
        if not self.storage_access_key_id:
            missing.append("STORAGE_ACCESS_KEY_ID")
        if not self.storage_secret_access_key:
            missing.append("STORAGE_SECRET_ACCESS_KEY")
        if not self.storage_bucket_name:
            missing.append("STORAGE_BUCKET_NAME")
        return missing

    def to_storage_config(self) -> StorageConfig:
        return StorageConfig(
            endpoint_url=self.storage_endpoint_url,
            access_key_id=self.storage_access_key_id,
            secret_access_key=self.storage_secret_access_key,
            bucket_name=self.storage_bucket_name,
            region=self.storage_region,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get the cached settings instance.

    Settings are read once per process. Tests can call
    get_settings.cache_clear() to pick up a changed environment.
    """
    return Settings()


def create_storage_client_from_settings(
    settings: Optional[Settings] = None,
) -> ObjectStorage:
    """
    Build the storage client the settings describe.

    Raises ValueError naming every missing variable when not in mock mode.
    """
    settings = settings or get_settings()

    if settings.storage_mock_mode:
        return MockObjectStorage(
            bucket_name=settings.storage_bucket_name or "mock-bucket",
            endpoint_url=settings.storage_endpoint_url or "mock://storage",
        )

    missing = settings.validate_required_fields()
    if missing:
        raise ValueError(f"Missing required configuration: {', '.join(missing)}")

    return create_storage_client(settings.to_storage_config())
