#!/usr/bin/env python3
"""
Exercise a real bucket end to end: put, get, exists, presign, delete.

Usage:
    python scripts/smoke_test.py [key]

Requires:
    - .env file (or environment) with STORAGE_ACCESS_KEY_ID,
      STORAGE_SECRET_ACCESS_KEY and STORAGE_BUCKET_NAME
    - STORAGE_ENDPOINT_URL if the bucket is not on Civo FRA1
"""

import logging
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from objectstore.config.settings import create_storage_client_from_settings, get_settings
from objectstore.core import content_types
from objectstore.core.models import TimeUnit
from objectstore.infrastructure.storage.client import ObjectStorage, StorageError

logger = logging.getLogger("smoke_test")


def run(storage: ObjectStorage, key: str) -> None:
    """Round-trip one object through the bucket and clean it up."""
    payload = bytes(1024)
    metadata = {"name": "TestName"}

    result = storage.put_bytes(key, payload, content_types.APPLICATION_OCTET_STREAM, metadata)
    print(f"put     {key} etag={result.etag} version={result.version_id}")

    stored = storage.get_object(key)
    print(f"get     {key} size={stored.size} type={stored.content_type} meta={stored.user_metadata}")
    if stored.data != payload:
        raise RuntimeError("Downloaded body does not match uploaded body")

    print(f"exists  {key} -> {storage.object_exists(key)}")
    print(f"url     {storage.get_object_url(key)}")
    print(f"presign {storage.get_presigned_url(key, 15, TimeUnit.MINUTES)}")

    storage.delete_object(key)
    print(f"delete  {key}")
    print(f"exists  {key} -> {storage.object_exists(key)}")


def main() -> int:
    settings = get_settings()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.log_level.upper(),
    )

    key = sys.argv[1] if len(sys.argv) > 1 else "smoke-test"

    try:
        storage = create_storage_client_from_settings(settings)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        run(storage, key)
    except StorageError as e:
        logger.error(
            "Smoke test failed",
            extra={"operation": e.operation, "key": e.key, "error_code": e.error_code}
        )
        print(f"FAILED: {e}")
        return 1

    print("OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
