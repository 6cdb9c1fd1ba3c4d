"""
Object storage client for a single S3-compatible bucket.

Works against any S3-compatible backend (Civo, Cloudflare R2, MinIO, AWS S3)
through boto3. The client is a thin facade: every operation delegates to one
boto3 call (two for get_object, several for a multipart put_stream) and any
backend failure surfaces as StorageError.

Mock mode keeps objects in memory, enabling tests and local development
without provisioning a bucket.
"""

import hashlib
import logging
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.models import (
    UNKNOWN_SIZE,
    ObjectMetadata,
    StoredObject,
    TimeUnit,
    WriteResult,
)

logger = logging.getLogger(__name__)


CIVO_FRA1_ENDPOINT = "https://objectstore.fra1.civo.com"

# S3 rejects non-final multipart parts smaller than 5 MiB.
MULTIPART_PART_SIZE = 5 * 1024 * 1024

# SigV4 presigned URLs are valid for at most seven days.
MAX_PRESIGN_SECONDS = 7 * 24 * 60 * 60

_BACKEND_ERRORS = (BotoCoreError, ClientError, OSError)


class StorageError(Exception):
    """
    Raised when a storage operation fails.

    Wraps whatever went wrong underneath (an error response from the
    backend, a network failure, a broken stream) and keeps it available
    as ``cause`` and ``__cause__``. No distinction is made between
    retryable and permanent failures; inspect ``cause`` or ``error_code``
    to branch on the failure class.
    """

    def __init__(
        self,
        operation: str,
        key: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.operation = operation
        self.key = key
        self.cause = cause
        message = f"{operation} failed for key '{key}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)

    def __reduce__(self):
        return (type(self), (self.operation, self.key, self.cause))

    @property
    def error_code(self) -> Optional[str]:
        """Backend error code such as 'NoSuchKey' or 'AccessDenied', if any."""
        if isinstance(self.cause, ClientError):
            return self.cause.response.get("Error", {}).get("Code")
        return None


@dataclass(frozen=True)
class StorageConfig:
    """
    Connection settings for an S3-compatible bucket.

    Frozen: a client is bound to one endpoint, one set of credentials
    and one bucket for its whole lifetime.
    """
    endpoint_url: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    region: str = "auto"

    def __post_init__(self) -> None:
        if not self.endpoint_url:
            raise ValueError("endpoint_url is required")
        if not self.access_key_id or not self.secret_access_key:
            raise ValueError("access_key_id and secret_access_key are required")
        if not self.bucket_name:
            raise ValueError("bucket_name is required")

    def __repr__(self) -> str:
        return (
            f"StorageConfig(endpoint_url={self.endpoint_url!r}, "
            f"bucket_name={self.bucket_name!r}, region={self.region!r})"
        )


class ObjectStorage(Protocol):
    """
    Protocol for object storage operations.

    Both the boto3-backed client and the in-memory mock implement it,
    so callers can depend on the protocol alone.
    """

    def put_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str,
        user_metadata: Optional[dict[str, str]] = None,
    ) -> WriteResult:
        """Store a byte string under key."""
        ...

    def put_stream(
        self,
        key: str,
        stream: BinaryIO,
        size_hint: Optional[int],
        content_type: str,
        user_metadata: Optional[dict[str, str]] = None,
    ) -> WriteResult:
        """Store the contents of a binary stream under key."""
        ...

    def get_object(self, key: str) -> StoredObject:
        """Read an object's body, content type and user metadata."""
        ...

    def delete_object(self, key: str) -> None:
        """Remove an object."""
        ...

    def object_exists(self, key: str) -> bool:
        """True if a stat call for key succeeds."""
        ...

    def stat_object(self, key: str) -> ObjectMetadata:
        """Read an object's metadata without its body."""
        ...

    def get_object_url(self, key: str) -> str:
        """Public path-style URL for key."""
        ...

    def get_presigned_url(
        self,
        key: str,
        expiry: int = 1,
        unit: TimeUnit = TimeUnit.HOURS,
    ) -> str:
        """Time-limited GET URL for key."""
        ...


def build_object_url(endpoint_url: str, bucket_name: str, key: str) -> str:
    """Join endpoint, bucket and key path-style, dropping one trailing slash."""
    base = endpoint_url[:-1] if endpoint_url.endswith("/") else endpoint_url
    return f"{base}/{bucket_name}/{key}"


def presign_expiry_seconds(expiry: int, unit: TimeUnit) -> int:
    """Convert expiry to seconds, rejecting values SigV4 cannot sign."""
    seconds = unit.to_seconds(expiry)
    if not 1 <= seconds <= MAX_PRESIGN_SECONDS:
        raise ValueError(
            f"Presigned URL expiry must be between 1 second and 7 days, got {seconds}s"
        )
    return seconds


def _read_part(stream: BinaryIO, size: int) -> bytes:
    """Read up to size bytes, looping over short reads until EOF."""
    buffer = bytearray()
    while len(buffer) < size:
        chunk = stream.read(size - len(buffer))
        if not chunk:
            break
        buffer.extend(chunk)
    return bytes(buffer)


def _strip_etag(etag: Optional[str]) -> Optional[str]:
    return etag.strip('"') if etag else etag


class S3ObjectStorage:
    """
    S3-compatible object storage client for one bucket.

    Construction only builds the boto3 client; no request is sent until
    an operation is called. Each operation blocks for its round trip.
    Thread-safety is that of the underlying boto3 client.
    """

    def __init__(
        self,
        config: StorageConfig,
        part_size: int = MULTIPART_PART_SIZE,
    ) -> None:
        if part_size < MULTIPART_PART_SIZE:
            raise ValueError(f"part_size must be at least {MULTIPART_PART_SIZE} bytes")

        self._config = config
        self._part_size = part_size

        # Path-style addressing matches get_object_url. Checksums only
        # when required: several S3-compatible backends reject the
        # default CRC headers newer botocore sends.
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            request_checksum_calculation="when_required",
            response_checksum_validation="when_required",
        )

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    def put_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str,
        user_metadata: Optional[dict[str, str]] = None,
    ) -> WriteResult:
        """
        Upload a byte string under key.

        User metadata is attached only when non-empty.
        """
        params = self._put_params(key, content_type, user_metadata)

        try:
            response = self._s3_client.put_object(Body=data, **params)
        except _BACKEND_ERRORS as e:
            raise self._failure("put_bytes", key, e) from e

        logger.debug(
            "Uploaded object",
            extra={"key": key, "size_bytes": len(data)}
        )

        return self._write_result(key, response)

    def put_stream(
        self,
        key: str,
        stream: BinaryIO,
        size_hint: Optional[int],
        content_type: str,
        user_metadata: Optional[dict[str, str]] = None,
    ) -> WriteResult:
        """
        Upload the contents of a binary stream under key.

        With a known size_hint the stream goes out in a single PutObject.
        With UNKNOWN_SIZE (or None) the stream is read in parts; a stream
        that fits in one part is sent as a single PutObject, anything
        larger becomes a multipart upload.

        The stream is consumed but never closed.
        """
        if size_hint is None:
            size_hint = UNKNOWN_SIZE
        if size_hint < UNKNOWN_SIZE:
            raise ValueError(f"size_hint must be >= 0 or UNKNOWN_SIZE, got {size_hint}")

        params = self._put_params(key, content_type, user_metadata)

        try:
            if size_hint != UNKNOWN_SIZE:
                response = self._s3_client.put_object(
                    Body=stream,
                    ContentLength=size_hint,
                    **params,
                )
                logger.debug(
                    "Uploaded stream",
                    extra={"key": key, "size_bytes": size_hint}
                )
                return self._write_result(key, response)

            first_part = _read_part(stream, self._part_size)
            if len(first_part) < self._part_size:
                response = self._s3_client.put_object(
                    Body=first_part,
                    ContentLength=len(first_part),
                    **params,
                )
                logger.debug(
                    "Uploaded stream",
                    extra={"key": key, "size_bytes": len(first_part)}
                )
                return self._write_result(key, response)
        except _BACKEND_ERRORS as e:
            raise self._failure("put_stream", key, e) from e

        return self._multipart_upload(key, stream, first_part, params)

    def get_object(self, key: str) -> StoredObject:
        """
        Read an object fully into memory.

        Metadata comes from a HeadObject call, the body from a separate
        GetObject call. A missing key raises StorageError.
        """
        try:
            head = self._s3_client.head_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
            response = self._s3_client.get_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
            with closing(response["Body"]) as body:
                data = body.read()
        except _BACKEND_ERRORS as e:
            raise self._failure("get_object", key, e) from e

        logger.debug(
            "Downloaded object",
            extra={"key": key, "size_bytes": len(data)}
        )

        return StoredObject(
            data=data,
            content_type=head.get("ContentType", ""),
            user_metadata=dict(head.get("Metadata", {})),
        )

    def delete_object(self, key: str) -> None:
        """Delete an object. S3 reports success for keys that do not exist."""
        try:
            self._s3_client.delete_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except _BACKEND_ERRORS as e:
            raise self._failure("delete_object", key, e) from e

        logger.debug("Deleted object", extra={"key": key})

    def object_exists(self, key: str) -> bool:
        """
        Check for an object with a HeadObject call.

        Any failure counts as absent, including network and permission
        errors, so False does not prove the object is missing.
        """
        try:
            self._s3_client.head_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except _BACKEND_ERRORS as e:
            logger.debug(
                "Object stat failed, reporting absent",
                extra={"key": key, "error": str(e)}
            )
            return False
        return True

    def stat_object(self, key: str) -> ObjectMetadata:
        """Fetch size, content type, ETag and user metadata without the body."""
        try:
            head = self._s3_client.head_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except _BACKEND_ERRORS as e:
            raise self._failure("stat_object", key, e) from e

        return ObjectMetadata(
            key=key,
            size=head.get("ContentLength", 0),
            content_type=head.get("ContentType"),
            etag=_strip_etag(head.get("ETag")),
            version_id=head.get("VersionId"),
            last_modified=head.get("LastModified"),
            user_metadata=dict(head.get("Metadata", {})),
        )

    def get_object_url(self, key: str) -> str:
        """
        Public URL for key: endpoint, bucket and key joined path-style.

        Only useful when the bucket is publicly readable. No request is
        made and the object is not checked.
        """
        return build_object_url(self._config.endpoint_url, self._config.bucket_name, key)

    def get_presigned_url(
        self,
        key: str,
        expiry: int = 1,
        unit: TimeUnit = TimeUnit.HOURS,
    ) -> str:
        """
        Generate a time-limited GET URL signed by boto3.

        Raises ValueError for an expiry outside 1 second to 7 days.
        """
        expires_in = presign_expiry_seconds(expiry, unit)

        try:
            return self._s3_client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self._config.bucket_name,
                    "Key": key,
                },
                ExpiresIn=expires_in,
            )
        except _BACKEND_ERRORS as e:
            raise self._failure("get_presigned_url", key, e) from e

    def _multipart_upload(
        self,
        key: str,
        stream: BinaryIO,
        first_part: bytes,
        params: dict,
    ) -> WriteResult:
        """Upload first_part and the rest of stream as a multipart upload."""
        try:
            created = self._s3_client.create_multipart_upload(**params)
        except _BACKEND_ERRORS as e:
            raise self._failure("put_stream", key, e) from e

        upload_id = created["UploadId"]
        parts = []
        total = 0

        try:
            part = first_part
            part_number = 1
            while part:
                uploaded = self._s3_client.upload_part(
                    Bucket=self._config.bucket_name,
                    Key=key,
                    UploadId=upload_id,
                    PartNumber=part_number,
                    Body=part,
                    ContentLength=len(part),
                )
                parts.append({"PartNumber": part_number, "ETag": uploaded["ETag"]})
                total += len(part)
                part_number += 1
                part = _read_part(stream, self._part_size)

            response = self._s3_client.complete_multipart_upload(
                Bucket=self._config.bucket_name,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
        except _BACKEND_ERRORS as e:
            self._abort_multipart_upload(key, upload_id)
            raise self._failure("put_stream", key, e) from e

        logger.debug(
            "Uploaded stream in parts",
            extra={"key": key, "size_bytes": total, "parts": len(parts)}
        )

        return self._write_result(key, response)

    def _abort_multipart_upload(self, key: str, upload_id: str) -> None:
        try:
            self._s3_client.abort_multipart_upload(
                Bucket=self._config.bucket_name,
                Key=key,
                UploadId=upload_id,
            )
        except _BACKEND_ERRORS as e:
            logger.warning(
                "Failed to abort multipart upload",
                extra={"key": key, "upload_id": upload_id, "error": str(e)}
            )

    def _put_params(
        self,
        key: str,
        content_type: str,
        user_metadata: Optional[dict[str, str]],
    ) -> dict:
        params = {
            "Bucket": self._config.bucket_name,
            "Key": key,
            "ContentType": content_type,
        }
        if user_metadata:
            params["Metadata"] = dict(user_metadata)
        return params

    @staticmethod
    def _write_result(key: str, response: dict) -> WriteResult:
        return WriteResult(
            key=key,
            etag=_strip_etag(response.get("ETag")),
            version_id=response.get("VersionId"),
        )

    def _failure(self, operation: str, key: str, error: BaseException) -> StorageError:
        logger.error(
            "Storage operation failed",
            extra={
                "operation": operation,
                "key": key,
                "bucket": self._config.bucket_name,
                "error": str(error),
            }
        )
        return StorageError(operation, key, error)


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _MockEntry:
    data: bytes
    content_type: str
    user_metadata: dict[str, str]
    etag: str
    last_modified: datetime


def _no_such_key(operation_name: str, key: str) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": "NoSuchKey", "Message": f"The specified key does not exist: {key}"},
            "ResponseMetadata": {"HTTPStatusCode": 404},
        },
        operation_name,
    )


class MockObjectStorage:
    """
    In-memory object storage for local development and tests.

    Behaves like an S3 bucket for the operations in ObjectStorage:
    missing keys raise StorageError with a NoSuchKey cause, deleting a
    missing key succeeds, user metadata keys come back lowercased, and
    presigned URLs are placeholder URIs.

    Not suitable for production.
    """

    def __init__(
        self,
        bucket_name: str = "mock-bucket",
        endpoint_url: str = "mock://storage",
    ) -> None:
        self._bucket_name = bucket_name
        self._endpoint_url = endpoint_url
        self._objects: dict[str, _MockEntry] = {}
        logger.info("Initialized mock storage client (in-memory)")

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def put_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str,
        user_metadata: Optional[dict[str, str]] = None,
    ) -> WriteResult:
        """Store bytes in memory."""
        data = bytes(data)
        entry = _MockEntry(
            data=data,
            content_type=content_type,
            user_metadata={k.lower(): v for k, v in (user_metadata or {}).items()},
            etag=hashlib.md5(data).hexdigest(),
            last_modified=datetime.now(timezone.utc),
        )
        self._objects[key] = entry

        logger.debug(
            "Stored object in mock storage",
            extra={"key": key, "size_bytes": len(data)}
        )

        return WriteResult(key=key, etag=entry.etag)

    def put_stream(
        self,
        key: str,
        stream: BinaryIO,
        size_hint: Optional[int],
        content_type: str,
        user_metadata: Optional[dict[str, str]] = None,
    ) -> WriteResult:
        """Drain the stream into memory. A known size_hint caps the read."""
        if size_hint is None:
            size_hint = UNKNOWN_SIZE
        if size_hint < UNKNOWN_SIZE:
            raise ValueError(f"size_hint must be >= 0 or UNKNOWN_SIZE, got {size_hint}")

        try:
            if size_hint == UNKNOWN_SIZE:
                data = stream.read()
            else:
                data = _read_part(stream, size_hint)
        except OSError as e:
            raise StorageError("put_stream", key, e) from e

        return self.put_bytes(key, data, content_type, user_metadata)

    def get_object(self, key: str) -> StoredObject:
        """Retrieve an object from memory."""
        entry = self._lookup("get_object", "GetObject", key)
        return StoredObject(
            data=entry.data,
            content_type=entry.content_type,
            user_metadata=dict(entry.user_metadata),
        )

    def delete_object(self, key: str) -> None:
        """Remove an object from memory; missing keys are ignored."""
        self._objects.pop(key, None)
        logger.debug("Deleted object from mock storage", extra={"key": key})

    def object_exists(self, key: str) -> bool:
        return key in self._objects

    def stat_object(self, key: str) -> ObjectMetadata:
        entry = self._lookup("stat_object", "HeadObject", key)
        return ObjectMetadata(
            key=key,
            size=len(entry.data),
            content_type=entry.content_type,
            etag=entry.etag,
            last_modified=entry.last_modified,
            user_metadata=dict(entry.user_metadata),
        )

    def get_object_url(self, key: str) -> str:
        return build_object_url(self._endpoint_url, self._bucket_name, key)

    def get_presigned_url(
        self,
        key: str,
        expiry: int = 1,
        unit: TimeUnit = TimeUnit.HOURS,
    ) -> str:
        """Return a placeholder URL carrying the expiry in seconds."""
        expires_in = presign_expiry_seconds(expiry, unit)
        return f"{self.get_object_url(key)}?expires={expires_in}"

    def _lookup(self, operation: str, operation_name: str, key: str) -> _MockEntry:
        try:
            return self._objects[key]
        except KeyError:
            cause = _no_such_key(operation_name, key)
            raise StorageError(operation, key, cause) from cause


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> ObjectStorage:
    """
    Create a storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory mock

    Returns:
        ObjectStorage implementation (S3 or Mock)
    """
    if mock_mode:
        if config is not None:
            return MockObjectStorage(
                bucket_name=config.bucket_name,
                endpoint_url=config.endpoint_url,
            )
        return MockObjectStorage()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3ObjectStorage(config)
