"""
Value types for objects held in the bucket.

These models have no dependency on boto3 or any other client library.
The storage client maps backend responses into them, and callers only
ever see these types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .content_types import is_textual


# Size hint for put_stream when the stream length is not known up front.
UNKNOWN_SIZE = -1


class TimeUnit(Enum):
    """Units accepted for presigned URL expiry, valued in seconds."""
    SECONDS = 1
    MINUTES = 60
    HOURS = 60 * 60
    DAYS = 24 * 60 * 60

    def to_seconds(self, amount: int) -> int:
        return amount * self.value


@dataclass(frozen=True)
class StoredObject:
    """
    An object read back from storage: body, content type and user metadata.

    Frozen because a read result is a snapshot of the object at read time.
    """
    data: bytes
    content_type: str
    user_metadata: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_textual(self) -> bool:
        # Parameters such as "; charset=utf-8" do not change the media type.
        media_type = (self.content_type or "").split(";", 1)[0].strip().lower()
        return is_textual(media_type)

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the body. Raises ValueError for non-textual content."""
        if not self.is_textual:
            raise ValueError(f"Content type {self.content_type!r} is not textual")
        return self.data.decode(encoding)


@dataclass(frozen=True)
class WriteResult:
    """Acknowledgment returned by the backend for a successful write."""
    key: str
    etag: Optional[str] = None
    version_id: Optional[str] = None


@dataclass(frozen=True)
class ObjectMetadata:
    """System and user metadata for an object, without its body."""
    key: str
    size: int
    content_type: Optional[str] = None
    etag: Optional[str] = None
    version_id: Optional[str] = None
    last_modified: Optional[datetime] = None
    user_metadata: dict[str, str] = field(default_factory=dict)
