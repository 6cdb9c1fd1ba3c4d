"""
Common MIME types and two small helpers for textual content.
"""

from typing import Optional

# Generic / binary
APPLICATION_OCTET_STREAM = "application/octet-stream"

# Text
TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"
TEXT_CSS = "text/css"
TEXT_CSV = "text/csv"
TEXT_XML = "text/xml"
TEXT_MARKDOWN = "text/markdown"

# JSON / XML
APPLICATION_JSON = "application/json"
APPLICATION_XML = "application/xml"

APPLICATION_JAVASCRIPT = "application/javascript"

# Images
IMAGE_PNG = "image/png"
IMAGE_JPEG = "image/jpeg"
IMAGE_GIF = "image/gif"
IMAGE_WEBP = "image/webp"
IMAGE_SVG_XML = "image/svg+xml"

# Audio / video
AUDIO_MPEG = "audio/mpeg"
AUDIO_OGG = "audio/ogg"
VIDEO_MP4 = "video/mp4"
VIDEO_WEBM = "video/webm"

# Documents
APPLICATION_PDF = "application/pdf"
APPLICATION_MSWORD = "application/msword"
APPLICATION_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
APPLICATION_MSEXCEL = "application/vnd.ms-excel"
APPLICATION_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
APPLICATION_MSPPT = "application/vnd.ms-powerpoint"
APPLICATION_PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

# Archives
APPLICATION_ZIP = "application/zip"
APPLICATION_TAR = "application/x-tar"
APPLICATION_GZIP = "application/gzip"

# Fonts
FONT_WOFF = "font/woff"
FONT_WOFF2 = "font/woff2"

APPLICATION_NDJSON = "application/x-ndjson"

_TEXTUAL_APPLICATION_TYPES = frozenset({APPLICATION_JSON, APPLICATION_XML, TEXT_XML})


def is_textual(content_type: Optional[str]) -> bool:
    """True for text/* plus JSON and XML."""
    if content_type is None:
        return False
    return content_type.startswith("text/") or content_type in _TEXTUAL_APPLICATION_TYPES


def with_utf8(content_type: Optional[str]) -> Optional[str]:
    """
    Append a utf-8 charset to textual content types.

    Blank input is returned as-is, and a type that already names a
    charset is left alone. Non-textual types pass through unchanged.
    """
    if content_type is None or not content_type.strip():
        return content_type
    if is_textual(content_type):
        if "charset=" in content_type:
            return content_type
        return f"{content_type}; charset=utf-8"
    return content_type
