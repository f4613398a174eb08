"""
Upload validation and log sanitization utilities.

The media type is sniffed from the leading bytes through Pillow's format
identification, independent of what the client declared. Image.open() only
parses the header, so no full decode happens here.
"""

import io
import logging
import re
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from app.config import settings
from app.core.errors import ValidationError

Image.MAX_IMAGE_PIXELS = settings.pil_max_image_pixels

logger = logging.getLogger(__name__)

# Pillow format name → (mime, extension)
_FORMATS = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "GIF": ("image/gif", "gif"),
    "WEBP": ("image/webp", "webp"),
    "BMP": ("image/bmp", "bmp"),
    "TIFF": ("image/tiff", "tif"),
    "ICO": ("image/x-icon", "ico"),
}


@dataclass(frozen=True)
class DetectedType:
    mime: str
    ext: str


def sniff_media_type(data: bytes) -> Optional[DetectedType]:
    """Identify the image format from magic bytes. Returns None when unknown."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        logger.info(f"[FILE] Could not identify content: {e}")
        return None

    if fmt in _FORMATS:
        mime, ext = _FORMATS[fmt]
        return DetectedType(mime=mime, ext=ext)

    mime = Image.MIME.get(fmt) if fmt else None
    if not mime:
        return None
    return DetectedType(mime=mime, ext=fmt.lower())


def validate_upload(
    data: bytes,
    declared_type: Optional[str] = None,
    max_size: Optional[int] = None,
) -> DetectedType:
    """Check size, sniffed type and allow-list. Raises ValidationError."""
    max_size = settings.max_upload_bytes if max_size is None else max_size

    if len(data) > max_size:
        raise ValidationError(
            f"File too large. Maximum size is {max_size // (1024 * 1024)}MB"
        )

    detected = sniff_media_type(data)
    if detected is None:
        raise ValidationError("Could not determine file type from content")

    if detected.mime not in settings.allowed_mime_types:
        raise ValidationError(
            f"File type '{detected.mime}' is not allowed. "
            f"Supported types: {', '.join(settings.allowed_mime_types)}"
        )

    if declared_type and declared_type != detected.mime:
        logger.warning(f"[FILE] MIME mismatch: declared={declared_type}, detected={detected.mime}")

    return detected


def sanitize_log_message(message: str) -> str:
    """Strip sensitive file paths from log messages."""
    msg = re.sub(r'\/[^\s]+\/tmp[a-zA-Z0-9_]+', '[TEMP_FILE]', message)
    msg = re.sub(r'\/[^\s]+\/([^\/\s]+)', r'.../\1', msg)
    return msg
