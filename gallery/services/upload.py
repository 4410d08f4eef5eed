from typing import Optional
import logging
from ..core.config import settings
from ..core.errors import (
    Err,
    ErrorKind,
    GalleryError,
    Ok,
    Result,
    FILE_TOO_LARGE_MESSAGE,
    MISSING_FILE_MESSAGE,
    UNSUPPORTED_TYPE_MESSAGE,
)
from ..storage.store import ImageStore

"""Upload pipeline: validate, derive dimensions, commit.

Each step is a hard gate. Validation failures never reach the store, and
a record is only inserted once its dimensions are known, so readers never
see a half-built record.
"""

logger = logging.getLogger(__name__)

# Acceptable image types
ALLOWED_IMAGE_CONTENT_TYPES = {"image/jpeg", "image/png"}

UPLOAD_FAILED_MESSAGE = "Failed to upload image"


def normalize_content_type(content_type: Optional[str]) -> str:
    """Lower-case media type with any `; param=...` suffix removed."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_presence(present: bool) -> None:
    if not present:
        raise GalleryError(ErrorKind.MISSING_FILE, MISSING_FILE_MESSAGE)


def validate_type(content_type: Optional[str]) -> str:
    ctype = normalize_content_type(content_type)
    if ctype not in ALLOWED_IMAGE_CONTENT_TYPES:
        raise GalleryError(ErrorKind.UNSUPPORTED_TYPE, UNSUPPORTED_TYPE_MESSAGE)
    return ctype


def validate_size(size: int, limit: Optional[int] = None) -> None:
    limit = settings.max_upload_bytes if limit is None else limit
    if size > limit:
        raise GalleryError(ErrorKind.FILE_TOO_LARGE, FILE_TOO_LARGE_MESSAGE)


class UploadPipeline:
    """Turn a raw file submission into a stored image record."""

    def __init__(self, store: ImageStore, deriver, max_bytes: Optional[int] = None):
        self.store = store
        self.deriver = deriver
        self.max_bytes = settings.max_upload_bytes if max_bytes is None else max_bytes

    async def run(self, filename: Optional[str], content_type: Optional[str], data: Optional[bytes]) -> Result:
        try:
            validate_presence(data is not None)
            mime_type = validate_type(content_type)
            validate_size(len(data), self.max_bytes)
        except GalleryError as e:
            logger.info("Upload rejected: %s", e.message)
            return Err.from_error(e)

        try:
            dimensions = await self.deriver.derive(data)
            record = self.store.add(
                filename=filename or "",
                mime_type=mime_type,
                data=data,
                size=len(data),
                dimensions=dimensions,
            )
        except Exception:
            logger.exception("Upload error")
            return Err(ErrorKind.INTERNAL, UPLOAD_FAILED_MESSAGE)

        total = self.store.count()
        logger.info(
            "Image uploaded: id=%s filename=%s size=%.2f MB dimensions=%sx%s totalImages=%s",
            record.id,
            record.filename,
            record.size / 1024 / 1024,
            dimensions.width,
            dimensions.height,
            total,
            extra={
                "image_id": record.id,
                "image_filename": record.filename,
                "size_mb": f"{record.size / 1024 / 1024:.2f}",
                "dimensions": f"{dimensions.width}x{dimensions.height}",
                "total_images": total,
            },
        )
        return Ok(record.public_view())
