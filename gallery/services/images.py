from typing import Union
import logging
from ..core.errors import Err, ErrorKind, Ok, Result, NOT_FOUND_MESSAGE
from ..core.models import DeletedImage
from ..storage.store import ImageStore

logger = logging.getLogger(__name__)


def fetch_image(store: ImageStore, image_id: Union[int, str]) -> Result:
    """Look up a full record (bytes included) for the raw download."""
    record = store.get(image_id)
    if record is None:
        return Err(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
    return Ok(record)


def delete_image(store: ImageStore, image_id: Union[int, str]) -> Result:
    """Remove one record; the id counter is left untouched."""
    deleted = store.delete(image_id)
    if deleted is None:
        return Err(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

    total = store.count()
    logger.info(
        "Image deleted: id=%s filename=%s totalImages=%s",
        deleted.id,
        deleted.filename,
        total,
        extra={"image_id": deleted.id, "image_filename": deleted.filename, "total_images": total},
    )
    return Ok(DeletedImage(id=deleted.id))
