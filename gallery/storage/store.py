from typing import Callable, List, Optional, Union
import re
import threading
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict
from ..core.models import Dimensions, ImageView

"""In-memory record store for uploaded images.

The store owns the id counter and every mutation. Records handed out by
`get` and `delete` are the stored objects themselves; callers treat them
as read-only.
"""

_ID_PATTERN = re.compile(r"-?[0-9]+")


def utc_now() -> str:
    # 2024-01-01T12:00:00.000Z
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_id(image_id: Union[int, str, None]) -> Optional[int]:
    """Interpret a path id as an int, or None when it is not one."""
    if isinstance(image_id, bool) or image_id is None:
        return None
    if isinstance(image_id, int):
        return image_id
    if not isinstance(image_id, str) or not _ID_PATTERN.fullmatch(image_id):
        return None
    return int(image_id)


class ImageRecord(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: int
    filename: str
    mime_type: str
    data: bytes
    size: int
    uploaded_at: str
    dimensions: Optional[Dimensions] = None

    def public_view(self) -> ImageView:
        return ImageView(
            id=self.id,
            filename=self.filename,
            mime_type=self.mime_type,
            size=self.size,
            uploaded_at=self.uploaded_at,
            dimensions=self.dimensions,
        )


class ImageStore:
    """Ordered collection of image records keyed by an incrementing id."""

    def __init__(self, clock: Optional[Callable[[], str]] = None):
        self._records: List[ImageRecord] = []
        self._next_id = 1
        self._clock = clock or utc_now
        self._lock = threading.Lock()

    @property
    def next_id(self) -> int:
        return self._next_id

    def add(
        self,
        filename: str,
        mime_type: str,
        data: bytes,
        size: int,
        dimensions: Optional[Dimensions] = None,
    ) -> ImageRecord:
        if size != len(data):
            raise ValueError("size_mismatch")
        with self._lock:
            record = ImageRecord(
                id=self._next_id,
                filename=filename,
                mime_type=mime_type,
                data=data,
                size=size,
                uploaded_at=self._clock(),
                dimensions=dimensions,
            )
            self._next_id += 1
            self._records.append(record)
            return record

    def attach_dimensions(self, image_id: Union[int, str], dimensions: Dimensions) -> ImageRecord:
        """Attach dimensions to a record that does not have them yet."""
        with self._lock:
            record = self._find(parse_id(image_id))
            if record is None:
                raise KeyError("not_found")
            if record.dimensions is not None:
                raise ValueError("dimensions_already_set")
            record.dimensions = dimensions
            return record

    def get(self, image_id: Union[int, str, None]) -> Optional[ImageRecord]:
        with self._lock:
            return self._find(parse_id(image_id))

    def get_all(self) -> List[ImageView]:
        with self._lock:
            return [r.public_view() for r in self._records]

    def delete(self, image_id: Union[int, str, None]) -> Optional[ImageRecord]:
        wanted = parse_id(image_id)
        with self._lock:
            for index, record in enumerate(self._records):
                if record.id == wanted:
                    return self._records.pop(index)
        return None

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def _find(self, wanted: Optional[int]) -> Optional[ImageRecord]:
        if wanted is None:
            return None
        for record in self._records:
            if record.id == wanted:
                return record
        return None
