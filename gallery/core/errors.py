"""Error kinds and the Ok/Err result type returned by the services.

Services never build HTTP responses; routers turn an `Err` into the
`{"success": false, "error": ...}` envelope using `http_status`.
"""

from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    MISSING_FILE = "missing_file"
    UNSUPPORTED_TYPE = "unsupported_type"
    FILE_TOO_LARGE = "file_too_large"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


_STATUS = {
    ErrorKind.MISSING_FILE: 400,
    ErrorKind.UNSUPPORTED_TYPE: 400,
    ErrorKind.FILE_TOO_LARGE: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INTERNAL: 500,
}

MISSING_FILE_MESSAGE = "No file uploaded"
UNSUPPORTED_TYPE_MESSAGE = "Only JPEG and PNG images are allowed!"
FILE_TOO_LARGE_MESSAGE = "File size too large. Maximum 3MB allowed."
NOT_FOUND_MESSAGE = "Image not found"


def http_status(kind: ErrorKind) -> int:
    return _STATUS[kind]


class GalleryError(Exception):
    """Raised for a failure that already carries its client-facing message."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return http_status(self.kind)


class Ok(Generic[T]):
    __slots__ = ("value",)

    def __init__(self, value: T):
        self.value = value

    @property
    def ok(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


class Err:
    __slots__ = ("kind", "message")

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message

    @property
    def ok(self) -> bool:
        return False

    @property
    def status_code(self) -> int:
        return http_status(self.kind)

    @classmethod
    def from_error(cls, exc: GalleryError) -> "Err":
        return cls(exc.kind, exc.message)

    def __repr__(self) -> str:
        return f"Err({self.kind.value!r}, {self.message!r})"


Result = Union[Ok[Any], Err]
