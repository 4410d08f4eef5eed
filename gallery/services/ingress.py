from typing import AsyncIterator, List, Optional, Tuple
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from ..core.errors import ErrorKind, GalleryError, MISSING_FILE_MESSAGE, FILE_TOO_LARGE_MESSAGE
from .upload import validate_type, validate_size

"""Streaming reader for the multipart `image` field.

The body is parsed chunk by chunk as it arrives. The part's Content-Type
is checked as soon as its headers are complete, and reading stops once
the file passes the size limit, so a rejected upload is never buffered
in full.
"""

IMAGE_FIELD = b"image"

# Room for part headers and other small form fields
FORM_OVERHEAD = 64 * 1024


class IncomingFile:
    __slots__ = ("filename", "content_type", "data")

    def __init__(self, filename: str, content_type: str, data: bytes):
        self.filename = filename
        self.content_type = content_type
        self.data = data


class ImagePartCollector:
    """python-multipart callbacks that keep only the first `image` file part."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        self.filename: Optional[str] = None
        self.content_type: Optional[str] = None
        self.data = bytearray()
        self.found = False
        self.done = False
        self.error: Optional[GalleryError] = None
        self._in_image = False
        self._headers: List[Tuple[bytes, bytes]] = []
        self._field = b""
        self._value = b""

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }

    def on_part_begin(self) -> None:
        self._headers = []

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._value += data[start:end]

    def on_header_end(self) -> None:
        self._headers.append((self._field.lower(), self._value))
        self._field = b""
        self._value = b""

    def on_headers_finished(self) -> None:
        if self.found or self.error is not None:
            return
        headers = dict(self._headers)
        _, options = parse_options_header(headers.get(b"content-disposition", b""))
        # A plain form field named `image` is not a file
        if options.get(b"name") != IMAGE_FIELD or b"filename" not in options:
            return
        self.found = True
        self.filename = options[b"filename"].decode("utf-8", "replace")
        try:
            self.content_type = validate_type(headers.get(b"content-type", b"").decode("latin-1"))
        except GalleryError as e:
            self.error = e
            return
        self._in_image = True

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if not self._in_image or self.error is not None:
            return
        self.data += data[start:end]
        try:
            validate_size(len(self.data), self.max_bytes)
        except GalleryError as e:
            self.error = e
            self._in_image = False

    def on_part_end(self) -> None:
        if self._in_image:
            self._in_image = False
            self.done = True


async def receive_image(
    content_type: Optional[str],
    chunks: AsyncIterator[bytes],
    max_bytes: int,
) -> IncomingFile:
    """Read the `image` file from a multipart body stream.

    Raises GalleryError for a missing file, an unsupported type or an
    oversize upload, without consuming the rest of the stream.
    """
    ctype, params = parse_options_header(content_type or "")
    boundary = params.get(b"boundary")
    if ctype != b"multipart/form-data" or not boundary:
        raise GalleryError(ErrorKind.MISSING_FILE, MISSING_FILE_MESSAGE)

    collector = ImagePartCollector(max_bytes)
    parser = MultipartParser(boundary, collector.callbacks())
    received = 0
    try:
        async for chunk in chunks:
            if not chunk:
                continue
            received += len(chunk)
            parser.write(chunk)
            if collector.error is not None:
                raise collector.error
            if collector.done:
                break
            if received > max_bytes + FORM_OVERHEAD:
                raise GalleryError(ErrorKind.FILE_TOO_LARGE, FILE_TOO_LARGE_MESSAGE)
        else:
            parser.finalize()
    except MultipartParseError:
        raise GalleryError(ErrorKind.MISSING_FILE, MISSING_FILE_MESSAGE)

    if collector.error is not None:
        raise collector.error
    if not collector.done:
        raise GalleryError(ErrorKind.MISSING_FILE, MISSING_FILE_MESSAGE)
    return IncomingFile(collector.filename, collector.content_type, bytes(collector.data))
