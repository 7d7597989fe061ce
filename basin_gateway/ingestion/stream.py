from __future__ import annotations

import logging
from typing import AsyncIterable, Dict, List, Optional, Tuple

from python_multipart import MultipartParser
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import parse_options_header

from .assembler import UploadAssembler
from .contracts import MAX_FIELD_SIZE, MAX_FILE_SIZE, UploadIntent
from .errors import IngestionError

log = logging.getLogger("ingestion")

MULTIPART_FORM_DATA = "multipart/form-data"
MAX_HEADER_BYTES = 8 * 1024


def parse_boundary(content_type: str) -> bytes:
    ctype, params = parse_options_header(content_type or "")
    if ctype.decode("latin-1").lower() != MULTIPART_FORM_DATA:
        raise IngestionError("Invalid Content-Type")
    boundary = params.get(b"boundary")
    if not boundary:
        raise IngestionError("missing multipart boundary")
    return boundary


class _PartEvents:
    """Collects python-multipart callbacks into assembler events."""

    def __init__(self, assembler: UploadAssembler) -> None:
        self.assembler = assembler
        self._headers: List[Tuple[bytes, bytes]] = []
        self._field = bytearray()
        self._value = bytearray()
        self._header_bytes = 0
        self.closed = False

    def callbacks(self) -> Dict[str, object]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        self._headers = []
        self._header_bytes = 0

    def _count_header(self, n: int) -> None:
        self._header_bytes += n
        if self._header_bytes > MAX_HEADER_BYTES:
            raise IngestionError("multipart part headers too large")

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._count_header(end - start)
        self._field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._count_header(end - start)
        self._value += data[start:end]

    def on_header_end(self) -> None:
        self._headers.append((bytes(self._field).lower(), bytes(self._value)))
        self._field = bytearray()
        self._value = bytearray()

    def on_headers_finished(self) -> None:
        name, filename = self._disposition()
        self.assembler.begin_part(name, filename)

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        self.assembler.feed(data[start:end])

    def on_part_end(self) -> None:
        self.assembler.end_part()

    def on_end(self) -> None:
        self.closed = True

    def _disposition(self) -> Tuple[str, Optional[str]]:
        raw = next((v for k, v in self._headers if k == b"content-disposition"), None)
        if raw is None:
            raise IngestionError("multipart part is missing Content-Disposition")
        _, options = parse_options_header(raw)
        name = options.get(b"name")
        if name is None:
            raise IngestionError("multipart part is missing a name")
        filename = options.get(b"filename")
        try:
            return name.decode("utf-8"), filename.decode("utf-8") if filename is not None else None
        except UnicodeDecodeError:
            raise IngestionError("multipart part name is not valid UTF-8")


async def ingest_upload(
    stream: AsyncIterable[bytes],
    content_type: str,
    *,
    max_file_size: int = MAX_FILE_SIZE,
    max_field_size: int = MAX_FIELD_SIZE,
    network: str = "t",
) -> UploadIntent:
    """Consume a streaming ``multipart/form-data`` body into an UploadIntent.

    Every failure (bad framing, size violation, missing field, broken stream)
    surfaces as an ``IngestionError`` with the partial buffers discarded.
    """
    assembler = UploadAssembler(max_file_size=max_file_size, max_field_size=max_field_size, network=network)
    try:
        boundary = parse_boundary(content_type)
        events = _PartEvents(assembler)
        parser = MultipartParser(boundary, events.callbacks())
        async for chunk in stream:
            if chunk:
                parser.write(chunk)
        parser.finalize()
        if not events.closed:
            # stream ended before the closing boundary
            raise IngestionError("malformed multipart body")
        return assembler.finish()
    except IngestionError as e:
        assembler.fail(e.message)
        raise
    except MultipartParseError as e:
        assembler.fail(str(e))
        raise IngestionError("malformed multipart body") from e