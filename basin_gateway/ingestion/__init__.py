from __future__ import annotations
from .contracts import (
    MAX_FIELD_SIZE,
    MAX_FILE_SIZE,
    AssemblerState,
    FileValue,
    TextValue,
    UploadIntent,
    UploadValue,
)
from .errors import IngestionError, MissingFieldError, PayloadTooLargeError, StreamError
from .assembler import UploadAssembler
from .stream import MULTIPART_FORM_DATA, ingest_upload, parse_boundary

__all__ = [
    "MAX_FIELD_SIZE",
    "MAX_FILE_SIZE",
    "MULTIPART_FORM_DATA",
    "AssemblerState",
    "FileValue",
    "TextValue",
    "UploadIntent",
    "UploadValue",
    "UploadAssembler",
    "IngestionError",
    "MissingFieldError",
    "PayloadTooLargeError",
    "StreamError",
    "ingest_upload",
    "parse_boundary",
]
