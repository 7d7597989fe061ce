from __future__ import annotations

import logging
from typing import Dict, Optional

from ..addressing import normalize_address, normalize_key
from ..errors import BadRequestError
from .contracts import (
    FIELD_ADDRESS,
    FIELD_FILE,
    FIELD_KEY,
    MAX_FIELD_SIZE,
    MAX_FILE_SIZE,
    REQUIRED_FIELDS,
    AssemblerState,
    UploadIntent,
)
from .errors import IngestionError, MissingFieldError, PayloadTooLargeError

log = logging.getLogger("ingestion")

_TERMINAL = (AssemblerState.COMPLETE, AssemblerState.FAILED)


class UploadAssembler:
    """
    Per-request state machine turning multipart part events into an UploadIntent.

        AWAITING_PART --begin_part(address|key)--> READING_FIELD
        AWAITING_PART --begin_part(file)---------> READING_FILE
        AWAITING_PART --begin_part(other)--------> DISCARDING
        READING_* / DISCARDING --end_part()------> AWAITING_PART
        AWAITING_PART --finish()-----------------> COMPLETE
        any non-terminal --fail() / violation----> FAILED

    Buffers are bounded: field parts by ``max_field_size``, the file part by
    ``max_file_size``. Nothing is visible outside the assembler until ``finish``.
    """

    def __init__(
        self,
        *,
        max_file_size: int = MAX_FILE_SIZE,
        max_field_size: int = MAX_FIELD_SIZE,
        network: str = "t",
    ) -> None:
        self.max_file_size = max_file_size
        self.max_field_size = max_field_size
        self.network = network
        self.state = AssemblerState.AWAITING_PART
        self.failure: Optional[str] = None

        self._fields: Dict[str, str] = {}
        self._part_name: Optional[str] = None
        self._part_buf = bytearray()
        self._filename: Optional[str] = None
        self._payload = bytearray()
        self._discarded = 0

    # ---------- events ----------
    def begin_part(self, name: str, filename: Optional[str] = None) -> None:
        self._expect(AssemblerState.AWAITING_PART)
        self._part_name = name
        self._part_buf = bytearray()
        if name == FIELD_FILE:
            self._filename = filename
            self._payload = bytearray()
            self.state = AssemblerState.READING_FILE
        elif name in REQUIRED_FIELDS:
            self.state = AssemblerState.READING_FIELD
        else:
            self.state = AssemblerState.DISCARDING

    def feed(self, chunk: bytes) -> None:
        if self.state == AssemblerState.READING_FILE:
            if len(self._payload) + len(chunk) > self.max_file_size:
                self._abort(PayloadTooLargeError("payload too large"))
            self._payload += chunk
        elif self.state == AssemblerState.READING_FIELD:
            if len(self._part_buf) + len(chunk) > self.max_field_size:
                self._abort(PayloadTooLargeError("field too large"))
            self._part_buf += chunk
        elif self.state == AssemblerState.DISCARDING:
            self._discarded += len(chunk)
        else:
            self._unexpected()

    def end_part(self) -> None:
        if self.state == AssemblerState.READING_FIELD:
            try:
                value = bytes(self._part_buf).decode("utf-8")
            except UnicodeDecodeError:
                self._abort(IngestionError(f"field {self._part_name!r} is not valid UTF-8"))
            self._fields[self._part_name] = value
        elif self.state == AssemblerState.DISCARDING:
            log.debug("ingestion.discard part=%r bytes=%d", self._part_name, self._discarded)
            self._discarded = 0
        elif self.state != AssemblerState.READING_FILE:
            self._unexpected()
        self._part_name = None
        self._part_buf = bytearray()
        self.state = AssemblerState.AWAITING_PART

    def finish(self) -> UploadIntent:
        self._expect(AssemblerState.AWAITING_PART)
        for name in REQUIRED_FIELDS:
            if name not in self._fields:
                self._abort(MissingFieldError(f"missing field: {name}"))
        try:
            address = normalize_address(self._fields[FIELD_ADDRESS], self.network)
            key = normalize_key(self._fields[FIELD_KEY])
        except BadRequestError as e:
            self._abort(e)
        intent = UploadIntent(
            address=address,
            key=key,
            filename=self._filename,
            payload=bytes(self._payload),
        )
        self._release()
        self.state = AssemblerState.COMPLETE
        return intent

    def fail(self, reason: str) -> None:
        """Move to FAILED and drop whatever was buffered. Idempotent."""
        if self.state == AssemblerState.FAILED:
            return
        self.failure = reason
        self._release()
        self.state = AssemblerState.FAILED
        log.info("ingestion.failed reason=%s", reason)

    # ---------- helpers ----------
    @property
    def buffered(self) -> int:
        return len(self._payload) + len(self._part_buf)

    def _release(self) -> None:
        self._fields = {}
        self._part_buf = bytearray()
        self._payload = bytearray()
        self._filename = None

    def _abort(self, err: BadRequestError) -> None:
        self.fail(err.message)
        raise err

    def _expect(self, state: AssemblerState) -> None:
        if self.state != state:
            self._unexpected()

    def _unexpected(self) -> None:
        if self.state in _TERMINAL:
            raise IngestionError("upload already finished")
        self._abort(IngestionError("malformed multipart body"))
