from __future__ import annotations

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, constr

from ..addressing import Address

MAX_FILE_SIZE = 1024 * 1024 * 100  # 100 MiB
MAX_FIELD_SIZE = 4 * 1024

FIELD_ADDRESS = "address"
FIELD_KEY = "key"
FIELD_FILE = "file"
REQUIRED_FIELDS = (FIELD_ADDRESS, FIELD_KEY)


class AssemblerState(str, Enum):
    AWAITING_PART = "AWAITING_PART"
    READING_FIELD = "READING_FIELD"
    READING_FILE = "READING_FILE"
    DISCARDING = "DISCARDING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


class TextValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    data: bytes = b""

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


class FileValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    filename: str
    data: bytes = b""


UploadValue = Union[TextValue, FileValue]


class UploadIntent(BaseModel):
    """A validated ``/set`` request, consumed once by the transaction sequencer."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    address: Address
    key: constr(min_length=1)
    filename: Optional[str] = None
    payload: bytes = b""

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def value(self) -> UploadValue:
        # a "file" part sent without a filename is a plain string value
        if self.filename is None:
            return TextValue(data=self.payload)
        return FileValue(filename=self.filename, data=self.payload)

    def describe(self) -> str:
        return f"address={self.address} key={self.key!r} filename={self.filename!r} size={self.size}"
