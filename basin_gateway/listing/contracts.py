from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, StrictStr, conint

from ..objectstore.contracts import U64

StrictU64 = conint(strict=True, ge=0, le=2**64 - 1)

# Identity CID with an empty digest; shown when a stored CID cannot be decoded.
DEFAULT_CID = "baeaaaaa"


class ListRequest(BaseModel):
    """``/list`` body. Every field is optional; absent fields keep their default."""

    prefix: Optional[StrictStr] = None
    delimiter: Optional[StrictStr] = None
    offset: Optional[StrictU64] = None
    limit: Optional[StrictU64] = None

    def __str__(self) -> str:
        return f"prefix: {self.prefix!r}, delimiter: {self.delimiter!r}, offset: {self.offset}, limit: {self.limit}"


class ObjectValue(BaseModel):
    cid: str
    resolved: bool
    size: U64
    metadata: Dict[str, str] = Field(default_factory=dict)


class ListedObject(BaseModel):
    key: str
    value: ObjectValue


class ListResponse(BaseModel):
    objects: List[ListedObject] = Field(default_factory=list)
    common_prefixes: List[str] = Field(default_factory=list)
