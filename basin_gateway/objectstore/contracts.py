from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, conint

U64 = conint(ge=0, le=2**64 - 1)


# ---------- Query ----------

class ListQuery(BaseModel):
    """Object store query options. ``limit=0`` means unbounded."""

    model_config = ConfigDict(frozen=True)

    prefix: str = ""
    delimiter: str = ""
    offset: U64 = 0
    limit: U64 = 0


class ObjectState(BaseModel):
    model_config = ConfigDict(frozen=True)

    cid: bytes
    resolved: bool = False
    size: U64 = 0
    metadata: Dict[str, str] = Field(default_factory=dict)


class ListResult(BaseModel):
    """Raw listing as returned by the store; keys and prefixes are byte strings."""

    model_config = ConfigDict(frozen=True)

    objects: List[Tuple[bytes, ObjectState]] = Field(default_factory=list)
    common_prefixes: List[bytes] = Field(default_factory=list)


# ---------- Submission ----------

class AddOptions(BaseModel):
    overwrite: bool = False
    metadata: Dict[str, str] = Field(default_factory=dict)


class TxReceipt(BaseModel):
    """Outcome of a broadcast transaction, returned verbatim to HTTP callers."""

    status: str = "committed"
    hash: str
    height: Optional[int] = None
    gas_used: Optional[int] = None
    sequence: Optional[int] = None
    data: Optional[Any] = None
