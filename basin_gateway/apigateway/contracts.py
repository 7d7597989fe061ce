from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, StrictStr


class GetRequest(BaseModel):
    """``/get`` body. ``address`` defaults to the faucet's own account."""

    key: StrictStr
    address: Optional[StrictStr] = None

    def __str__(self) -> str:
        return f"key: {self.key!r}, address: {self.address}"


class ErrorBody(BaseModel):
    message: str
