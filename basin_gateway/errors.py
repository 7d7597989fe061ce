from __future__ import annotations
from typing import Dict, Optional


class GatewayError(Exception):
    """Base error converted into a JSON error response by the gateway."""

    code: str = "internal_error"
    message: str = "Internal server error"
    status_code: int = 500

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, str]:
        return {"message": self.message}


class BadRequestError(GatewayError):
    """Client-caused failure: malformed input, wrong content type, oversized upload."""

    code = "bad_request"
    message = "Bad request"
    status_code = 400


class ClientGoneError(BadRequestError):
    """The client disconnected before its request was served."""

    code = "client_disconnected"
    message = "client disconnected"


class UpstreamError(GatewayError):
    """Chain, RPC or object store failure. Never retried by the gateway."""

    code = "upstream_error"
    message = "Upstream dependency failed"
    status_code = 500
