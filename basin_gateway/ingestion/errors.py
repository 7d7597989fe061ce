from __future__ import annotations

from ..errors import BadRequestError


class IngestionError(BadRequestError):
    """Multipart upload could not be turned into an upload intent."""

    code = "ingestion_error"


class PayloadTooLargeError(IngestionError):
    code = "payload_too_large"


class MissingFieldError(IngestionError):
    code = "missing_field"


class StreamError(IngestionError):
    """The request body stream broke before the upload was complete."""

    code = "stream_error"
