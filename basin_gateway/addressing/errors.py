from __future__ import annotations

from ..errors import BadRequestError


class AddressError(BadRequestError):
    """Address string could not be parsed or failed its checksum."""

    code = "invalid_address"


class InvalidKeyError(BadRequestError):
    """Object key is empty or whitespace-only."""

    code = "invalid_key"
