from __future__ import annotations
from .address import Address, EAM_NAMESPACE, normalize_address, normalize_key
from .errors import AddressError, InvalidKeyError

__all__ = [
    "Address",
    "EAM_NAMESPACE",
    "normalize_address",
    "normalize_key",
    "AddressError",
    "InvalidKeyError",
]
