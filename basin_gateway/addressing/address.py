from __future__ import annotations

import base64
import hashlib
import re
from dataclasses import dataclass
from typing import Tuple

from eth_utils import is_checksum_address, to_checksum_address

from .errors import AddressError, InvalidKeyError

# Native address protocols
ID = 0
SECP256K1 = 1
ACTOR = 2
BLS = 3
DELEGATED = 4

# Namespace of the Ethereum address manager; 0x addresses map onto it.
EAM_NAMESPACE = 10

NETWORKS = ("f", "t")
CHECKSUM_LEN = 4
MAX_SUBADDRESS_LEN = 54
MAX_U64 = 2**64 - 1

_PAYLOAD_LEN = {SECP256K1: 20, ACTOR: 20, BLS: 48}
_HEX_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_BASE32_RE = re.compile(r"^[a-z2-7]+$")
_DECIMAL_RE = re.compile(r"^[0-9]{1,20}$")


def _leb128(n: int) -> bytes:
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            return bytes(out)


def _checksum(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=CHECKSUM_LEN).digest()


def _b32encode(raw: bytes) -> str:
    return base64.b32encode(raw).decode("ascii").lower().rstrip("=")


def _b32decode(text: str) -> bytes:
    if not _BASE32_RE.match(text):
        raise AddressError("invalid base32 payload")
    padded = text.upper() + "=" * (-len(text) % 8)
    try:
        return base64.b32decode(padded)
    except ValueError as e:  # binascii.Error
        raise AddressError(f"invalid base32 payload: {e}") from e


def _parse_u64(text: str, what: str) -> int:
    if not _DECIMAL_RE.match(text):
        raise AddressError(f"invalid {what}")
    value = int(text)
    if value > MAX_U64:
        raise AddressError(f"{what} out of range")
    return value


@dataclass(frozen=True)
class Address:
    """A parsed chain address in its native form."""

    protocol: int
    payload: bytes
    network: str = "t"
    namespace: int = 0

    def _checksum_input(self) -> bytes:
        if self.protocol == DELEGATED:
            return bytes([DELEGATED]) + _leb128(self.namespace) + self.payload
        return bytes([self.protocol]) + self.payload

    def __str__(self) -> str:
        head = f"{self.network}{self.protocol}"
        if self.protocol == ID:
            return head + str(int.from_bytes(self.payload, "big"))
        body = _b32encode(self.payload + _checksum(self._checksum_input()))
        if self.protocol == DELEGATED:
            return f"{head}{self.namespace}f{body}"
        return head + body

    @property
    def actor_id(self) -> int:
        if self.protocol != ID:
            raise AddressError("not an actor id address")
        return int.from_bytes(self.payload, "big")

    def is_eth(self) -> bool:
        return self.protocol == DELEGATED and self.namespace == EAM_NAMESPACE and len(self.payload) == 20

    def to_eth(self) -> str:
        """Checksummed 0x form; only defined for Ethereum-managed delegated addresses."""
        if not self.is_eth():
            raise AddressError("address has no 0x form")
        return to_checksum_address("0x" + self.payload.hex())

    @classmethod
    def from_eth(cls, hex_address: str, network: str = "t") -> "Address":
        return cls(protocol=DELEGATED, payload=bytes.fromhex(hex_address[2:]), network=network, namespace=EAM_NAMESPACE)

    @classmethod
    def from_id(cls, actor_id: int, network: str = "t") -> "Address":
        # payload holds the big-endian id so __str__ can print it back in decimal
        return cls(protocol=ID, payload=actor_id.to_bytes(8, "big"), network=network)


def _parse_hex(raw: str, network: str) -> Address:
    if not _HEX_RE.match(raw):
        raise AddressError("malformed hex address")
    digits = raw[2:]
    mixed_case = digits != digits.lower() and digits != digits.upper()
    if mixed_case and not is_checksum_address(raw):
        raise AddressError("address checksum mismatch")
    return Address.from_eth(raw, network)


def _split_delegated(rest: str) -> Tuple[int, str]:
    ns_text, sep, body = rest.partition("f")
    if not sep:
        raise AddressError("delegated address is missing its namespace separator")
    return _parse_u64(ns_text, "namespace"), body


def _parse_native(raw: str) -> Address:
    if len(raw) < 3:
        raise AddressError("address too short")
    network, proto_ch, rest = raw[0], raw[1], raw[2:]
    if network not in NETWORKS:
        raise AddressError(f"unknown network prefix {network!r}")
    if proto_ch not in "01234":
        raise AddressError(f"unknown address protocol {proto_ch!r}")
    protocol = int(proto_ch)

    if protocol == ID:
        return Address.from_id(_parse_u64(rest, "actor id"), network)

    namespace = 0
    if protocol == DELEGATED:
        namespace, rest = _split_delegated(rest)

    decoded = _b32decode(rest)
    if len(decoded) <= CHECKSUM_LEN:
        raise AddressError("address payload too short")
    payload, checksum = decoded[:-CHECKSUM_LEN], decoded[-CHECKSUM_LEN:]

    if protocol == DELEGATED:
        if len(payload) > MAX_SUBADDRESS_LEN:
            raise AddressError("delegated subaddress too long")
    elif len(payload) != _PAYLOAD_LEN[protocol]:
        raise AddressError("invalid payload length")

    address = Address(protocol=protocol, payload=payload, network=network, namespace=namespace)
    if _checksum(address._checksum_input()) != checksum:
        raise AddressError("address checksum mismatch")
    # base32 with trailing garbage bits decodes fine but would not round-trip
    if str(address) != raw:
        raise AddressError("non-canonical address encoding")
    return address


def normalize_address(raw: str, network: str = "t") -> Address:
    """Parse a ``0x`` EVM address or a native ``f``/``t`` address.

    Raises :class:`AddressError` (a ``BadRequestError``) for anything else, so the
    function is total over arbitrary strings. ``network`` only applies to 0x
    input; native addresses keep their own prefix.
    """
    if not isinstance(raw, str):
        raise AddressError("address must be a string")
    text = raw.strip()
    if not text:
        raise AddressError("address is empty")
    if text[:2].lower() == "0x":
        return _parse_hex(text, network)
    return _parse_native(text.lower())


def normalize_key(raw: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidKeyError("key must not be empty")
    return raw
