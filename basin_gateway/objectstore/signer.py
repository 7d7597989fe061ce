from __future__ import annotations

import json
import re
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import encode_defunct

from ..addressing import Address
from .errors import SignerError

_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def parse_secret_key(raw: str) -> str:
    """Validate a secp256k1 private key given as 32 bytes of hex."""
    text = (raw or "").strip()
    if not _KEY_RE.match(text):
        raise SignerError("private key must be 32 bytes of hex")
    if not text.startswith("0x"):
        text = "0x" + text
    try:
        Account.from_key(text)
    except ValueError as e:
        raise SignerError(f"invalid private key: {e}") from e
    return text


def canonical_json(envelope: Dict[str, Any]) -> str:
    return json.dumps(envelope, sort_keys=True, separators=(",", ":"))


class FaucetSigner:
    """The single wallet that pays for and signs every gateway transaction."""

    def __init__(self, private_key: str, network: str = "t") -> None:
        self._account = Account.from_key(parse_secret_key(private_key))
        self.network = network

    @property
    def eth_address(self) -> str:
        return self._account.address

    @property
    def address(self) -> Address:
        return Address.from_eth(self.eth_address, self.network)

    @property
    def key_id(self) -> str:
        """Identity used to serialize submissions made with this key."""
        return self.eth_address.lower()

    def sign_transaction(self, tx: Dict[str, Any]):
        return self._account.sign_transaction(tx)

    def sign_envelope(self, envelope: Dict[str, Any]) -> str:
        message = encode_defunct(text=canonical_json(envelope))
        signed = self._account.sign_message(message)
        return "0x" + bytes(signed.signature).hex()

    def __repr__(self) -> str:
        return f"FaucetSigner(address={self.eth_address})"
