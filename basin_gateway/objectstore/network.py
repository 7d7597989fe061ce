from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Network(str, Enum):
    TESTNET = "testnet"
    LOCALNET = "localnet"
    MEMORY = "memory"

    @property
    def address_prefix(self) -> str:
        # every supported network uses testnet-style addresses
        return "t"


@dataclass(frozen=True)
class NetworkDefaults:
    rpc_url: Optional[str] = None
    object_api_url: Optional[str] = None
    chain_id: Optional[int] = None


NETWORK_DEFAULTS = {
    Network.TESTNET: NetworkDefaults(),
    Network.LOCALNET: NetworkDefaults(rpc_url="http://127.0.0.1:8545", object_api_url="http://127.0.0.1:8001"),
    Network.MEMORY: NetworkDefaults(),
}
