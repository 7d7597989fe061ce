from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .contracts import AddOptions, ListQuery, ListResult, ObjectState, TxReceipt
from .errors import ChainError, KeyExists, ObjectStoreError, SequenceMismatch, SignerError
from .network import NETWORK_DEFAULTS, Network
from .ports import AccountPort, ObjectStorePort, SequenceSourcePort
from .signer import FaucetSigner, parse_secret_key
from .adapters import EvmChainClient, InMemoryChain, InMemoryObjectStore, ObjectApiStore


@dataclass
class Backend:
    """The collaborators one gateway process talks to."""

    sequences: SequenceSourcePort
    accounts: AccountPort
    store: ObjectStorePort

    async def close(self) -> None:
        for part in (self.store, self.accounts):
            close = getattr(part, "close", None)
            if close is not None:
                await close()


def make_backend(
    network: Network,
    *,
    rpc_url: Optional[str] = None,
    object_api_url: Optional[str] = None,
    chain_id: Optional[int] = None,
    request_timeout: float = 20.0,
) -> Backend:
    if network == Network.MEMORY:
        chain = InMemoryChain()
        return Backend(sequences=chain, accounts=chain, store=InMemoryObjectStore(chain))

    defaults = NETWORK_DEFAULTS[network]
    rpc_url = rpc_url or defaults.rpc_url
    object_api_url = object_api_url or defaults.object_api_url
    if not rpc_url:
        raise RuntimeError(f"rpc_url is required for network {network.value}")
    if not object_api_url:
        raise RuntimeError(f"object_api_url is required for network {network.value}")
    evm = EvmChainClient(rpc_url, chain_id=chain_id or defaults.chain_id, request_timeout=request_timeout)
    return Backend(sequences=evm, accounts=evm, store=ObjectApiStore(object_api_url, evm))


__all__ = [
    "AddOptions",
    "ListQuery",
    "ListResult",
    "ObjectState",
    "TxReceipt",
    "ChainError",
    "KeyExists",
    "ObjectStoreError",
    "SequenceMismatch",
    "SignerError",
    "NETWORK_DEFAULTS",
    "Network",
    "AccountPort",
    "ObjectStorePort",
    "SequenceSourcePort",
    "FaucetSigner",
    "parse_secret_key",
    "Backend",
    "make_backend",
]
