from __future__ import annotations
from .inmemory import InMemoryChain, InMemoryObjectStore, raw_cid
from .evm import EvmChainClient
from .objectapi import ObjectApiStore

__all__ = ["InMemoryChain", "InMemoryObjectStore", "raw_cid", "EvmChainClient", "ObjectApiStore"]
