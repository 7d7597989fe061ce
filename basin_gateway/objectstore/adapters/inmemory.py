from __future__ import annotations

import asyncio
import hashlib
import logging
import threading
from typing import Any, Dict, List, Optional

from multiformats import CID

from ...addressing import Address
from ..contracts import AddOptions, ListQuery, ListResult, ObjectState, TxReceipt
from ..errors import KeyExists, SequenceMismatch
from ..ports import AccountPort, ObjectStorePort, SequenceSourcePort
from ..signer import FaucetSigner

log = logging.getLogger("objectstore.inmemory")

LOCAL_CHAIN_ID = 31415926

# CIDv1, raw codec, sha2-256 multihash
_CID_PREFIX = bytes([0x01, 0x55, 0x12, 0x20])


def raw_cid(payload: bytes) -> bytes:
    return _CID_PREFIX + hashlib.sha256(payload).digest()


class InMemoryChain(SequenceSourcePort, AccountPort):
    """
    Single-process ledger enforcing the same sequence rule as the real chain:
    a transaction is accepted only if it carries the signer's next sequence.
    ``latency`` adds an await point to every call so concurrent callers interleave.
    """

    def __init__(self, chain_id: int = LOCAL_CHAIN_ID, latency: float = 0.0) -> None:
        self._chain_id = chain_id
        self.latency = latency
        self._lock = threading.RLock()
        self._sequences: Dict[str, int] = {}
        self._height = 0
        self.transactions: List[Dict[str, Any]] = []
        self.balances: Dict[str, int] = {}

    async def _tick(self) -> None:
        await asyncio.sleep(self.latency)

    async def chain_id(self) -> int:
        return self._chain_id

    async def get_sequence(self, signer: FaucetSigner) -> int:
        await self._tick()
        with self._lock:
            return self._sequences.get(signer.key_id, 0)

    def submit(self, signer: FaucetSigner, sequence: int, kind: str, data: Optional[Dict[str, Any]] = None) -> TxReceipt:
        with self._lock:
            expected = self._sequences.get(signer.key_id, 0)
            if sequence != expected:
                raise SequenceMismatch(f"invalid sequence: expected {expected}, got {sequence}")
            self._sequences[signer.key_id] = expected + 1
            self._height += 1
            tx_hash = hashlib.sha256(f"{signer.key_id}:{sequence}:{kind}".encode("utf-8")).hexdigest()
            self.transactions.append({"hash": tx_hash, "signer": signer.key_id, "sequence": sequence, "kind": kind, **(data or {})})
            log.debug("chain.submit kind=%s sequence=%d height=%d", kind, sequence, self._height)
            return TxReceipt(hash=f"0x{tx_hash}", height=self._height, gas_used=0, sequence=sequence)

    async def transfer(self, signer: FaucetSigner, sequence: int, to: Address, amount: int) -> TxReceipt:
        await self._tick()
        receipt = self.submit(signer, sequence, "transfer", {"to": str(to), "amount": amount})
        with self._lock:
            self.balances[str(to)] = self.balances.get(str(to), 0) + amount
        return receipt


class InMemoryObjectStore(ObjectStorePort):
    def __init__(self, chain: InMemoryChain) -> None:
        self.chain = chain
        self._lock = threading.RLock()
        self._stores: Dict[str, Dict[str, ObjectState]] = {}

    async def query(self, store: Address, query: ListQuery) -> ListResult:
        await self.chain._tick()
        with self._lock:
            entries = sorted(self._stores.get(str(store), {}).items())

        objects = []
        prefixes: List[bytes] = []
        skipped = 0
        count = 0
        for key, state in entries:
            if not key.startswith(query.prefix):
                continue
            if skipped < query.offset:
                skipped += 1
                continue
            if query.limit and count >= query.limit:
                break
            count += 1
            rest = key[len(query.prefix):]
            if query.delimiter and query.delimiter in rest:
                cut = len(query.prefix) + rest.index(query.delimiter) + len(query.delimiter)
                common = key[:cut].encode("utf-8")
                if common not in prefixes:
                    prefixes.append(common)
                continue
            objects.append((key.encode("utf-8"), state))
        return ListResult(objects=objects, common_prefixes=prefixes)

    async def add(
        self,
        signer: FaucetSigner,
        sequence: int,
        store: Address,
        key: str,
        payload: bytes,
        options: AddOptions,
    ) -> TxReceipt:
        await self.chain._tick()
        with self._lock:
            bucket = self._stores.setdefault(str(store), {})
            if key in bucket and not options.overwrite:
                raise KeyExists(f"key exists: {key}")
            cid = raw_cid(payload)
            receipt = self.chain.submit(signer, sequence, "add", {"store": str(store), "key": key, "size": len(payload)})
            bucket[key] = ObjectState(cid=cid, resolved=True, size=len(payload), metadata=dict(options.metadata))
        return receipt.model_copy(update={"data": str(CID.decode(cid))})
