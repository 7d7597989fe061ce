from __future__ import annotations

import base64
import hashlib
import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ...addressing import Address
from ..contracts import AddOptions, ListQuery, ListResult, ObjectState, TxReceipt
from ..errors import KeyExists, ObjectStoreError
from ..ports import ObjectStorePort, SequenceSourcePort
from ..signer import FaucetSigner

log = logging.getLogger("objectstore.objectapi")


def _b64(value: str) -> bytes:
    return base64.b64decode(value, validate=True)


class ObjectApiStore(ObjectStorePort):
    """
    Object store client for the subnet's object API.

    query: POST {base}/v1/objectstores/{store}/query with the ListQuery as JSON;
           keys, CIDs and common prefixes come back base64-encoded.
    add:   POST {base}/v1/objectstores/{store}/objects as multipart; the signed
           envelope binds store, key, size, sha256, sequence and chain id.
    """

    def __init__(
        self,
        object_api_url: str,
        chain: SequenceSourcePort,
        *,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.chain = chain
        self.client = client or httpx.AsyncClient(base_url=object_api_url.rstrip("/"), timeout=timeout)

    async def _post(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            resp = await self.client.post(path, **kwargs)
        except httpx.HTTPError as e:
            raise ObjectStoreError(f"object api unreachable: {e}") from e
        if resp.status_code == 409:
            raise KeyExists(resp.text)
        if resp.is_error:
            raise ObjectStoreError(f"object api returned {resp.status_code}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as e:
            raise ObjectStoreError("object api returned invalid JSON") from e

    async def query(self, store: Address, query: ListQuery) -> ListResult:
        body = await self._post(f"/v1/objectstores/{store}/query", json=query.model_dump())
        try:
            objects = [
                (
                    _b64(item["key"]),
                    ObjectState(
                        cid=_b64(item["cid"]),
                        resolved=item.get("resolved", False),
                        size=item.get("size", 0),
                        metadata=item.get("metadata") or {},
                    ),
                )
                for item in body.get("objects", [])
            ]
            prefixes = [_b64(p) for p in body.get("common_prefixes", [])]
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise ObjectStoreError(f"unexpected query response: {e}") from e
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
        envelope = {
            "store": str(store),
            "key": key,
            "size": len(payload),
            "sha256": hashlib.sha256(payload).hexdigest(),
            "sequence": sequence,
            "chain_id": await self.chain.chain_id(),
            "overwrite": options.overwrite,
        }
        form = {k: json.dumps(v) if isinstance(v, bool) else str(v) for k, v in envelope.items()}
        form["from"] = str(signer.address)
        form["metadata"] = json.dumps(options.metadata)
        form["signature"] = signer.sign_envelope(envelope)
        files = {"data": (options.metadata.get("filename") or key, payload, "application/octet-stream")}

        body = await self._post(f"/v1/objectstores/{store}/objects", data=form, files=files)
        try:
            receipt = TxReceipt.model_validate(body)
        except ValidationError as e:
            raise ObjectStoreError(f"unexpected add response: {e}") from e
        log.info("objectapi.add store=%s key=%r size=%d sequence=%d", store, key, len(payload), sequence)
        return receipt

    async def close(self) -> None:
        await self.client.aclose()
