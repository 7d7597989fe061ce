from __future__ import annotations
import logging
import mimetypes
from typing import Optional

from ..addressing import Address, normalize_address, normalize_key
from ..errors import UpstreamError
from ..ingestion import FileValue, TextValue, UploadIntent, UploadValue
from ..listing import ListResponse, project_list_result
from ..objectstore import AddOptions, Backend, FaucetSigner, ListQuery, ObjectStoreError, TxReceipt
from ..sequencer import TransactionSequencer
from .contracts import GetRequest

log = logging.getLogger("apigateway.service")

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
BINARY_CONTENT_TYPE = "application/octet-stream"


def add_options_for(value: UploadValue) -> AddOptions:
    if isinstance(value, FileValue):
        content_type = mimetypes.guess_type(value.filename)[0] or BINARY_CONTENT_TYPE
        return AddOptions(metadata={"filename": value.filename, "content-type": content_type})
    if isinstance(value, TextValue):
        return AddOptions(metadata={"content-type": TEXT_CONTENT_TYPE})
    raise TypeError(f"unsupported upload value: {type(value).__name__}")


class GatewayService:
    """Runs the three gateway operations against one object store with one faucet wallet."""

    def __init__(
        self,
        *,
        signer: FaucetSigner,
        store_address: Address,
        backend: Backend,
        sequencer: TransactionSequencer,
        max_file_size: int,
    ) -> None:
        self.signer = signer
        self.store_address = store_address
        self.backend = backend
        self.sequencer = sequencer
        self.max_file_size = max_file_size

    @property
    def network(self) -> str:
        return self.signer.network

    async def list(self, query: ListQuery) -> ListResponse:
        try:
            result = await self.backend.store.query(self.store_address, query)
        except ObjectStoreError as e:
            raise UpstreamError(f"list error: {e}") from e
        response = project_list_result(result)
        log.info("list.ok objects=%d prefixes=%d", len(response.objects), len(response.common_prefixes))
        return response

    async def get(self, req: GetRequest) -> TxReceipt:
        key = normalize_key(req.key)
        target: Optional[Address] = normalize_address(req.address, self.network) if req.address is not None else None
        to = target or self.signer.address
        log.info("get.submit key=%r address=%s", key, to)

        async def transfer(sequence: int) -> TxReceipt:
            return await self.backend.accounts.transfer(self.signer, sequence, to, 0)

        try:
            receipt = await self.sequencer.with_sequenced_submission(self.signer, transfer)
        except UpstreamError as e:
            raise UpstreamError(f"get error: {e.message}") from e
        log.info("get.ok key=%r hash=%s", key, receipt.hash)
        return receipt

    async def set(self, intent: UploadIntent) -> TxReceipt:
        options = add_options_for(intent.value)
        log.info("set.request %s", intent.describe())

        async def add(sequence: int) -> TxReceipt:
            return await self.backend.store.add(
                self.signer, sequence, self.store_address, intent.key, intent.payload, options
            )

        try:
            receipt = await self.sequencer.with_sequenced_submission(self.signer, add)
        except UpstreamError as e:
            raise UpstreamError(f"set error: {e.message}") from e
        log.info("set.ok key=%r size=%d hash=%s", intent.key, intent.size, receipt.hash)
        return receipt
