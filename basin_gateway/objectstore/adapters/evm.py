from __future__ import annotations

import asyncio
import logging
from typing import Optional

from aiohttp import ClientError, ClientTimeout
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TimeExhausted, Web3Exception

from ...addressing import Address
from ..contracts import TxReceipt
from ..errors import ChainError
from ..ports import AccountPort, SequenceSourcePort
from ..signer import FaucetSigner

log = logging.getLogger("objectstore.evm")

TRANSFER_GAS = 21000


class EvmChainClient(SequenceSourcePort, AccountPort):
    """Sequence reads and value transfers over the subnet's Ethereum JSON-RPC API."""

    def __init__(
        self,
        rpc_url: str,
        *,
        chain_id: Optional[int] = None,
        request_timeout: float = 20.0,
        receipt_timeout: float = 120.0,
        w3: Optional[AsyncWeb3] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.receipt_timeout = receipt_timeout
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": ClientTimeout(total=request_timeout)}))
        self._chain_id = chain_id

    async def chain_id(self) -> int:
        if self._chain_id is None:
            try:
                self._chain_id = int(await self.w3.eth.chain_id)
            except (Web3Exception, ClientError, asyncio.TimeoutError, OSError) as e:
                raise ChainError(f"chain id lookup failed: {e}") from e
        return self._chain_id

    async def get_sequence(self, signer: FaucetSigner) -> int:
        try:
            # "pending" counts transactions already in the mempool
            return int(await self.w3.eth.get_transaction_count(signer.eth_address, "pending"))
        except (Web3Exception, ClientError, asyncio.TimeoutError, OSError) as e:
            raise ChainError(f"sequence lookup failed: {e}") from e

    async def transfer(self, signer: FaucetSigner, sequence: int, to: Address, amount: int) -> TxReceipt:
        tx = {
            "to": to.to_eth(),
            "value": int(amount),
            "nonce": sequence,
            "chainId": await self.chain_id(),
            "gas": TRANSFER_GAS,
        }
        try:
            tx["gasPrice"] = await self.w3.eth.gas_price
            signed = signer.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except TimeExhausted as e:
            raise ChainError(f"transaction not included within {self.receipt_timeout}s") from e
        except (Web3Exception, ClientError, asyncio.TimeoutError, ValueError, OSError) as e:
            # nodes report JSON-RPC errors (nonce too low, underpriced, ...) as ValueError
            raise ChainError(f"broadcast failed: {e}") from e

        log.info("evm.transfer to=%s sequence=%d block=%s", to.to_eth(), sequence, receipt["blockNumber"])
        return TxReceipt(
            status="committed" if receipt["status"] == 1 else "failed",
            hash="0x" + bytes(tx_hash).hex(),
            height=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            sequence=sequence,
        )

    async def close(self) -> None:
        provider = self.w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
