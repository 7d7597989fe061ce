from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from ..errors import GatewayError
from ..objectstore.ports import SequenceSourcePort
from ..objectstore.signer import FaucetSigner
from .contracts import SequenceTicket
from .errors import SequencerError, SubmissionTimeout

log = logging.getLogger("sequencer")

T = TypeVar("T")
Operation = Callable[[int], Awaitable[T]]


class TransactionSequencer:
    """
    Serializes every signing operation per signer identity.

    One FIFO ``asyncio.Lock`` per signer admits a single operation at a time.
    The holder reads the next sequence from the chain, runs the operation with
    it, and releases the lock on every exit path. A successful submission
    advances a local floor so the next holder never reuses a sequence the chain
    has not indexed yet; a failed one clears the floor so the next holder
    re-reads chain state. Failures are reported, never retried.
    """

    def __init__(self, source: SequenceSourcePort, *, submit_timeout: Optional[float] = 60.0) -> None:
        self.source = source
        self.submit_timeout = submit_timeout
        self._locks: Dict[str, asyncio.Lock] = {}
        self._floor: Dict[str, int] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def busy(self, signer: FaucetSigner) -> bool:
        lock = self._locks.get(signer.key_id)
        return lock is not None and lock.locked()

    async def with_sequenced_submission(self, signer: FaucetSigner, operation: Operation) -> T:
        key = signer.key_id
        async with self._lock_for(key):
            ticket = await self._reserve(signer)
            try:
                result = await self._run(operation, ticket)
            except BaseException:
                # covers cancellation too: the sequence is not consumed
                self._floor.pop(key, None)
                raise
            self._floor[key] = ticket.next()
            log.info("sequencer.submit ok signer=%s chain=%d sequence=%d", key, ticket.chain_id, ticket.value)
            return result

    async def _reserve(self, signer: FaucetSigner) -> SequenceTicket:
        try:
            chain_id = await self.source.chain_id()
            on_chain = await self.source.get_sequence(signer)
        except GatewayError:
            raise
        except Exception as e:
            log.warning("sequencer.reserve err signer=%s error=%s", signer.key_id, e)
            raise SequencerError(f"sequence lookup failed: {e}") from e
        value = max(on_chain, self._floor.get(signer.key_id, 0))
        log.debug("sequencer.reserve signer=%s on_chain=%d value=%d", signer.key_id, on_chain, value)
        return SequenceTicket(signer=signer.key_id, chain_id=chain_id, value=value)

    async def _run(self, operation: Operation, ticket: SequenceTicket) -> T:
        try:
            return await asyncio.wait_for(operation(ticket.value), timeout=self.submit_timeout)
        except asyncio.TimeoutError as e:
            log.warning("sequencer.submit timeout signer=%s sequence=%d", ticket.signer, ticket.value)
            raise SubmissionTimeout(f"submission timed out after {self.submit_timeout}s") from e
        except GatewayError:
            raise
        except Exception as e:
            log.warning("sequencer.submit err signer=%s sequence=%d error=%s", ticket.signer, ticket.value, e)
            raise SequencerError(str(e)) from e
