from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SequenceTicket:
    """Sequence number reserved for exactly one submission by one signer on one chain."""

    signer: str
    chain_id: int
    value: int

    def next(self) -> int:
        return self.value + 1
