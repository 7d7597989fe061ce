from __future__ import annotations
from abc import ABC, abstractmethod

from ..addressing import Address
from .contracts import AddOptions, ListQuery, ListResult, TxReceipt
from .signer import FaucetSigner


class SequenceSourcePort(ABC):
    @abstractmethod
    async def chain_id(self) -> int: ...

    @abstractmethod
    async def get_sequence(self, signer: FaucetSigner) -> int:
        """Next sequence number the chain expects from ``signer``."""


class AccountPort(ABC):
    @abstractmethod
    async def transfer(self, signer: FaucetSigner, sequence: int, to: Address, amount: int) -> TxReceipt: ...


class ObjectStorePort(ABC):
    @abstractmethod
    async def query(self, store: Address, query: ListQuery) -> ListResult: ...

    @abstractmethod
    async def add(
        self,
        signer: FaucetSigner,
        sequence: int,
        store: Address,
        key: str,
        payload: bytes,
        options: AddOptions,
    ) -> TxReceipt: ...
