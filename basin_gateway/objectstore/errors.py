from __future__ import annotations


class ObjectStoreError(Exception):
    """Base class for chain and object store adapter failures."""


class ChainError(ObjectStoreError):
    """RPC or broadcast failure reported by the chain."""


class SequenceMismatch(ChainError):
    """The chain rejected a transaction because its sequence was not the next expected one."""


class KeyExists(ObjectStoreError):
    pass


class SignerError(ValueError):
    """Private key could not be parsed."""
