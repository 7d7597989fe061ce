"""HTTP gateway for a blockchain-backed object store."""

__version__ = "0.1.0"
