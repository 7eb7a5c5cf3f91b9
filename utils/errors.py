"""
Error Types
===========
The four ways the ledger pipeline can go wrong, as exception classes.

- ConfigurationError: no wallet or RPC endpoint; fatal, raised before any I/O
- TransientFetchError: the RPC node failed us; retried (paging) or deferred (fetching)
- DataIntegrityError: a cached transaction is malformed; logged, never fatal
- DomainError: the transaction itself failed on-chain; recorded, never fatal
"""


class LedgerError(Exception):
    """Base class for every error raised by the ledger pipeline."""


class ConfigurationError(LedgerError):
    """Required configuration is missing or invalid."""


class TransientFetchError(LedgerError):
    """A remote call failed (network, HTTP status, JSON-RPC error, timeout)."""

    def __init__(self, method: str, message: str):
        super().__init__(f"{method}: {message}")
        self.method = method


class TransactionNotFoundError(TransientFetchError):
    """getTransaction returned null for a signature."""

    def __init__(self, signature: str):
        super().__init__("getTransaction", f"transaction not found: {signature}")
        self.signature = signature


class DataIntegrityError(LedgerError):
    """A cached transaction record is missing required fields or cannot be parsed."""


class DomainError(LedgerError):
    """The transaction failed on-chain (meta.err is set)."""
