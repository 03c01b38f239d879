"""Infrastructure adapters: concrete implementations of the ports."""

from .sqlite_store import SqliteLedgerStore

__all__ = ["SqliteLedgerStore"]
