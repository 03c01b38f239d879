"""Port interfaces (Protocols).

Application services depend only on these, never on concrete adapters.
No sqlite or other infrastructure imports allowed here.
"""

from .clock import Clock, SystemClock
from .id_gen import IdProvider, SequentialIdProvider, UuidIdProvider
from .ledger_store import LedgerStore

__all__ = [
    "Clock",
    "IdProvider",
    "LedgerStore",
    "SequentialIdProvider",
    "SystemClock",
    "UuidIdProvider",
]
