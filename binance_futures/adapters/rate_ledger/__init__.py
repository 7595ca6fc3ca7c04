"""Rate ledger adapters.

A small abstraction layer so the library can start with an in-memory ledger
and later move to a shared store without changing the transport or services.
"""

from binance_futures.adapters.rate_ledger.base import (
    AbstractRateLedger,
    LedgerState,
    LimitCategory,
    WindowCounters,
    window_key,
)
from binance_futures.adapters.rate_ledger.in_memory import InMemoryRateLedger

__all__ = [
    "AbstractRateLedger",
    "InMemoryRateLedger",
    "LedgerState",
    "LimitCategory",
    "WindowCounters",
    "window_key",
]
