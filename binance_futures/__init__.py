"""Async client for the Binance futures REST API with a rate-limit ledger."""

from binance_futures.adapters.rate_ledger import (
    AbstractRateLedger,
    InMemoryRateLedger,
    LedgerState,
    LimitCategory,
    WindowCounters,
    window_key,
)
from binance_futures.client import FuturesClient, create_futures_client
from binance_futures.core.errors import (
    AppError,
    AuthenticationAppError,
    ExchangeAPIError,
    TransportAppError,
    ValidationAppError,
)

__all__ = [
    "AbstractRateLedger",
    "AppError",
    "AuthenticationAppError",
    "ExchangeAPIError",
    "FuturesClient",
    "InMemoryRateLedger",
    "LedgerState",
    "LimitCategory",
    "TransportAppError",
    "ValidationAppError",
    "WindowCounters",
    "create_futures_client",
    "window_key",
]
