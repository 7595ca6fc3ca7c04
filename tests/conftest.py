"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are seeded here, before anything imports settings.
"""

import os

# Must run before binance_futures.core.config is imported
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("BINANCE_API_KEY", "test-api-key-123")
os.environ.setdefault("BINANCE_SECRET_KEY", "test-secret-456")
os.environ.setdefault("BINANCE_MARKET", "usdm")

import pytest

from binance_futures.adapters.rate_ledger.in_memory import InMemoryRateLedger


@pytest.fixture
def ledger() -> InMemoryRateLedger:
    return InMemoryRateLedger()


@pytest.fixture
def rate_limits_payload() -> list[dict]:
    """``exchangeInfo.rateLimits`` as served by the USDT-margined API."""
    return [
        {"rateLimitType": "REQUEST_WEIGHT", "interval": "MINUTE", "intervalNum": 1, "limit": 2400},
        {"rateLimitType": "ORDERS", "interval": "MINUTE", "intervalNum": 1, "limit": 1200},
        {"rateLimitType": "ORDERS", "interval": "SECOND", "intervalNum": 10, "limit": 300},
    ]
