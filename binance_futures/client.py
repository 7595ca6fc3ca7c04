"""Client factory for the futures API.

Centralizes construction (ledger, transport, services) so applications get
exactly one ledger per client and tests can inject fakes at any seam.
"""

from __future__ import annotations

from dataclasses import dataclass

from binance_futures.adapters.http.base import AbstractHTTPClient
from binance_futures.adapters.http.factory import create_http_client
from binance_futures.adapters.rate_ledger.base import AbstractRateLedger
from binance_futures.adapters.rate_ledger.in_memory import InMemoryRateLedger
from binance_futures.core.config import BinanceSettings, settings
from binance_futures.services.limits_service import LimitsService
from binance_futures.services.market_data import MarketDataService


@dataclass
class FuturesClient:
    """Bundle of the services sharing one transport and one ledger.

    Use as an async context manager to close the transport on exit:

        >>> async with create_futures_client() as client:
        ...     await client.limits.fetch_limits()
        ...     bars = await client.market.klines("BTCUSDT", "5m", limit=2)
        ...     client.ledger.remaining_weight()
    """

    ledger: AbstractRateLedger
    http: AbstractHTTPClient
    market: MarketDataService
    limits: LimitsService

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "FuturesClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def create_futures_client(
    *,
    market: str | None = None,
    ledger: AbstractRateLedger | None = None,
    binance_settings: BinanceSettings | None = None,
) -> FuturesClient:
    """Create a client wired to a single rate ledger.

    Args:
        market: ``usdm`` or ``coinm``; defaults to BINANCE_MARKET.
        ledger: Ledger to share with other clients on the same IP/API key;
            a new in-memory ledger is created when omitted.
        binance_settings: Settings override; defaults to the global settings.

    Returns:
        FuturesClient: Ready-to-use client.
    """
    cfg = binance_settings or settings.binance
    market = (market or cfg.market).lower()
    if ledger is None:
        ledger = InMemoryRateLedger()

    http = create_http_client(ledger, market=market, binance_settings=cfg)
    market_data = MarketDataService(http, market=market)

    return FuturesClient(
        ledger=ledger,
        http=http,
        market=market_data,
        limits=LimitsService(market_data, ledger),
    )
