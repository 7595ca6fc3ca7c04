"""Loads declared rate-limit ceilings into the rate ledger."""

from __future__ import annotations

import logging

from binance_futures.adapters.rate_ledger.base import AbstractRateLedger, CeilingTriple
from binance_futures.core.errors import AppError
from binance_futures.services.market_data import MarketDataService

logger = logging.getLogger(__name__)


class LimitsService:
    """Fetches ``exchangeInfo.rateLimits`` and pushes them into a ledger.

    Fetching spends request weight itself, so callers usually run it once at
    startup and again only when the exchange announces limit changes.
    """

    def __init__(self, market: MarketDataService, ledger: AbstractRateLedger) -> None:
        self.market = market
        self.ledger = ledger

    async def fetch_ceilings(self) -> list[CeilingTriple]:
        """Return ceiling triples for the tracked limit types without storing them."""
        info = await self.market.exchange_info()
        return info.ceilings()

    async def fetch_limits(self) -> None:
        """Refresh ledger ceilings from the exchange.

        On any failure the existing ceilings are left untouched and the
        error propagates; retrying is up to the caller.

        Raises:
            AppError: Transport, exchange or payload failure.
        """
        try:
            ceilings = await self.fetch_ceilings()
        except AppError as exc:
            logger.warning(
                "limits.fetch_failed",
                extra={"error_code": exc.code, "error_message": exc.message},
            )
            raise

        self.ledger.refresh_ceilings(ceilings)
