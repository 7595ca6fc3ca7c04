"""Factory for building futures REST transports from settings."""

from binance_futures.adapters.http.base import AbstractHTTPClient
from binance_futures.adapters.http.httpx_client import HttpxFuturesClient
from binance_futures.adapters.rate_ledger.base import AbstractRateLedger
from binance_futures.core.config import SUPPORTED_MARKETS, BinanceSettings, settings
from binance_futures.core.errors import ValidationAppError


def create_http_client(
    ledger: AbstractRateLedger,
    *,
    market: str | None = None,
    binance_settings: BinanceSettings | None = None,
) -> AbstractHTTPClient:
    """Instantiate a transport for the requested futures market.

    Args:
        ledger: Ledger the transport reports usage headers to.
        market: ``usdm`` or ``coinm``; defaults to BINANCE_MARKET.
        binance_settings: Settings override; defaults to the global settings.

    Returns:
        AbstractHTTPClient: Configured transport.

    Raises:
        ValidationAppError: If the market is not supported.
    """
    cfg = binance_settings or settings.binance
    market = (market or cfg.market).lower()

    if market not in SUPPORTED_MARKETS:
        raise ValidationAppError(
            code="unknown_market",
            message=(
                f"Unknown futures market: '{market}'. "
                f"Supported markets: {', '.join(SUPPORTED_MARKETS)}"
            ),
        )

    return HttpxFuturesClient(
        base_url=cfg.base_url_for(market),
        ledger=ledger,
        api_key=cfg.api_key,
        secret_key=cfg.secret_key,
        timeout_seconds=cfg.timeout_seconds,
        recv_window_ms=cfg.recv_window_ms,
    )
