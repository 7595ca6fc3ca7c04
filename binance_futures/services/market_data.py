"""Market data endpoints of the futures REST API.

Each method maps one endpoint onto a typed coroutine. Request weight is
tracked by the rate ledger attached to the transport, not here.
"""

from __future__ import annotations

from typing import Any, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from binance_futures.adapters.http.base import AbstractHTTPClient
from binance_futures.core.errors import ExchangeAPIError, ValidationAppError
from binance_futures.schemas.market import (
    CONTRACT_TYPES,
    DATA_PERIODS,
    KLINE_INTERVALS,
    BookTicker,
    ExchangeInfo,
    Kline,
    OpenInterest,
    Ticker24h,
    TickerPrice,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

API_PREFIXES = {
    "usdm": "/fapi/v1",
    "coinm": "/dapi/v1",
}
DATA_PREFIX = "/futures/data"


def _require_choice(value: str, choices: Sequence[str], field: str) -> None:
    if value not in choices:
        raise ValidationAppError(
            code=f"invalid_{field}",
            message=f"Unsupported {field} '{value}'. Expected one of: {', '.join(choices)}",
            details={"field": field, "value": value},
        )


def _parse(model: type[ModelT], data: Any, path: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ExchangeAPIError(
            code="unexpected_payload",
            message=f"Unexpected payload from {path}: {exc.error_count()} validation error(s)",
            details={"path": path},
        ) from exc


def _parse_many(model: type[ModelT], data: Any, path: str) -> ModelT | list[ModelT]:
    """Parse a single object or, when no symbol was given, a list of them."""
    if isinstance(data, list):
        return [_parse(model, item, path) for item in data]
    return _parse(model, data, path)


def _parse_klines(rows: Any, path: str) -> list[Kline]:
    try:
        return [Kline.from_row(row) for row in rows]
    except (KeyError, TypeError, ValueError) as exc:
        # pydantic's ValidationError is a ValueError subclass
        raise ExchangeAPIError(
            code="unexpected_payload",
            message=f"Unexpected kline payload from {path}",
            details={"path": path},
        ) from exc


class MarketDataService:
    """Typed access to the futures market data endpoints.

    The statistics family, ``all_force_orders``, ``lvt_klines`` and
    ``index_info`` exist on the USDT-margined API only.

    Attributes:
        http: Transport used for every call.
        market_name: ``usdm`` or ``coinm``.
        prefix: Versioned API path prefix for the market (``/fapi/v1``).
    """

    def __init__(self, http: AbstractHTTPClient, *, market: str = "usdm") -> None:
        """Initialize with a transport.

        Args:
            http: Configured transport (it owns ledger reporting).
            market: ``usdm`` or ``coinm``; selects the API path prefix.

        Raises:
            ValidationAppError: If the market is unknown.
        """
        _require_choice(market, tuple(API_PREFIXES), "market")
        self.http = http
        self.market_name = market
        self.prefix = API_PREFIXES[market]

    def _require_usdm(self, operation: str) -> None:
        """Reject endpoints that only exist on the USDT-margined API."""
        if self.market_name != "usdm":
            raise ValidationAppError(
                code="unsupported_market",
                message=f"{operation} is only available on the usdm market",
                details={"field": "market", "value": self.market_name},
            )

    async def ping(self) -> dict[str, Any]:
        """Test connectivity to the REST API. Weight: 1."""
        return await self.http.get(f"{self.prefix}/ping")

    async def server_time(self) -> int:
        """Current server time in epoch milliseconds."""
        path = f"{self.prefix}/time"
        data = await self.http.get(path)
        try:
            return int(data["serverTime"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ExchangeAPIError(
                code="unexpected_payload",
                message=f"Unexpected payload from {path}",
                details={"path": path},
            ) from exc

    async def exchange_info(self) -> ExchangeInfo:
        """Exchange trading rules, symbol information and declared rate limits."""
        path = f"{self.prefix}/exchangeInfo"
        return _parse(ExchangeInfo, await self.http.get(path), path)

    async def depth(self, symbol: str, limit: int = 500) -> dict[str, Any]:
        """Order book for ``symbol``."""
        return await self.http.get(
            f"{self.prefix}/depth", {"symbol": symbol, "limit": limit}
        )

    async def recent_trades(self, symbol: str, limit: int = 500) -> list[dict[str, Any]]:
        return await self.http.get(
            f"{self.prefix}/trades", {"symbol": symbol, "limit": limit}
        )

    async def historical_trades(
        self,
        symbol: str,
        from_id: int | None = None,
        limit: int = 500,
    ) -> list[dict[str, Any]]:
        """Older market trades. Requires an API key."""
        return await self.http.get(
            f"{self.prefix}/historicalTrades",
            {"symbol": symbol, "fromId": from_id, "limit": limit},
            auth=True,
        )

    async def aggregate_trades(
        self,
        symbol: str,
        from_id: int | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 500,
    ) -> list[dict[str, Any]]:
        """Compressed trades.

        Trades that fill at the same time, from the same order, at the same
        price have their quantity aggregated.
        """
        return await self.http.get(
            f"{self.prefix}/aggTrades",
            {
                "symbol": symbol,
                "fromId": from_id,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def _klines(self, endpoint: str, params: dict[str, Any]) -> list[Kline]:
        _require_choice(params["interval"], KLINE_INTERVALS, "interval")
        path = f"{self.prefix}/{endpoint}"
        return _parse_klines(await self.http.get(path, params), path)

    async def klines(
        self,
        symbol: str,
        interval: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 500,
    ) -> list[Kline]:
        """Candlestick bars for a symbol.

        Args:
            symbol: Trading symbol, e.g. ``BTCUSDT``.
            interval: One of KLINE_INTERVALS.
            start_time: Optional start, epoch ms.
            end_time: Optional end, epoch ms.
            limit: Number of bars (max 1500).

        Returns:
            list[Kline]: Bars ordered by open time.

        Raises:
            ValidationAppError: If the interval is unknown.
        """
        return await self._klines(
            "klines",
            {
                "symbol": symbol,
                "interval": interval,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def continuous_klines(
        self,
        pair: str,
        contract_type: str,
        interval: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 500,
    ) -> list[Kline]:
        """Candlestick bars for a specific contract type of a pair."""
        _require_choice(contract_type, CONTRACT_TYPES, "contract_type")
        return await self._klines(
            "continuousKlines",
            {
                "pair": pair,
                "contractType": contract_type,
                "interval": interval,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def index_price_klines(
        self,
        pair: str,
        interval: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 500,
    ) -> list[Kline]:
        """Candlestick bars for the index price of a pair."""
        return await self._klines(
            "indexPriceKlines",
            {
                "pair": pair,
                "interval": interval,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def mark_price_klines(
        self,
        symbol: str,
        interval: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 500,
    ) -> list[Kline]:
        """Candlestick bars for the mark price of a symbol."""
        return await self._klines(
            "markPriceKlines",
            {
                "symbol": symbol,
                "interval": interval,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def mark_price(self, symbol: str | None = None) -> dict[str, Any] | list[dict[str, Any]]:
        """Mark price and funding rate; all symbols when ``symbol`` is None."""
        return await self.http.get(f"{self.prefix}/premiumIndex", {"symbol": symbol})

    async def funding_rate(
        self,
        symbol: str | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Funding rate history."""
        return await self.http.get(
            f"{self.prefix}/fundingRate",
            {
                "symbol": symbol,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def all_force_orders(
        self,
        symbol: str | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Liquidation orders; all symbols when ``symbol`` is None."""
        self._require_usdm("allForceOrders")
        return await self.http.get(
            f"{self.prefix}/allForceOrders",
            {
                "symbol": symbol,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def ticker_24h(self, symbol: str | None = None) -> Ticker24h | list[Ticker24h]:
        """24 hour rolling window statistics; a list when ``symbol`` is None."""
        path = f"{self.prefix}/ticker/24hr"
        return _parse_many(Ticker24h, await self.http.get(path, {"symbol": symbol}), path)

    async def ticker_price(self, symbol: str | None = None) -> TickerPrice | list[TickerPrice]:
        """Latest price; a list when ``symbol`` is None."""
        path = f"{self.prefix}/ticker/price"
        return _parse_many(TickerPrice, await self.http.get(path, {"symbol": symbol}), path)

    async def ticker_book(self, symbol: str | None = None) -> BookTicker | list[BookTicker]:
        """Best bid/ask; a list when ``symbol`` is None."""
        path = f"{self.prefix}/ticker/bookTicker"
        return _parse_many(BookTicker, await self.http.get(path, {"symbol": symbol}), path)

    async def open_interest(self, symbol: str) -> OpenInterest:
        path = f"{self.prefix}/openInterest"
        return _parse(OpenInterest, await self.http.get(path, {"symbol": symbol}), path)

    async def _statistics(
        self,
        endpoint: str,
        symbol: str,
        period: str,
        start_time: int | None,
        end_time: int | None,
        limit: int,
    ) -> list[dict[str, Any]]:
        """Shared call for the /futures/data statistics family."""
        self._require_usdm(endpoint)
        _require_choice(period, DATA_PERIODS, "period")
        return await self.http.get(
            f"{DATA_PREFIX}/{endpoint}",
            {
                "symbol": symbol,
                "period": period,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def open_interest_hist(
        self,
        symbol: str,
        period: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """Open interest statistics. Only the latest 30 days are available."""
        return await self._statistics(
            "openInterestHist", symbol, period, start_time, end_time, limit
        )

    async def top_long_short_account_ratio(
        self,
        symbol: str,
        period: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        return await self._statistics(
            "topLongShortAccountRatio", symbol, period, start_time, end_time, limit
        )

    async def top_long_short_position_ratio(
        self,
        symbol: str,
        period: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        return await self._statistics(
            "topLongShortPositionRatio", symbol, period, start_time, end_time, limit
        )

    async def global_long_short_account_ratio(
        self,
        symbol: str,
        period: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        return await self._statistics(
            "globalLongShortAccountRatio", symbol, period, start_time, end_time, limit
        )

    async def taker_long_short_ratio(
        self,
        symbol: str,
        period: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """Taker buy/sell volume ratio."""
        return await self._statistics(
            "takerlongshortRatio", symbol, period, start_time, end_time, limit
        )

    async def lvt_klines(
        self,
        symbol: str,
        interval: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = 500,
    ) -> list[list[Any]]:
        """Historical BLVT NAV candlesticks, returned as raw rows."""
        self._require_usdm("lvtKlines")
        _require_choice(interval, KLINE_INTERVALS, "interval")
        return await self.http.get(
            f"{self.prefix}/lvtKlines",
            {
                "symbol": symbol,
                "interval": interval,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )

    async def index_info(self, symbol: str | None = None) -> list[dict[str, Any]]:
        """Composite index symbol information."""
        self._require_usdm("indexInfo")
        return await self.http.get(f"{self.prefix}/indexInfo", {"symbol": symbol})
