"""Unit tests for MarketDataService endpoint wiring and parsing."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from binance_futures.adapters.rate_ledger.base import LimitCategory
from binance_futures.core.errors import ExchangeAPIError, ValidationAppError
from binance_futures.schemas.market import (
    BookTicker,
    ExchangeInfo,
    Kline,
    OpenInterest,
    Ticker24h,
    TickerPrice,
)
from binance_futures.services.market_data import MarketDataService

KLINE_ROW = [
    1616338800000, "57212.69", "57315.00", "57196.19", "57300.00", "496.263",
    1616339099999, "28425514.78940", 7160, "273.108", "15642623.69718", "0",
]


def _service(payload=None, *, market: str = "usdm") -> tuple[MarketDataService, AsyncMock]:
    http = MagicMock()
    http.get = AsyncMock(return_value=payload)
    return MarketDataService(http, market=market), http.get


class TestSimpleEndpoints:
    @pytest.mark.asyncio
    async def test_ping(self) -> None:
        service, get = _service({})

        assert await service.ping() == {}
        get.assert_awaited_once_with("/fapi/v1/ping")

    @pytest.mark.asyncio
    async def test_server_time_unwraps_value(self) -> None:
        service, get = _service({"serverTime": 1616276229598})

        assert await service.server_time() == 1616276229598
        get.assert_awaited_once_with("/fapi/v1/time")

    @pytest.mark.asyncio
    async def test_server_time_unexpected_payload(self) -> None:
        service, _ = _service({"unexpected": True})

        with pytest.raises(ExchangeAPIError) as exc_info:
            await service.server_time()

        assert exc_info.value.code == "unexpected_payload"

    @pytest.mark.asyncio
    async def test_depth_uses_default_limit(self) -> None:
        service, get = _service({"bids": [], "asks": []})

        await service.depth("BTCUSDT")

        get.assert_awaited_once_with("/fapi/v1/depth", {"symbol": "BTCUSDT", "limit": 500})

    @pytest.mark.asyncio
    async def test_historical_trades_requires_auth(self) -> None:
        service, get = _service([])

        await service.historical_trades("BTCUSDT", from_id=42, limit=10)

        get.assert_awaited_once_with(
            "/fapi/v1/historicalTrades",
            {"symbol": "BTCUSDT", "fromId": 42, "limit": 10},
            auth=True,
        )

    @pytest.mark.asyncio
    async def test_aggregate_trades_passes_optional_params(self) -> None:
        service, get = _service([])

        await service.aggregate_trades("BTCUSDT", start_time=1, end_time=2, limit=2)

        get.assert_awaited_once_with(
            "/fapi/v1/aggTrades",
            {"symbol": "BTCUSDT", "fromId": None, "startTime": 1, "endTime": 2, "limit": 2},
        )

    @pytest.mark.asyncio
    async def test_coinm_uses_dapi_prefix(self) -> None:
        service, get = _service({}, market="coinm")

        await service.ping()

        get.assert_awaited_once_with("/dapi/v1/ping")

    @pytest.mark.asyncio
    async def test_all_force_orders(self) -> None:
        service, get = _service([])

        await service.all_force_orders("BTCUSDT", start_time=1, limit=10)

        get.assert_awaited_once_with(
            "/fapi/v1/allForceOrders",
            {"symbol": "BTCUSDT", "startTime": 1, "endTime": None, "limit": 10},
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "args"),
        [
            ("all_force_orders", ()),
            ("open_interest_hist", ("BTCUSD", "5m")),
            ("taker_long_short_ratio", ("BTCUSD", "5m")),
            ("lvt_klines", ("BTCDOWN", "1h")),
            ("index_info", ()),
        ],
    )
    async def test_usdm_only_endpoints_reject_coinm(self, method: str, args: tuple) -> None:
        service, get = _service([], market="coinm")

        with pytest.raises(ValidationAppError) as exc_info:
            await getattr(service, method)(*args)

        assert exc_info.value.code == "unsupported_market"
        get.assert_not_awaited()

    def test_unknown_market_is_rejected(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            MarketDataService(MagicMock(), market="spot")

        assert exc_info.value.code == "invalid_market"


class TestExchangeInfo:
    @pytest.mark.asyncio
    async def test_parses_rate_limits_into_ceilings(self, rate_limits_payload: list[dict]) -> None:
        payload = {
            "timezone": "UTC",
            "serverTime": 1616348890107,
            "futuresType": "U_MARGINED",
            "rateLimits": rate_limits_payload
            + [{"rateLimitType": "RAW_REQUESTS", "interval": "MINUTE", "intervalNum": 5, "limit": 6100}],
            "exchangeFilters": [],
            "symbols": [{"symbol": "BTCUSDT"}],
        }
        service, get = _service(payload)

        info = await service.exchange_info()

        get.assert_awaited_once_with("/fapi/v1/exchangeInfo")
        assert isinstance(info, ExchangeInfo)
        assert info.server_time == 1616348890107
        assert len(info.rate_limits) == 4
        assert info.ceilings() == [
            (LimitCategory.WEIGHT, "1M", 2400),
            (LimitCategory.ORDERS, "1M", 1200),
            (LimitCategory.ORDERS, "10S", 300),
        ]

    @pytest.mark.asyncio
    async def test_invalid_payload_raises(self) -> None:
        service, _ = _service({"rateLimits": [{"rateLimitType": "ORDERS"}]})

        with pytest.raises(ExchangeAPIError) as exc_info:
            await service.exchange_info()

        assert exc_info.value.code == "unexpected_payload"


class TestKlines:
    @pytest.mark.asyncio
    async def test_klines_are_parsed(self) -> None:
        service, get = _service([KLINE_ROW])

        bars = await service.klines("BTCUSDT", "5m", limit=1)

        get.assert_awaited_once_with(
            "/fapi/v1/klines",
            {"symbol": "BTCUSDT", "interval": "5m", "startTime": None, "endTime": None, "limit": 1},
        )
        assert bars == [
            Kline(
                open_time=1616338800000,
                open=Decimal("57212.69"),
                high=Decimal("57315.00"),
                low=Decimal("57196.19"),
                close=Decimal("57300.00"),
                volume=Decimal("496.263"),
                close_time=1616339099999,
                quote_volume=Decimal("28425514.78940"),
                trades=7160,
                taker_buy_base_volume=Decimal("273.108"),
                taker_buy_quote_volume=Decimal("15642623.69718"),
            )
        ]

    @pytest.mark.asyncio
    async def test_unknown_interval_fails_before_request(self) -> None:
        service, get = _service([])

        with pytest.raises(ValidationAppError) as exc_info:
            await service.klines("BTCUSDT", "7m")

        assert exc_info.value.code == "invalid_interval"
        get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_continuous_klines_validates_contract_type(self) -> None:
        service, get = _service([KLINE_ROW])

        with pytest.raises(ValidationAppError):
            await service.continuous_klines("BTCUSDT", "WEEKLY", "5m")

        bars = await service.continuous_klines("BTCUSDT", "PERPETUAL", "5m", limit=1)

        assert len(bars) == 1
        assert get.await_args.args[0] == "/fapi/v1/continuousKlines"
        assert get.await_args.args[1]["contractType"] == "PERPETUAL"

    @pytest.mark.asyncio
    async def test_mark_and_index_price_klines_paths(self) -> None:
        service, get = _service([KLINE_ROW])

        await service.mark_price_klines("BTCUSDT", "1h")
        assert get.await_args.args[0] == "/fapi/v1/markPriceKlines"

        await service.index_price_klines("BTCUSDT", "1h")
        assert get.await_args.args[0] == "/fapi/v1/indexPriceKlines"
        assert get.await_args.args[1]["pair"] == "BTCUSDT"

    @pytest.mark.asyncio
    async def test_short_kline_row_raises(self) -> None:
        service, _ = _service([[1616338800000, "1"]])

        with pytest.raises(ExchangeAPIError):
            await service.klines("BTCUSDT", "1m")


class TestTickers:
    @pytest.mark.asyncio
    async def test_ticker_price_single_symbol(self) -> None:
        service, get = _service({"symbol": "BTCUSDT", "price": "57300.10", "time": 1616338800000})

        ticker = await service.ticker_price("BTCUSDT")

        get.assert_awaited_once_with("/fapi/v1/ticker/price", {"symbol": "BTCUSDT"})
        assert ticker == TickerPrice(symbol="BTCUSDT", price=Decimal("57300.10"), time=1616338800000)

    @pytest.mark.asyncio
    async def test_ticker_book_all_symbols(self) -> None:
        service, _ = _service(
            [
                {"symbol": "BTCUSDT", "bidPrice": "1", "bidQty": "2", "askPrice": "3", "askQty": "4"},
                {"symbol": "ETHUSDT", "bidPrice": "5", "bidQty": "6", "askPrice": "7", "askQty": "8"},
            ]
        )

        books = await service.ticker_book()

        assert [b.symbol for b in books] == ["BTCUSDT", "ETHUSDT"]
        assert isinstance(books[0], BookTicker)
        assert books[1].ask_qty == Decimal("8")

    @pytest.mark.asyncio
    async def test_ticker_24h(self) -> None:
        payload = {
            "symbol": "BTCUSDT",
            "priceChange": "-94.99999800",
            "priceChangePercent": "-95.960",
            "weightedAvgPrice": "0.29628482",
            "lastPrice": "4.00000200",
            "lastQty": "200.00000000",
            "openPrice": "99.00000000",
            "highPrice": "100.00000000",
            "lowPrice": "0.10000000",
            "volume": "8913.30000000",
            "quoteVolume": "15.30000000",
            "openTime": 1499783499040,
            "closeTime": 1499869899040,
            "firstId": 28385,
            "lastId": 28460,
            "count": 76,
        }
        service, _ = _service(payload)

        ticker = await service.ticker_24h("BTCUSDT")

        assert isinstance(ticker, Ticker24h)
        assert ticker.price_change_percent == Decimal("-95.960")
        assert ticker.count == 76

    @pytest.mark.asyncio
    async def test_open_interest(self) -> None:
        service, get = _service({"openInterest": "10659.509", "symbol": "BTCUSDT", "time": 1589437530011})

        result = await service.open_interest("BTCUSDT")

        get.assert_awaited_once_with("/fapi/v1/openInterest", {"symbol": "BTCUSDT"})
        assert result == OpenInterest(symbol="BTCUSDT", open_interest=Decimal("10659.509"), time=1589437530011)


class TestStatistics:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "endpoint"),
        [
            ("open_interest_hist", "openInterestHist"),
            ("top_long_short_account_ratio", "topLongShortAccountRatio"),
            ("top_long_short_position_ratio", "topLongShortPositionRatio"),
            ("global_long_short_account_ratio", "globalLongShortAccountRatio"),
            ("taker_long_short_ratio", "takerlongshortRatio"),
        ],
    )
    async def test_statistics_paths(self, method: str, endpoint: str) -> None:
        service, get = _service([])

        await getattr(service, method)("BTCUSDT", "5m")

        get.assert_awaited_once_with(
            f"/futures/data/{endpoint}",
            {"symbol": "BTCUSDT", "period": "5m", "startTime": None, "endTime": None, "limit": 30},
        )

    @pytest.mark.asyncio
    async def test_invalid_period_is_rejected(self) -> None:
        service, get = _service([])

        with pytest.raises(ValidationAppError) as exc_info:
            await service.open_interest_hist("BTCUSDT", "1m")

        assert exc_info.value.code == "invalid_period"
        get.assert_not_awaited()
