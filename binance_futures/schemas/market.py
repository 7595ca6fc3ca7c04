"""Pydantic schemas for futures market data responses."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from binance_futures.adapters.rate_ledger.base import CeilingTriple, LimitCategory, window_key

# m -> minutes, h -> hours, d -> days, w -> weeks, M -> months
KLINE_INTERVALS: tuple[str, ...] = (
    "1m", "3m", "5m", "15m", "30m",
    "1h", "2h", "4h", "6h", "8h", "12h",
    "1d", "3d", "1w", "1M",
)

# Periods accepted by the /futures/data/* statistics endpoints
DATA_PERIODS: tuple[str, ...] = ("5m", "15m", "30m", "1h", "2h", "4h", "6h", "12h", "1d")

# *_DELIVERING types only appear on symbols in DELIVERING status
CONTRACT_TYPES: tuple[str, ...] = (
    "PERPETUAL",
    "CURRENT_MONTH",
    "NEXT_MONTH",
    "CURRENT_QUARTER",
    "NEXT_QUARTER",
)

_RATE_LIMIT_CATEGORIES = {
    "REQUEST_WEIGHT": LimitCategory.WEIGHT,
    "ORDERS": LimitCategory.ORDERS,
}


class _ExchangeModel(BaseModel):
    """Base for payloads that use camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class RateLimitDescriptor(_ExchangeModel):
    """One entry of ``exchangeInfo.rateLimits``."""

    rate_limit_type: str = Field(
        ..., description="REQUEST_WEIGHT, ORDERS or RAW_REQUESTS."
    )
    interval: Literal["SECOND", "MINUTE", "HOUR", "DAY"] = Field(
        ..., description="Unit of the rate limit window."
    )
    interval_num: int = Field(..., ge=1, description="Number of interval units.")
    limit: int = Field(..., ge=1, description="Ceiling for the window.")

    @property
    def window_key(self) -> str:
        return window_key(self.interval_num, self.interval)

    def to_ceiling(self) -> CeilingTriple | None:
        """Map to a ledger ceiling triple, or None for untracked limit types."""
        category = _RATE_LIMIT_CATEGORIES.get(self.rate_limit_type)
        if category is None:
            return None
        return (category, self.window_key, self.limit)


class ExchangeInfo(_ExchangeModel):
    """Trading rules and rate limits returned by ``exchangeInfo``."""

    model_config = ConfigDict(extra="allow")

    timezone: str = "UTC"
    server_time: int = Field(..., description="Server time in epoch milliseconds.")
    futures_type: str | None = None
    rate_limits: List[RateLimitDescriptor] = Field(default_factory=list)
    exchange_filters: List[Any] = Field(default_factory=list)
    assets: List[dict[str, Any]] = Field(default_factory=list)
    symbols: List[dict[str, Any]] = Field(default_factory=list)

    def ceilings(self) -> list[CeilingTriple]:
        """Ledger ceiling triples for every tracked rate limit."""
        triples = (limit.to_ceiling() for limit in self.rate_limits)
        return [triple for triple in triples if triple is not None]


class Kline(BaseModel):
    """A single candlestick. Klines are identified by their open time."""

    model_config = ConfigDict(frozen=True)

    open_time: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    close_time: int
    quote_volume: Decimal
    trades: int
    taker_buy_base_volume: Decimal
    taker_buy_quote_volume: Decimal

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Kline":
        """Build a kline from the exchange's positional array.

        The trailing "ignore" column is dropped.
        """
        if len(row) < 11:
            raise ValueError(f"kline row has {len(row)} columns, expected at least 11")
        return cls(
            open_time=row[0],
            open=row[1],
            high=row[2],
            low=row[3],
            close=row[4],
            volume=row[5],
            close_time=row[6],
            quote_volume=row[7],
            trades=row[8],
            taker_buy_base_volume=row[9],
            taker_buy_quote_volume=row[10],
        )


class TickerPrice(_ExchangeModel):
    """Latest price for a symbol."""

    symbol: str
    price: Decimal
    time: int | None = None


class BookTicker(_ExchangeModel):
    """Best bid/ask on the order book."""

    symbol: str
    bid_price: Decimal
    bid_qty: Decimal
    ask_price: Decimal
    ask_qty: Decimal
    time: int | None = None


class Ticker24h(_ExchangeModel):
    """24 hour rolling window price change statistics."""

    symbol: str
    price_change: Decimal
    price_change_percent: Decimal
    weighted_avg_price: Decimal
    last_price: Decimal
    last_qty: Decimal
    open_price: Decimal
    high_price: Decimal
    low_price: Decimal
    volume: Decimal
    quote_volume: Decimal
    open_time: int
    close_time: int
    first_id: int
    last_id: int
    count: int


class OpenInterest(_ExchangeModel):
    """Present open interest of a symbol."""

    symbol: str
    open_interest: Decimal
    time: int
