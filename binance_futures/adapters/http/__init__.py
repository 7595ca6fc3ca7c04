"""HTTP transport layer - abstracts over the REST client implementation."""

from binance_futures.adapters.http.base import AbstractHTTPClient
from binance_futures.adapters.http.factory import create_http_client
from binance_futures.adapters.http.httpx_client import HttpxFuturesClient

__all__ = [
    "AbstractHTTPClient",
    "HttpxFuturesClient",
    "create_http_client",
]
