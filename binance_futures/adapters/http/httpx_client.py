"""httpx-based futures REST transport."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Any, Callable, Mapping
from urllib.parse import urlencode

import httpx

from binance_futures.adapters.http.base import AbstractHTTPClient
from binance_futures.adapters.rate_ledger.base import AbstractRateLedger
from binance_futures.core.errors import (
    AuthenticationAppError,
    ExchangeAPIError,
    TransportAppError,
)
from binance_futures.core.logging import call_context

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-MBX-APIKEY"


def remove_nils(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop parameters whose value is None."""
    if not params:
        return {}
    return {k: v for k, v in params.items() if v is not None}


def generate_signature(secret_key: str, query: str) -> str:
    """HMAC-SHA256 signature of a query string, as lower-case hex.

    Raises:
        AuthenticationAppError: If the secret key is empty.
    """
    if not secret_key:
        raise AuthenticationAppError(
            code="invalid_secret_key",
            message="SIGNED endpoints require BINANCE_SECRET_KEY",
        )
    return hmac.new(secret_key.encode(), query.encode(), hashlib.sha256).hexdigest()


def header_pairs(response: httpx.Response) -> list[tuple[str, str]]:
    """Response headers as ``(NAME, value)`` pairs with upper-cased names.

    HTTP/2 delivers header names in lower case; upper-casing keeps the window
    suffix (``1M``, ``10S``) aligned with keys derived from exchangeInfo.
    """
    return [
        (name.decode("latin-1").upper(), value.decode("latin-1"))
        for name, value in response.headers.raw
    ]


class HttpxFuturesClient(AbstractHTTPClient):
    """Client for the Binance futures REST API.

    Every completed response, whatever its status, reports its usage headers
    to the injected rate ledger before the body is decoded.
    """

    def __init__(
        self,
        *,
        base_url: str,
        ledger: AbstractRateLedger,
        api_key: str = "",
        secret_key: str = "",
        timeout_seconds: float = 10.0,
        recv_window_ms: int = 5000,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the transport.

        Args:
            base_url: REST base URL, e.g. ``https://fapi.binance.com``.
            ledger: Ledger receiving usage headers of every response.
            api_key: API key for authenticated endpoints.
            secret_key: Secret for SIGNED endpoints.
            timeout_seconds: Timeout for requests in seconds.
            recv_window_ms: recvWindow sent with SIGNED requests.
            client: Optional pre-built httpx client (not closed by aclose).
            clock: Time source returning UNIX seconds, used for timestamps.
        """
        self.base_url = base_url.rstrip("/")
        self.ledger = ledger
        self._api_key = api_key
        self._secret_key = secret_key
        self._recv_window_ms = recv_window_ms
        self._clock = clock
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
        )

    def _build_query(self, params: Mapping[str, Any] | None, signed: bool) -> str:
        clean = remove_nils(params)
        if not signed:
            return urlencode(clean)

        clean["recvWindow"] = self._recv_window_ms
        clean["timestamp"] = int(self._clock() * 1000)
        query = urlencode(clean)
        return f"{query}&signature={generate_signature(self._secret_key, query)}"

    def _build_headers(self, auth: bool) -> dict[str, str]:
        if not auth:
            return {}
        if not self._api_key:
            raise AuthenticationAppError(
                code="missing_api_key",
                message="Authenticated endpoints require BINANCE_API_KEY",
            )
        return {API_KEY_HEADER: self._api_key}

    async def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        *,
        auth: bool = False,
        signed: bool = False,
    ) -> Any:
        """Send a GET request and return the decoded JSON body.

        Args:
            path: Endpoint path, e.g. ``/fapi/v1/klines``.
            params: Query parameters; ``None`` values are dropped.
            auth: Send the API key header.
            signed: Also add timestamp, recvWindow and signature.

        Returns:
            Any: Decoded JSON payload.

        Raises:
            TransportAppError: On network failure or timeout.
            ExchangeAPIError: On an error payload or a non-JSON body.
            AuthenticationAppError: If required credentials are missing.
        """
        headers = self._build_headers(auth or signed)
        query = self._build_query(params, signed)
        url = f"{self.base_url}{path}"
        if query:
            url = f"{url}?{query}"

        start = time.perf_counter()
        with call_context():
            try:
                response = await self.client.get(url, headers=headers)
            except httpx.HTTPError as exc:
                logger.error(
                    "http.request_failed",
                    extra={
                        "path": path,
                        "error_type": type(exc).__name__,
                        "error_msg": str(exc),
                    },
                )
                raise TransportAppError(
                    code="transport_error",
                    message=f"Request to {path} failed: {exc}",
                    details={"path": path},
                ) from exc

            self.ledger.record_usage(header_pairs(response))

            logger.info(
                "http.request_completed",
                extra={
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            return self._decode(path, response)

    def _decode(self, path: str, response: httpx.Response) -> Any:
        """Decode the body; ``{"code", "msg"}`` objects are exchange errors."""
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ExchangeAPIError(
                code="invalid_json",
                message=f"Exchange returned a non-JSON body for {path}",
                details={"path": path, "http_status": response.status_code},
            ) from exc

        if isinstance(data, dict) and "code" in data and "msg" in data:
            logger.warning(
                "http.exchange_error",
                extra={
                    "path": path,
                    "status_code": response.status_code,
                    "exchange_code": data["code"],
                    "exchange_msg": data["msg"],
                },
            )
            raise ExchangeAPIError(
                code="exchange_error",
                message=str(data["msg"]),
                details={
                    "path": path,
                    "http_status": response.status_code,
                    "exchange_code": data["code"],
                },
            )

        return data

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
