from abc import ABC, abstractmethod
from typing import Any, Mapping


class AbstractHTTPClient(ABC):
	"""Interface for futures REST transports."""

	@abstractmethod
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
			auth: Send the API key header (USER_DATA / MARKET_DATA endpoints).
			signed: Also add timestamp and HMAC signature (SIGNED endpoints).

		Returns:
			Any: Decoded JSON payload.

		Raises:
			TransportAppError: If the request could not be completed.
			ExchangeAPIError: If the exchange returned an error payload.
			AuthenticationAppError: If credentials needed for the call are missing.
		"""
		...

	@abstractmethod
	async def aclose(self) -> None:
		"""Release network resources held by the transport."""
		...
