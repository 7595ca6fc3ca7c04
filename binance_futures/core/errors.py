"""Library-level exception types.

Every failure surfaced to callers is an AppError subclass so applications can
catch one base type while still branching on a stable ``code``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers."""

    code: str
    message: str
    hint: str
    http_status: int
    exchange_code: int
    path: str
    field: str
    value: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for library failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when call arguments or an exchange payload fail validation."""


class AuthenticationAppError(AppError):
    """Raised when credentials required for an endpoint are missing or invalid."""


class TransportAppError(AppError):
    """Raised when the HTTP request could not be completed."""


class ExchangeAPIError(AppError):
    """Raised when the exchange answers with an error payload or an undecodable body."""
