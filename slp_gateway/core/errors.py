"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Every error carries
the HTTP status it maps to, so the global handler renders all of them the
same way: ``{"error": message}``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Details are logged, never rendered to clients.
    """

    code: str
    hint: str
    field: str
    value: str
    max_items: int
    actual_items: int
    upstream: str
    limit: int
    retry_after: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message (rendered as ``error``).
        details: Optional structured details for debugging/observability.
        status_code: HTTP status the error maps to.
        headers: Extra response headers (e.g. Retry-After).
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    status_code: int = 500
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


@dataclass
class BadRequestAppError(AppError):
    """Raised when request input is malformed, empty, oversized or on the wrong network."""

    status_code: int = 400


@dataclass
class UpstreamAppError(AppError):
    """Raised when the index service, full node or validator fails."""

    status_code: int = 500


@dataclass
class RateLimitedAppError(AppError):
    """Raised when admission is denied by the rate limiter."""

    status_code: int = 429
