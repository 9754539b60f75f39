"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete store) so the
in-memory implementation can later be swapped for a shared store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitKey:
    """Identity of one admission window: who is calling which route.

    Attributes:
        client: Caller identity (``api_key:<hash>`` or ``ip:<address>``).
        route: HTTP method plus path template, e.g. ``GET /v2/slp/list``.
    """

    client: str
    route: str

    def __str__(self) -> str:
        return f"{self.client}|{self.route}"


@dataclass(frozen=True)
class RateLimitResult:
    """Result of an admission decision.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Ceiling applied to this key.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window expires.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimitStore(ABC):
    """Interface for rate limit counter stores."""

    @abstractmethod
    def admit(self, key: RateLimitKey, *, limit: int | None = None) -> RateLimitResult:
        """Count one request against ``key`` and decide whether it may proceed.

        Args:
            key: Client and route being admitted.
            limit: Ceiling for this key; the store default when omitted.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError
