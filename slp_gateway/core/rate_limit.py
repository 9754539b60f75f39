"""Per-route rate limiting dependency for FastAPI routers.

This module wires the rate limit store into the HTTP layer.

Design goals:
- Runs as a router dependency, so a rejected request never reaches route logic.
- One window per (client, route): hammering one endpoint does not exhaust
  the budget of another.
- Trusted callers (configured API keys) get a relaxed ceiling; individual
  routes can override the default ceiling.
- Fails closed when the client cannot be identified unless configured to
  fail open.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header, Request

from slp_gateway.adapters.rate_limit.base import (
    AbstractRateLimitStore,
    RateLimitKey,
    RateLimitResult,
)
from slp_gateway.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from slp_gateway.core.auth import hash_api_key, is_trusted_api_key
from slp_gateway.core.config import settings
from slp_gateway.core.errors import RateLimitedAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

_store: AbstractRateLimitStore | None = None
_store_config: tuple[int, int, int] | None = None


def get_rate_limit_store() -> AbstractRateLimitStore:
    """Return the process-wide rate limit store.

    The instance is cached in-module to preserve counters across requests.
    If configuration changes (primarily in tests), the store is rebuilt.
    """

    global _store, _store_config

    config = (
        settings.rate_limit.requests,
        settings.rate_limit.window_seconds,
        settings.rate_limit.max_keys,
    )

    if _store is None or _store_config != config:
        _store = InMemoryRateLimitStore(
            limit=settings.rate_limit.requests,
            window_seconds=settings.rate_limit.window_seconds,
            max_keys=settings.rate_limit.max_keys,
        )
        _store_config = config

    return _store


def reset_rate_limit_store() -> None:
    """Forget every counter (the next request builds a fresh store)."""

    global _store, _store_config
    _store = None
    _store_config = None


def route_identifier(request: Request) -> str:
    """Return ``"<METHOD> <path template>"`` for the matched route.

    Path templates keep parameters unexpanded so every address or tokenId
    shares one window per client.
    """

    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    return f"{request.method.upper()} {path}"


def client_identity(request: Request, x_api_key: str | None) -> str:
    """Derive the caller identity used in the limiter key."""

    if is_trusted_api_key(x_api_key):
        return f"api_key:{hash_api_key(x_api_key)}"

    client_host = request.client.host if request.client else None
    if not client_host:
        return UNKNOWN_CLIENT
    return f"ip:{client_host}"


def resolve_limit(route: str, trusted: bool) -> int:
    """Pick the ceiling for a request.

    Trusted callers get the relaxed ceiling; otherwise a per-route override
    wins over the default.
    """

    if trusted:
        return settings.rate_limit.trusted_requests
    return settings.rate_limit.route_overrides.get(route, settings.rate_limit.requests)


def _rejection_headers(result: RateLimitResult) -> dict[str, str]:
    if not settings.rate_limit.include_headers:
        return {}
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }


def _rejection_message(limit: int) -> str:
    per_minute = round(limit * 60 / settings.rate_limit.window_seconds)
    return (
        "Too many requests. Your limits are currently "
        f"{per_minute} requests per minute."
    )


async def enforce_rate_limit(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency admitting or rejecting the current request.

    Args:
        request: FastAPI request.
        x_api_key: Optional trusted-caller key from the X-API-Key header.

    Raises:
        RateLimitedAppError: 429 when the caller exceeded its ceiling, or
            when its identity is unknown and the limiter fails closed.
    """

    if not settings.rate_limit.enabled:
        return

    route = route_identifier(request)
    client = client_identity(request, x_api_key)

    if client == UNKNOWN_CLIENT:
        if settings.rate_limit.fail_open:
            logger.warning("rate_limit.unknown_client_admitted", extra={"route": route})
            return
        logger.warning("rate_limit.unknown_client_rejected", extra={"route": route})
        raise RateLimitedAppError(
            code="rate_limit_unknown_client",
            message="Too many requests. Unable to identify client.",
            details={"hint": "request carried no client address"},
        )

    trusted = client.startswith("api_key:")
    limit = resolve_limit(route, trusted)
    result = get_rate_limit_store().admit(RateLimitKey(client=client, route=route), limit=limit)

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={"route": route, "limit": result.limit, "remaining": result.remaining},
        )
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "route": route,
            "client_type": "api_key" if trusted else "ip",
            "limit": result.limit,
            "retry_after_s": result.retry_after_seconds,
        },
    )
    raise RateLimitedAppError(
        code="rate_limit_exceeded",
        message=_rejection_message(result.limit),
        details={"limit": result.limit, "retry_after": result.retry_after_seconds or 0},
        headers=_rejection_headers(result),
    )
