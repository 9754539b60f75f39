"""Translation of heterogeneous upstream failures into one error contract.

``translate`` is the single place where transport exceptions, HTTP error
responses and JSON-RPC error objects become an ``UpstreamError``. It never
raises: whatever it is given, it answers with a status code >= 500 and a
message safe to show to API consumers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from slp_gateway.adapters.upstream.base import JsonRpcError, UpstreamError
from slp_gateway.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = (
    "Network error: Could not communicate with full node or other external service."
)
UNEXPECTED_ERROR_MESSAGE = "Unexpected upstream error."


def _server_status(status: Any, default: int = 500) -> int:
    """Clamp an upstream status into the 5xx range."""
    if isinstance(status, int) and 500 <= status <= 599:
        return status
    return default


def _embedded_message(body: Any) -> str | None:
    """Extract ``error.message`` (or a plain ``error`` string) from a JSON body."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return None


def _from_http_status_error(exc: httpx.HTTPStatusError) -> UpstreamError:
    response = exc.response
    try:
        body = response.json()
    except ValueError:
        body = None

    message = _embedded_message(body)
    if message:
        return UpstreamError(_server_status(response.status_code), message)

    reason = response.reason_phrase or f"Upstream returned HTTP {response.status_code}"
    return UpstreamError(_server_status(response.status_code, default=502), reason)


def translate(raw: Any) -> UpstreamError:
    """Classify an upstream failure and normalize it.

    Args:
        raw: Exception (or already-normalized error) produced at an upstream
            call boundary.

    Returns:
        UpstreamError with status >= 500 and a user-facing message.
    """
    try:
        if isinstance(raw, UpstreamError):
            return raw
        if isinstance(raw, JsonRpcError):
            return UpstreamError(_server_status(raw.http_status), raw.message)
        if isinstance(raw, httpx.HTTPStatusError):
            return _from_http_status_error(raw)
        if isinstance(raw, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
            return UpstreamError(504, NETWORK_ERROR_MESSAGE)
        if isinstance(raw, (httpx.TransportError, ConnectionError, OSError)):
            return UpstreamError(503, NETWORK_ERROR_MESSAGE)
    except Exception:  # noqa: BLE001 - translation must always produce a result
        logger.exception("upstream.translate_failed", extra={"error_type": type(raw).__name__})

    return UpstreamError(500, UNEXPECTED_ERROR_MESSAGE)


def to_app_error(raw: Any, *, upstream: str) -> UpstreamAppError:
    """Translate ``raw`` and wrap it in an ``UpstreamAppError`` for the HTTP layer."""
    error = translate(raw)
    logger.warning(
        "upstream.request_failed",
        extra={
            "upstream": upstream,
            "error_type": type(raw).__name__,
            "status_code": error.status_code,
            "error_message": error.message,
        },
    )
    return UpstreamAppError(
        code="upstream_error",
        message=error.message,
        details={"upstream": upstream},
        status_code=error.status_code,
    )
