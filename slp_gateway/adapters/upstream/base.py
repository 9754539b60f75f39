"""Shared shapes for upstream (index service, full node, validator) adapters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class UpstreamError:
    """Normalized upstream failure.

    Attributes:
        status_code: HTTP status the gateway should answer with (>= 500).
        message: Client-facing message, upstream diagnostics preserved.
    """

    status_code: int
    message: str


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful upstream outcome."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed upstream outcome, already translated."""

    error: UpstreamError


Result = Union[Ok[T], Err]


class JsonRpcError(Exception):
    """Error object returned by a JSON-RPC endpoint.

    Attributes:
        code: JSON-RPC error code (e.g. -5 for unknown transaction).
        message: Error message reported by the node.
        http_status: HTTP status of the response that carried the error.
    """

    def __init__(self, code: int | None, message: str, http_status: int = 500) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status

    @classmethod
    def from_payload(cls, error: Any, http_status: int) -> "JsonRpcError":
        """Build from the ``error`` member of a JSON-RPC response."""
        if isinstance(error, dict):
            return cls(error.get("code"), str(error.get("message") or error), http_status)
        return cls(None, str(error), http_status)
