"""SLP transaction validator adapter.

Semantic validation is delegated to an external service. This adapter hides
how that service fails (JSON-RPC errors, HTTP errors, dropped connections,
odd payloads) behind one result type: ``Ok(valid)`` or ``Err(UpstreamError)``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from slp_gateway.adapters.upstream.base import Err, JsonRpcError, Ok, Result
from slp_gateway.adapters.upstream.rpc_client import JsonRpcClient
from slp_gateway.services.error_translator import translate

logger = logging.getLogger(__name__)


class AbstractSlpValidator(ABC):
    """Interface for per-txid SLP validators."""

    @abstractmethod
    async def validate(self, txid: str) -> Result[bool]:
        """Return whether ``txid`` is a valid SLP transaction.

        Implementations must not raise for upstream failures; they return
        ``Err`` instead.
        """
        raise NotImplementedError


class RpcSlpValidator(AbstractSlpValidator):
    """Validator backed by a JSON-RPC method answering true/false per txid."""

    def __init__(self, rpc: JsonRpcClient, *, method: str = "validateslptxid") -> None:
        self.rpc = rpc
        self.method = method

    async def validate(self, txid: str) -> Result[bool]:
        try:
            result = await self.rpc.call(self.method, txid)
        except (JsonRpcError, httpx.HTTPError, ValueError) as exc:
            logger.info(
                "validator.call_failed",
                extra={"txid": txid, "error_type": type(exc).__name__},
            )
            return Err(translate(exc))

        if isinstance(result, dict):
            # Some validators answer {"valid": bool, "reason": ...}
            result = result.get("valid")
        if not isinstance(result, bool):
            return Err(translate(ValueError(f"Unexpected validator result for {txid}")))
        return Ok(result)
