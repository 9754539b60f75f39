"""Async JSON-RPC 1.0 client for the full node (and RPC-speaking validators)."""

from __future__ import annotations

import itertools
from typing import Any

import httpx

from slp_gateway.adapters.upstream.base import JsonRpcError


class JsonRpcClient:
    """Minimal JSON-RPC client over HTTP POST with optional basic auth.

    Node errors come back as HTTP 500 with a JSON body carrying ``error``;
    they are raised as ``JsonRpcError`` so callers keep the node's message.
    Transport failures propagate as ``httpx`` exceptions.
    """

    def __init__(
        self,
        url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        auth = httpx.BasicAuth(username, password or "") if username else None
        self.url = url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            auth=auth,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def call(self, method: str, *params: Any) -> Any:
        """Invoke ``method`` and return its ``result``.

        Raises:
            JsonRpcError: If the node answered with an error object.
            httpx.HTTPError: On transport failures or non-JSON error responses.
        """
        payload = {
            "jsonrpc": "1.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        response = await self._client.post(self.url, json=payload)

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("error"):
            raise JsonRpcError.from_payload(body["error"], response.status_code)

        response.raise_for_status()

        if not isinstance(body, dict) or "result" not in body:
            raise JsonRpcError(None, f"Malformed JSON-RPC response to {method}", 502)
        return body["result"]

    async def aclose(self) -> None:
        await self._client.aclose()
