"""Client for the SLP index query service (SLPDB compatible).

Queries are JSON documents sent base64-encoded in the URL path
(``GET {base_url}q/{base64(query)}``); the service answers with an envelope
holding one array per collection (``t`` tokens, ``a`` address balances,
``c`` confirmed and ``u`` unconfirmed transactions).
"""

from __future__ import annotations

import base64
import json
from typing import Any

import httpx

QUERY_VERSION = 3


def encode_query(query: dict[str, Any]) -> str:
    """Serialize a query document into the URL-safe form the service expects."""
    document = {"v": QUERY_VERSION, "q": query}
    raw = json.dumps(document, separators=(",", ":"), sort_keys=True).encode()
    return base64.b64encode(raw).decode()


class IndexClient:
    """Async wrapper around the index service query endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self._client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)

    async def query(self, query: dict[str, Any]) -> dict[str, Any]:
        """Run ``query`` and return the response envelope.

        Raises:
            httpx.HTTPError: On transport failures and non-2xx responses.
            ValueError: If the body is not a JSON object.
        """
        response = await self._client.get(f"{self.base_url}q/{encode_query(query)}")
        response.raise_for_status()

        envelope = response.json()
        if not isinstance(envelope, dict):
            raise ValueError("Index service returned a non-object envelope")
        return envelope

    async def aclose(self) -> None:
        await self._client.aclose()
