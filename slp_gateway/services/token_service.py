"""Token and balance lookups against the SLP index service.

Builds index queries, runs them, and reshapes index documents into the
public token-record and balance contracts. Upstream failures leave this
module as ``UpstreamAppError`` (via the error translator); inputs are
assumed to be validated by the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from slp_gateway.adapters.upstream.index_client import IndexClient
from slp_gateway.schemas.slp import (
    AddressTokenBalance,
    TokenBalance,
    TokenNotFound,
    TokenRecord,
)
from slp_gateway.services.error_translator import to_app_error
from slp_gateway.utils.address import DecodedAddress, to_slp_address

logger = logging.getLogger(__name__)

TOKEN_LIST_LIMIT = 10000
BALANCE_LIST_LIMIT = 10000


def _to_number(raw: Any) -> int | float:
    """Parse index quantities (numbers, strings or ``{"$numberDecimal": ...}``)."""
    if isinstance(raw, dict):
        raw = raw.get("$numberDecimal", 0)
    if isinstance(raw, bool) or raw is None:
        return 0
    if isinstance(raw, (int, float)):
        return raw
    try:
        value = Decimal(str(raw))
    except InvalidOperation as exc:
        raise ValueError(f"Unparseable quantity: {raw!r}") from exc
    return int(value) if value == value.to_integral_value() else float(value)


def _format_timestamp(details: dict[str, Any]) -> str | None:
    unix = details.get("timestamp_unix")
    if isinstance(unix, (int, float)):
        return datetime.fromtimestamp(unix, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
    timestamp = details.get("timestamp")
    return str(timestamp)[:16] if timestamp else None


def reshape_token(document: dict[str, Any]) -> TokenRecord:
    """Map an index ``t`` document onto the public token record."""
    details = document.get("tokenDetails") or {}
    return TokenRecord(
        id=details["tokenIdHex"],
        timestamp=_format_timestamp(details),
        symbol=details.get("symbol"),
        name=details.get("name"),
        document_uri=details.get("documentUri"),
        document_hash=details.get("documentSha256Hex"),
        decimals=details.get("decimals") or 0,
        initial_token_qty=_to_number(details.get("genesisOrMintQuantity")),
    )


def _token_query(token_id: str | None = None) -> dict[str, Any]:
    find: dict[str, Any] = {}
    if token_id:
        find["tokenDetails.tokenIdHex"] = token_id
    return {
        "db": ["t"],
        "find": find,
        "project": {"tokenDetails": 1, "_id": 0},
        "limit": 1 if token_id else TOKEN_LIST_LIMIT,
    }


def _balance_query(slp_address: str, token_id: str | None = None) -> dict[str, Any]:
    find: dict[str, Any] = {"address": slp_address, "token_balance": {"$gte": 0}}
    if token_id:
        find["tokenDetails.tokenIdHex"] = token_id
    return {
        "db": ["a"],
        "find": find,
        "project": {"address": 1, "tokenDetails.tokenIdHex": 1, "token_balance": 1, "_id": 0},
        "limit": 1 if token_id else BALANCE_LIST_LIMIT,
    }


class TokenService:
    """Index-backed token queries."""

    def __init__(self, index: IndexClient) -> None:
        self.index = index

    async def _run(self, query: dict[str, Any], collection: str) -> list[dict[str, Any]]:
        try:
            envelope = await self.index.query(query)
        except (httpx.HTTPError, ValueError) as exc:
            raise to_app_error(exc, upstream="index") from exc

        documents = envelope.get(collection, [])
        if not isinstance(documents, list):
            raise to_app_error(
                ValueError(f"Index collection {collection!r} is not an array"),
                upstream="index",
            )
        return [doc for doc in documents if isinstance(doc, dict)]

    def _reshape_all(self, documents: list[dict[str, Any]]) -> list[TokenRecord]:
        try:
            return [reshape_token(doc) for doc in documents]
        except (KeyError, ValueError) as exc:
            raise to_app_error(exc, upstream="index") from exc

    async def list_tokens(self) -> list[TokenRecord]:
        """All token genesis records known to the index."""
        documents = await self._run(_token_query(), "t")
        tokens = self._reshape_all(documents)
        logger.info("tokens.listed", extra={"count": len(tokens)})
        return tokens

    async def get_token(self, token_id: str) -> TokenRecord | TokenNotFound:
        """Genesis record of ``token_id``, or the not-found marker."""
        documents = await self._run(_token_query(token_id), "t")
        for token in self._reshape_all(documents):
            if token.id == token_id:
                return token

        logger.info("tokens.not_found", extra={"token_id": token_id})
        return TokenNotFound()

    async def balances_for_address(self, address: DecodedAddress) -> list[AddressTokenBalance]:
        """Every token balance held by ``address``."""
        slp_address = to_slp_address(address)
        documents = await self._run(_balance_query(slp_address), "a")
        try:
            return [
                AddressTokenBalance(
                    token_id=doc["tokenDetails"]["tokenIdHex"],
                    balance=_to_number(doc.get("token_balance")),
                    slp_address=slp_address,
                )
                for doc in documents
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise to_app_error(ValueError(str(exc)), upstream="index") from exc

    async def balance_for_token(self, address: DecodedAddress, token_id: str) -> TokenBalance:
        """Balance of ``token_id`` held by ``address`` (0 when none)."""
        slp_address = to_slp_address(address)
        documents = await self._run(_balance_query(slp_address, token_id), "a")
        try:
            balance = sum(
                (_to_number(doc.get("token_balance")) for doc in documents
                 if doc.get("tokenDetails", {}).get("tokenIdHex") == token_id),
                0,
            )
        except (AttributeError, ValueError) as exc:
            raise to_app_error(ValueError(str(exc)), upstream="index") from exc
        return TokenBalance(token_id=token_id, balance=balance)
