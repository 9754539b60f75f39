"""Request input guards run before any upstream call.

Each guard either returns the normalized value or raises
``BadRequestAppError``, so handlers never reach the index service, the full
node or the validator with input that is empty, malformed, oversized or
meant for another network.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from slp_gateway.core.config import settings
from slp_gateway.core.errors import BadRequestAppError
from slp_gateway.utils.address import DecodedAddress, InvalidAddressError, decode_address

logger = logging.getLogger(__name__)

_TXID_RE = re.compile(r"^[0-9a-fA-F]{64}$")

NETWORK_MISMATCH_MESSAGE = (
    "Invalid network. Trying to use a testnet address on mainnet, or vice versa."
)


def require_non_empty(value: str | None, field: str) -> str:
    """Reject missing or empty path/query values with a field-specific message."""
    if value is None or not str(value).strip():
        raise BadRequestAppError(
            code=f"{field}_empty",
            message=f"{field} can not be empty",
            details={"field": field},
        )
    return str(value).strip()


def validate_txid(txid: Any, field: str = "txid") -> str:
    """Ensure ``txid`` is 64 hex characters.

    Malformed txids are rejected here and never reach the validator, so a
    short txid such as ``abc123`` answers with this message instead of the
    node's own "parameter 1 must be of length 64" text.
    """
    if not isinstance(txid, str) or not _TXID_RE.match(txid):
        raise BadRequestAppError(
            code="invalid_txid",
            message=f"Invalid {field}: {txid}. {field} must be 64 hex characters.",
            details={"field": field, "value": str(txid)[:80]},
        )
    return txid


def validate_token_id(token_id: str | None) -> str:
    """A tokenId is the txid of the token's genesis transaction."""
    return validate_txid(require_non_empty(token_id, "tokenId"), field="tokenId")


def validate_address(address: str | None, *, network: str | None = None) -> DecodedAddress:
    """Decode ``address`` and check it belongs to the served network.

    Args:
        address: CashAddr, SLP or legacy address from the request.
        network: Expected network; defaults to the configured one.

    Returns:
        The decoded address.

    Raises:
        BadRequestAppError: Empty, undecodable, or wrong-network address.
    """
    address = require_non_empty(address, "address")
    expected = network or settings.app.network

    try:
        decoded = decode_address(address)
    except InvalidAddressError as exc:
        logger.info("input.invalid_address", extra={"reason": str(exc)})
        raise BadRequestAppError(
            code="invalid_address",
            message=f"Invalid BCH address. Double check your address is valid: {address}",
            details={"field": "address", "hint": str(exc)},
        ) from exc

    if decoded.network != expected:
        raise BadRequestAppError(
            code="network_mismatch",
            message=NETWORK_MISMATCH_MESSAGE,
            details={"field": "address", "context": {"expected": expected, "actual": decoded.network}},
        )
    return decoded


def validate_txid_batch(txids: Any, *, max_items: int | None = None) -> list[str]:
    """Validate the ``txids`` array of a bulk request.

    Order of checks: shape, size cap, emptiness, then per-item format. The
    size cap is checked before item formats, so an oversized batch is
    rejected as such whatever it contains.
    """
    limit = settings.app.validate_bulk_max_txids if max_items is None else max_items

    if not isinstance(txids, list):
        raise BadRequestAppError(
            code="txids_not_array",
            message="txids needs to be an array",
            details={"field": "txids"},
        )
    if len(txids) > limit:
        raise BadRequestAppError(
            code="txids_too_large",
            message=f"Array too large. Max {limit} txids",
            details={"field": "txids", "max_items": limit, "actual_items": len(txids)},
        )
    if not txids:
        raise BadRequestAppError(
            code="txids_empty",
            message="txids can not be empty",
            details={"field": "txids"},
        )

    return [validate_txid(txid) for txid in txids]
