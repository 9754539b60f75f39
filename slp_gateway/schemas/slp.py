"""Pydantic schemas for the public SLP JSON contract.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenRecord(CamelModel):
    """Genesis metadata of an SLP token."""

    id: str = Field(..., description="Token id (txid of the genesis transaction).")
    timestamp: str | None = Field(
        None,
        description="Genesis block time as 'YYYY-MM-DD HH:MM' (null while unconfirmed).",
    )
    symbol: str | None = Field(None, description="Ticker symbol.")
    name: str | None = Field(None, description="Token name.")
    document_uri: str | None = Field(None, description="Document URI from the genesis.")
    document_hash: str | None = Field(None, description="SHA-256 of the document, hex.")
    decimals: int = Field(0, ge=0, le=9, description="Decimal places of token amounts.")
    initial_token_qty: int | float = Field(
        0, description="Quantity minted by the genesis transaction."
    )


class TokenNotFound(BaseModel):
    """Lookup answer for a well-formed tokenId that the index does not know."""

    id: Literal["not found"] = Field("not found", description="Always 'not found'.")


class AddressTokenBalance(CamelModel):
    """Balance of one token held by an address."""

    token_id: str
    balance: int | float
    slp_address: str


class TokenBalance(CamelModel):
    """Balance of a specific token for a specific address."""

    token_id: str
    balance: int | float


class AddressConversion(CamelModel):
    """The same address in all three encodings."""

    cash_address: str
    legacy_address: str
    slp_address: str


class ValidationOutcome(BaseModel):
    """Validity of one txid in a validation request."""

    txid: str
    valid: bool


class ValidateTxidsRequest(BaseModel):
    """Documented body of the bulk validation endpoint.

    The endpoint accepts arbitrary JSON and validates the shape itself so
    shape errors use the gateway's own messages.
    """

    txids: list[str] = Field(..., description="Up to 20 txids (64 hex characters each).")
