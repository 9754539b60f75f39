from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Request

from slp_gateway.api.deps import get_token_service, get_validation_orchestrator
from slp_gateway.core.input_validation import (
    require_non_empty,
    validate_address,
    validate_token_id,
)
from slp_gateway.core.rate_limit import enforce_rate_limit
from slp_gateway.schemas.slp import (
    AddressConversion,
    AddressTokenBalance,
    TokenBalance,
    TokenNotFound,
    TokenRecord,
    ValidateTxidsRequest,
    ValidationOutcome,
)
from slp_gateway.services.token_service import TokenService
from slp_gateway.services.validation_orchestrator import ValidationOrchestrator
from slp_gateway.utils.address import to_cash_address, to_legacy_address, to_slp_address

router = APIRouter(
    prefix="/v2/slp",
    tags=["SLP"],
    dependencies=[Depends(enforce_rate_limit)],
)

TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
OrchestratorDep = Annotated[ValidationOrchestrator, Depends(get_validation_orchestrator)]


@router.get("/")
def root() -> dict:
    """Static marker identifying the SLP route group."""
    return {"status": "slp"}


@router.get("/list", response_model=list[TokenRecord])
async def list_tokens(service: TokenServiceDep) -> list[TokenRecord]:
    """List the genesis metadata of every token known to the index."""
    return await service.list_tokens()


@router.get("/list/{tokenId}", response_model=TokenNotFound | TokenRecord)
async def list_single_token(
    service: TokenServiceDep,
    token_id: Annotated[str, Path(alias="tokenId")],
) -> TokenNotFound | TokenRecord:
    """Genesis metadata of one token.

    A well-formed tokenId the index does not know answers 200 with
    ``{"id": "not found"}``.
    """
    token_id = validate_token_id(token_id)
    return await service.get_token(token_id)


@router.get("/balancesForAddress/{address}", response_model=list[AddressTokenBalance])
async def balances_for_address(
    service: TokenServiceDep,
    address: Annotated[str, Path()],
) -> list[AddressTokenBalance]:
    """Every token balance held by an address."""
    decoded = validate_address(address)
    return await service.balances_for_address(decoded)


@router.get("/balance/{address}/{tokenId}", response_model=TokenBalance)
async def balances_for_address_by_token_id(
    service: TokenServiceDep,
    address: Annotated[str, Path()],
    token_id: Annotated[str, Path(alias="tokenId")],
) -> TokenBalance:
    """Balance of one token held by an address."""
    require_non_empty(address, "address")
    require_non_empty(token_id, "tokenId")
    decoded = validate_address(address)
    token_id = validate_token_id(token_id)
    return await service.balance_for_token(decoded, token_id)


@router.get("/address/convert/{address}", response_model=AddressConversion)
async def convert_address(address: Annotated[str, Path()]) -> AddressConversion:
    """Express an address in CashAddr, legacy and SLP encodings."""
    decoded = validate_address(address)
    return AddressConversion(
        cash_address=to_cash_address(decoded),
        legacy_address=to_legacy_address(decoded),
        slp_address=to_slp_address(decoded),
    )


@router.post(
    "/validateTxid",
    response_model=list[ValidationOutcome],
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": ValidateTxidsRequest.model_json_schema()}},
            "required": True,
        }
    },
)
async def validate_bulk(
    request: Request,
    orchestrator: OrchestratorDep,
) -> list[ValidationOutcome]:
    """Validate up to 20 txids as SLP transactions.

    The answer is atomic: either one outcome per txid in input order, or a
    single error if any validation could not be completed.

    The body is decoded inside the handler, after rate limit admission. An
    undecodable body is treated like a missing ``txids`` array.
    """
    try:
        payload: Any = await request.json()
    except ValueError:
        payload = None
    txids = payload.get("txids") if isinstance(payload, dict) else None
    return await orchestrator.validate_bulk(txids)


@router.get("/validateTxid/{txid}", response_model=ValidationOutcome)
async def validate_single(
    orchestrator: OrchestratorDep,
    txid: Annotated[str, Path()],
) -> ValidationOutcome:
    """Validate a single txid as an SLP transaction."""
    return await orchestrator.validate_single(require_non_empty(txid, "txid"))
