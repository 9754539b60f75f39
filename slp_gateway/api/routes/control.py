from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from slp_gateway.api.deps import get_control_service
from slp_gateway.core.rate_limit import enforce_rate_limit
from slp_gateway.services.control_service import ControlService

router = APIRouter(
    prefix="/v2/control",
    tags=["Control"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.get("/getInfo")
async def get_info(service: Annotated[ControlService, Depends(get_control_service)]) -> dict:
    """Full node status (version, block height, connections, network)."""
    return await service.get_info()
