from __future__ import annotations

from fastapi import APIRouter

from slp_gateway.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe; not rate limited and never touches upstream services.

    Returns:
        dict: ``status`` plus the network this deployment serves.
    """

    return {"status": "ok", "network": settings.app.network}
