from __future__ import annotations

from slp_gateway.api.routes.control import router as control_router
from slp_gateway.api.routes.health import router as health_router
from slp_gateway.api.routes.slp import router as slp_router

__all__ = ["control_router", "health_router", "slp_router"]
