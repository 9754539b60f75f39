"""Rate limiting adapters.

A small abstraction layer so the gateway can start with an in-memory store
and later move to a shared store without changing the HTTP layer.
"""

from slp_gateway.adapters.rate_limit.base import (
    AbstractRateLimitStore,
    RateLimitKey,
    RateLimitResult,
)
from slp_gateway.adapters.rate_limit.in_memory import InMemoryRateLimitStore

__all__ = [
    "AbstractRateLimitStore",
    "InMemoryRateLimitStore",
    "RateLimitKey",
    "RateLimitResult",
]
