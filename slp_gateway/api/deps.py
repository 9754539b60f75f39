"""FastAPI dependency providers for upstream clients and services.

Clients are process-wide so their connection pools are shared across
requests; ``close_upstream_clients`` releases them at shutdown. Tests swap
any provider through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from slp_gateway.adapters.upstream.index_client import IndexClient
from slp_gateway.adapters.upstream.rpc_client import JsonRpcClient
from slp_gateway.adapters.upstream.validator import AbstractSlpValidator, RpcSlpValidator
from slp_gateway.core.config import settings
from slp_gateway.services.control_service import ControlService
from slp_gateway.services.token_service import TokenService
from slp_gateway.services.validation_orchestrator import ValidationOrchestrator


@lru_cache
def get_index_client() -> IndexClient:
    return IndexClient(
        settings.upstream.index_url,
        timeout_seconds=settings.upstream.timeout_seconds,
    )


@lru_cache
def get_rpc_client() -> JsonRpcClient:
    return JsonRpcClient(
        settings.upstream.rpc_url,
        username=settings.upstream.rpc_username,
        password=settings.upstream.rpc_password,
        timeout_seconds=settings.upstream.timeout_seconds,
    )


@lru_cache
def get_validator() -> AbstractSlpValidator:
    rpc = get_rpc_client()
    if settings.upstream.validator_url and settings.upstream.validator_url != settings.upstream.rpc_url:
        rpc = JsonRpcClient(
            settings.upstream.validator_url,
            username=settings.upstream.rpc_username,
            password=settings.upstream.rpc_password,
            timeout_seconds=settings.upstream.timeout_seconds,
        )
    return RpcSlpValidator(rpc, method=settings.upstream.validator_method)


def get_token_service() -> TokenService:
    return TokenService(get_index_client())


def get_control_service() -> ControlService:
    return ControlService(get_rpc_client())


def get_validation_orchestrator() -> ValidationOrchestrator:
    return ValidationOrchestrator(get_validator())


async def close_upstream_clients() -> None:
    """Close every client created so far and forget them."""
    clients: list[IndexClient | JsonRpcClient] = []
    if get_index_client.cache_info().currsize:
        clients.append(get_index_client())
    if get_rpc_client.cache_info().currsize:
        clients.append(get_rpc_client())
    if get_validator.cache_info().currsize:
        validator = get_validator()
        if isinstance(validator, RpcSlpValidator) and all(validator.rpc is not c for c in clients):
            clients.append(validator.rpc)

    for client in clients:
        await client.aclose()

    get_index_client.cache_clear()
    get_rpc_client.cache_clear()
    get_validator.cache_clear()
