"""Full node status queries."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from slp_gateway.adapters.upstream.base import JsonRpcError
from slp_gateway.adapters.upstream.rpc_client import JsonRpcClient
from slp_gateway.services.error_translator import to_app_error


class ControlService:
    """Node info in the shape of the legacy ``getinfo`` RPC."""

    def __init__(self, rpc: JsonRpcClient) -> None:
        self.rpc = rpc

    async def get_info(self) -> dict[str, Any]:
        try:
            blockchain, network = await asyncio.gather(
                self.rpc.call("getblockchaininfo"),
                self.rpc.call("getnetworkinfo"),
            )
        except (JsonRpcError, httpx.HTTPError, ValueError) as exc:
            raise to_app_error(exc, upstream="full_node") from exc

        try:
            return {
                "version": network["version"],
                "protocolversion": network["protocolversion"],
                "blocks": blockchain["blocks"],
                "timeoffset": network.get("timeoffset", 0),
                "connections": network.get("connections", 0),
                "proxy": (network.get("networks") or [{}])[0].get("proxy", ""),
                "difficulty": blockchain.get("difficulty"),
                "testnet": blockchain.get("chain") != "main",
                "relayfee": network.get("relayfee"),
                "errors": network.get("warnings", ""),
            }
        except (KeyError, TypeError, AttributeError) as exc:
            raise to_app_error(ValueError(str(exc)), upstream="full_node") from exc
