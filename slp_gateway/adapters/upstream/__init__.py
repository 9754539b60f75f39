"""Adapters for the services this gateway depends on.

- ``index_client``: SLP index query service (token and balance lookups)
- ``rpc_client``: full node JSON-RPC
- ``validator``: per-txid SLP validity, returned as ``Ok``/``Err`` results
"""
