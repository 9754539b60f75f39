"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import that loads settings, so the
whole suite runs against a testnet deployment with fake upstream URLs.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_NETWORK", "testnet")
os.environ.setdefault("APP_API_KEYS", "trusted-key-123,trusted-key-456")
os.environ.setdefault("UPSTREAM_INDEX_URL", "http://fakeurl/")
os.environ.setdefault("UPSTREAM_RPC_URL", "http://fakeurl:8332/")
os.environ.setdefault("UPSTREAM_TIMEOUT_SECONDS", "2")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from slp_gateway.core.app_factory import create_app
from slp_gateway.core.rate_limit import reset_rate_limit_store

TESTNET_TOKEN_ID = "650dea14c77f4d749608e36e375450c9ac91deb8b1b53e50cb0de2059a52d19a"


@pytest.fixture(autouse=True)
def fresh_rate_limits() -> Iterator[None]:
    """Every test starts with empty rate limit windows."""
    reset_rate_limit_store()
    yield
    reset_rate_limit_store()


@pytest.fixture
def app() -> Iterator[FastAPI]:
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def mock_token_list() -> dict:
    """Index envelope for the token list query."""
    return {
        "t": [
            {
                "tokenDetails": {
                    "tokenIdHex": TESTNET_TOKEN_ID,
                    "timestamp": "2018-11-06 17:11:37",
                    "timestamp_unix": 1541524297,
                    "symbol": "SLPSDK",
                    "name": "SLP SDK example using BITBOX",
                    "documentUri": "developer.bitcoin.com",
                    "documentSha256Hex": None,
                    "decimals": 8,
                    "genesisOrMintQuantity": {"$numberDecimal": "1000"},
                }
            },
            {
                "tokenDetails": {
                    "tokenIdHex": "df808a41672a0a0ae6475b44f272a107bc9961b90f29dc918d71301f24fe92fb",
                    "timestamp": None,
                    "symbol": "NAKAMOTO",
                    "name": "NAKAMOTO",
                    "documentUri": "",
                    "documentSha256Hex": "",
                    "decimals": 8,
                    "genesisOrMintQuantity": "21000000",
                }
            },
        ]
    }
