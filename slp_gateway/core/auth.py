"""Trusted caller identification.

The gateway is public; API keys do not gate access. A caller presenting one
of the configured keys is identified by that key (instead of its IP) and
receives the relaxed rate limit ceiling.
"""

from __future__ import annotations

import hashlib
import hmac

from slp_gateway.core.config import settings


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def hash_api_key(api_key: str) -> str:
    """Short, non-reversible fingerprint of an API key for keys and logs."""
    return hashlib.sha256(api_key.encode()).hexdigest()[:16]


def is_trusted_api_key(api_key: str | None) -> bool:
    """Return True if ``api_key`` is one of the configured trusted keys."""
    if not api_key:
        return False

    return any(
        hmac.compare_digest(api_key.encode(), candidate.encode())
        for candidate in parse_api_keys(settings.app.api_keys)
    )
