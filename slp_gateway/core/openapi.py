"""OpenAPI customization.

Adds tag descriptions and documents the optional ``X-API-Key`` header that
identifies trusted callers (relaxed rate limit). Keys are never required, so
the scheme is listed as an alternative to anonymous access.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "SLP", "description": "Token metadata, balances, address conversion and txid validation."},
    {"name": "Control", "description": "Full node status."},
    {"name": "Health", "description": "Liveness checks (not rate limited)."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with tags and the trusted-caller scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        security_schemes = schema.setdefault("components", {}).setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "TrustedApiKey",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Optional. Trusted callers get a relaxed rate limit.",
            },
        )
        # Empty requirement object: anonymous access is allowed
        schema.setdefault("security", [{}, {"TrustedApiKey": []}])

        tags = schema.setdefault("tags", [])
        existing = {tag.get("name") for tag in tags}
        tags.extend(tag for tag in TAGS_METADATA if tag["name"] not in existing)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
