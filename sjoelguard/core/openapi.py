"""OpenAPI customization.

Adds the admin API key security scheme (``X-API-Key``) and tag descriptions.
Only DELETE operations (counter resets) are marked as requiring the key;
attempt and introspection routes are called by the app's own flows.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {
        "name": "Rate limits",
        "description": "Admission control for auth flows and game mutations.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the admin key scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "AdminApiKey",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Admin API key, required to reset counters.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        tags.extend(tag for tag in _TAGS if tag["name"] not in existing_tag_names)

        for methods in schema.get("paths", {}).values():
            delete_op = methods.get("delete")
            if isinstance(delete_op, dict):
                delete_op["security"] = [{"AdminApiKey": []}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
