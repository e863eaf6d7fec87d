"""OpenAPI customization.

Adds a bearer security scheme, marks every operation as requiring it, and
exempts the login and health endpoints (``security: []``).
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Authentication", "description": "Login and logout; login is rate limited per client."},
    {"name": "Users", "description": "User accounts: paginated listing and CRUD."},
    {"name": "Toko", "description": "Toko (store) accounts: paginated listing and CRUD."},
    {"name": "Health", "description": "Liveness checks."},
]

_PUBLIC_SUFFIXES = ("/health", "/authentication/login")


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to document bearer authentication."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "description": "Token returned by POST /authentication/login.",
            },
        )
        schema.setdefault("security", [{"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith(_PUBLIC_SUFFIXES):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
