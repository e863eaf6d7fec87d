"""Application factory for the FastAPI app.

Centralizes app construction (record stores, services, middleware, handlers,
routers) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.adapters.store.base import AbstractRecordStore
from app.adapters.store.factory import create_mongo_client, create_record_store
from app.adapters.store.mongo import MongoRecordStore
from app.api.routes import authentication_router, build_account_router, health_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.services.account_service import AccountService

logger = logging.getLogger(__name__)

# resource -> (OpenAPI tag, error label, invalidates sessions)
ACCOUNT_RESOURCES: dict[str, tuple[str, str, bool]] = {
    "users": ("Users", "user", True),
    "toko": ("Toko", "toko", False),
}


def seed_users(app: FastAPI) -> None:
    """Create the configured seed user unless its email is already registered."""
    if not (settings.app.seed_user_email and settings.app.seed_user_password):
        return
    created = app.state.account_services["users"].ensure_account(
        settings.app.seed_user_name,
        settings.app.seed_user_email,
        settings.app.seed_user_password,
    )
    logger.info("users.seeded" if created else "users.seed_skipped")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create database indexes and seed data on startup; close the client on shutdown."""
    for store in app.state.record_stores.values():
        if isinstance(store, MongoRecordStore):
            store.ensure_indexes()
    seed_users(app)
    logger.info("app.started", extra={"db_backend": settings.database.backend})

    yield

    mongo_client = getattr(app.state, "mongo_client", None)
    if mongo_client is not None:
        mongo_client.close()
    logger.info("app.stopped")


def build_record_stores(mongo_client=None) -> dict[str, AbstractRecordStore]:
    return {
        resource: create_record_store(
            resource, unique_fields=("email",), mongo_client=mongo_client
        )
        for resource in ACCOUNT_RESOURCES
    }


def create_app(record_stores: dict[str, AbstractRecordStore] | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        record_stores: Stores keyed by resource name; built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Toko API",
        description=(
            "CRUD API for users and toko accounts with paginated, searchable and "
            "sortable listings. Requires a bearer token from /authentication/login; "
            "login attempts are rate limited per client."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    mongo_client = None
    if record_stores is None:
        if settings.database.backend.lower() == "mongo":
            mongo_client = create_mongo_client(settings.database)
        record_stores = build_record_stores(mongo_client)

    app.state.mongo_client = mongo_client
    app.state.record_stores = record_stores
    app.state.account_services = {
        resource: AccountService(
            store=record_stores[resource],
            resource=resource,
            label=label,
            bcrypt_rounds=settings.app.bcrypt_rounds,
        )
        for resource, (_, label, _) in ACCOUNT_RESOURCES.items()
    }

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    prefix = settings.app.api_prefix.rstrip("/")
    app.include_router(authentication_router, prefix=prefix)
    for resource, (tag, _, revokes_sessions) in ACCOUNT_RESOURCES.items():
        app.include_router(
            build_account_router(resource, tag=tag, revokes_sessions=revokes_sessions),
            prefix=prefix,
        )
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
