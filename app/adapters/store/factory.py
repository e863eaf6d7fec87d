"""Factory for record store instances."""

from __future__ import annotations

import logging

from pymongo import MongoClient

from app.adapters.store.base import AbstractRecordStore
from app.adapters.store.in_memory import InMemoryRecordStore
from app.adapters.store.mongo import MongoRecordStore
from app.core.config import DatabaseSettings, settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_mongo_client(db_settings: DatabaseSettings | None = None) -> MongoClient:
    """Build a MongoClient from configuration (connection is lazy)."""
    cfg = db_settings or settings.database
    return MongoClient(cfg.connection, serverSelectionTimeoutMS=cfg.timeout_ms)


def create_record_store(
    collection_name: str,
    *,
    unique_fields: tuple[str, ...] = (),
    mongo_client: MongoClient | None = None,
    db_settings: DatabaseSettings | None = None,
) -> AbstractRecordStore:
    """Instantiate the configured record store for one collection.

    Args:
        collection_name: Collection (resource) name, e.g. ``users``.
        unique_fields: Fields that must be unique within the collection.
        mongo_client: Shared client, required when the backend is ``mongo``.
        db_settings: Overrides ``settings.database``.

    Returns:
        AbstractRecordStore: In-memory or MongoDB backed store.

    Raises:
        ValidationAppError: If the backend is unknown or misconfigured.
    """
    cfg = db_settings or settings.database
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryRecordStore(name=collection_name, unique_fields=unique_fields)

    if backend == "mongo":
        if mongo_client is None:
            raise ValidationAppError(
                code="db_missing_client",
                message="The mongo backend requires a MongoClient",
            )
        logger.info(
            "store.configured",
            extra={"backend": backend, "database": cfg.name, "collection": collection_name},
        )
        # Indexes are created at application startup, not here, so that
        # building the app never blocks on the network.
        return MongoRecordStore(
            mongo_client[cfg.name][collection_name],
            unique_fields=unique_fields,
        )

    raise ValidationAppError(
        code="db_unknown_backend",
        message=f"Unknown record store backend: '{backend}'. Supported backends: memory, mongo",
    )
