"""Record store adapters - one interface over in-memory and MongoDB storage."""

from app.adapters.store.base import AbstractRecordStore, Record
from app.adapters.store.factory import create_mongo_client, create_record_store
from app.adapters.store.in_memory import InMemoryRecordStore
from app.adapters.store.mongo import MongoRecordStore

__all__ = [
    "AbstractRecordStore",
    "InMemoryRecordStore",
    "MongoRecordStore",
    "Record",
    "create_mongo_client",
    "create_record_store",
]
