"""MongoDB record store backed by a pymongo collection.

- Search terms are escaped and matched with a case-insensitive ``$regex``
  over each search field (``$or``), so they behave as literal substrings.
- Ids are ObjectId hex strings; a malformed id simply matches nothing.
- ``DuplicateKeyError`` becomes ``DUPLICATE_KEY``; any other driver failure
  becomes ``INTERNAL_ERROR``.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Mapping

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.adapters.store.base import AbstractRecordStore, Record
from app.core.errors import DuplicateKeyAppError, ErrorCode, InternalAppError
from app.schemas.listing import SearchPredicate, SortSpec

logger = logging.getLogger(__name__)


def build_search_filter(predicate: SearchPredicate) -> dict[str, Any]:
    """Translate a SearchPredicate into a MongoDB filter document.

    Examples:
        >>> build_search_filter(SearchPredicate(term=None))
        {}
    """
    if predicate.is_empty:
        return {}
    pattern = re.escape(predicate.term)  # type: ignore[arg-type]
    return {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in predicate.fields]}


def build_sort(sort: SortSpec) -> list[tuple[str, int]]:
    field = "_id" if sort.field == "id" else sort.field
    direction = DESCENDING if sort.descending else ASCENDING
    if field == "_id":
        return [(field, direction)]
    return [(field, direction), ("_id", ASCENDING)]


def _to_object_id(record_id: str) -> ObjectId | None:
    if not ObjectId.is_valid(record_id):
        return None
    return ObjectId(record_id)


def _to_record(document: Mapping[str, Any]) -> Record:
    record = {k: v for k, v in document.items() if k != "_id"}
    record["id"] = str(document["_id"])
    return record


class MongoRecordStore(AbstractRecordStore):
    """One MongoDB collection exposed through the record store interface."""

    def __init__(self, collection: Collection, *, unique_fields: Iterable[str] = ()) -> None:
        self._collection = collection
        self._unique_fields = tuple(unique_fields)

    @property
    def name(self) -> str:
        return self._collection.name

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except DuplicateKeyError as exc:
            key = next(iter((exc.details or {}).get("keyValue") or {}), None)
            logger.info(
                "store.duplicate_key",
                extra={"collection": self.name, "operation": operation, "field": key},
            )
            raise DuplicateKeyAppError(
                code=ErrorCode.DUPLICATE_KEY,
                message=f"{key or 'value'} is already registered",
                details={"field": key or "", "resource": self.name},
            ) from exc
        except PyMongoError as exc:
            logger.error(
                "store.operation_failed",
                extra={
                    "collection": self.name,
                    "operation": operation,
                    "error_type": type(exc).__name__,
                },
            )
            raise InternalAppError(
                message="Record store operation failed",
                details={"resource": self.name},
            ) from exc

    def ensure_indexes(self) -> None:
        """Create a unique index for every unique field (idempotent)."""
        with self._translate_errors("ensure_indexes"):
            for field in self._unique_fields:
                self._collection.create_index([(field, ASCENDING)], unique=True)

    def count(self, predicate: SearchPredicate) -> int:
        with self._translate_errors("count"):
            return self._collection.count_documents(build_search_filter(predicate))

    def find(
        self,
        predicate: SearchPredicate,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> list[Record]:
        with self._translate_errors("find"):
            cursor = (
                self._collection.find(build_search_filter(predicate))
                .sort(build_sort(sort))
                .skip(skip)
                .limit(limit)
            )
            return [_to_record(doc) for doc in cursor]

    def find_by_id(self, record_id: str) -> Record | None:
        object_id = _to_object_id(record_id)
        if object_id is None:
            return None
        with self._translate_errors("find_by_id"):
            document = self._collection.find_one({"_id": object_id})
        return _to_record(document) if document is not None else None

    def find_by_field(self, field: str, value: Any) -> Record | None:
        with self._translate_errors("find_by_field"):
            document = self._collection.find_one({field: value})
        return _to_record(document) if document is not None else None

    def insert(self, document: Mapping[str, Any]) -> Record:
        payload = {k: v for k, v in document.items() if k not in ("id", "_id")}
        with self._translate_errors("insert"):
            result = self._collection.insert_one(payload)
        payload["_id"] = result.inserted_id
        return _to_record(payload)

    def update_by_id(self, record_id: str, fields: Mapping[str, Any]) -> bool:
        object_id = _to_object_id(record_id)
        if object_id is None:
            return False
        changes = {k: v for k, v in fields.items() if k not in ("id", "_id")}
        with self._translate_errors("update_by_id"):
            result = self._collection.update_one({"_id": object_id}, {"$set": changes})
        return result.matched_count > 0

    def delete_by_id(self, record_id: str) -> bool:
        object_id = _to_object_id(record_id)
        if object_id is None:
            return False
        with self._translate_errors("delete_by_id"):
            result = self._collection.delete_one({"_id": object_id})
        return result.deleted_count > 0
