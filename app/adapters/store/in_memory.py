"""Thread-safe in-memory record store.

Mirrors the MongoDB adapter's observable behavior (substring search, sort
with id tie-break, skip/limit, unique fields) so services and routes can be
exercised without a database. State is per-process.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Iterable, Mapping

from app.adapters.store.base import AbstractRecordStore, Record
from app.core.errors import DuplicateKeyAppError, ErrorCode
from app.schemas.listing import SearchPredicate, SortSpec

logger = logging.getLogger(__name__)


def _sort_key(field: str):
    # Missing/None values sort first, like MongoDB's null ordering.
    def key(record: Record) -> tuple[bool, Any]:
        value = record.get(field)
        return (value is not None, value if value is not None else 0)

    return key


class InMemoryRecordStore(AbstractRecordStore):
    """Dict-backed collection guarded by a lock."""

    def __init__(self, *, name: str = "records", unique_fields: Iterable[str] = ()) -> None:
        self.name = name
        self._unique_fields = tuple(unique_fields)
        self._records: dict[str, Record] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _check_unique_locked(self, candidate: Mapping[str, Any], exclude_id: str | None) -> None:
        for field in self._unique_fields:
            if field not in candidate:
                continue
            value = candidate[field]
            for record_id, record in self._records.items():
                if record_id != exclude_id and record.get(field) == value:
                    raise DuplicateKeyAppError(
                        code=ErrorCode.DUPLICATE_KEY,
                        message=f"{field} is already registered",
                        details={"field": field, "resource": self.name},
                    )

    def count(self, predicate: SearchPredicate) -> int:
        with self._lock:
            return sum(1 for record in self._records.values() if predicate.matches(record))

    def find(
        self,
        predicate: SearchPredicate,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> list[Record]:
        with self._lock:
            matches = [dict(r) for r in self._records.values() if predicate.matches(r)]

        # Ascending id first; the stable sort below keeps it as the tie-break.
        matches.sort(key=lambda r: r["id"])
        matches.sort(key=_sort_key(sort.field), reverse=sort.descending)
        return matches[skip : skip + limit]

    def find_by_id(self, record_id: str) -> Record | None:
        with self._lock:
            record = self._records.get(record_id)
            return dict(record) if record is not None else None

    def find_by_field(self, field: str, value: Any) -> Record | None:
        with self._lock:
            for record in self._records.values():
                if record.get(field) == value:
                    return dict(record)
        return None

    def insert(self, document: Mapping[str, Any]) -> Record:
        record = {k: v for k, v in document.items() if k != "id"}
        record["id"] = uuid.uuid4().hex
        with self._lock:
            self._check_unique_locked(record, exclude_id=None)
            self._records[record["id"]] = record
        logger.debug("store.insert", extra={"collection": self.name, "record_id": record["id"]})
        return dict(record)

    def update_by_id(self, record_id: str, fields: Mapping[str, Any]) -> bool:
        changes = {k: v for k, v in fields.items() if k != "id"}
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return False
            self._check_unique_locked(changes, exclude_id=record_id)
            record.update(changes)
        return True

    def delete_by_id(self, record_id: str) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None
