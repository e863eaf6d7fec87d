"""Record store interface.

Services depend on this abstraction so the same account and listing logic
runs against MongoDB in production and an in-memory store in development
and tests.

Records are plain dicts carrying a string ``id``; storage-specific keys such
as Mongo's ``_id`` never leak out of an adapter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from app.schemas.listing import SearchPredicate, SortSpec

Record = dict[str, Any]


class AbstractRecordStore(ABC):
    """Interface for a single collection of records."""

    @abstractmethod
    def count(self, predicate: SearchPredicate) -> int:
        """Number of records matching ``predicate``."""
        raise NotImplementedError

    @abstractmethod
    def find(
        self,
        predicate: SearchPredicate,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> list[Record]:
        """Filter by ``predicate``, order by ``sort`` then id, and slice.

        Returns:
            At most ``limit`` records after skipping ``skip`` matches.
        """
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, record_id: str) -> Record | None:
        raise NotImplementedError

    @abstractmethod
    def find_by_field(self, field: str, value: Any) -> Record | None:
        """First record whose ``field`` equals ``value`` exactly."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, document: Mapping[str, Any]) -> Record:
        """Store a new record and return it with its assigned ``id``.

        Raises:
            DuplicateKeyAppError: If a unique field is already taken.
        """
        raise NotImplementedError

    @abstractmethod
    def update_by_id(self, record_id: str, fields: Mapping[str, Any]) -> bool:
        """Set ``fields`` on a record.

        Returns:
            True if a record with ``record_id`` exists.

        Raises:
            DuplicateKeyAppError: If the update would violate a unique field.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_by_id(self, record_id: str) -> bool:
        """Remove a record; True if it existed."""
        raise NotImplementedError
