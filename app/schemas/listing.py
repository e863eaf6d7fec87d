"""Types describing a paginated, searchable, sortable list request and its page.

``ListQuery``, ``SortSpec`` and ``SearchPredicate`` are plain immutable values
shared by the query builder, the list executor and every record store
adapter. ``PageResult`` is the pydantic response model; its wire names
(``count``, ``data``) are aliases of the Python attribute names.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortSpec:
    """Field name plus direction; ``name asc`` when the client sends nothing."""

    field: str = "name"
    direction: SortDirection = SortDirection.ASC

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC


@dataclass(frozen=True)
class SearchPredicate:
    """Case-insensitive substring match over a fixed set of text fields.

    A record matches when *any* of ``fields`` contains ``term``. An empty or
    missing term matches every record. The term is literal text, never a
    pattern.
    """

    term: str | None = None
    fields: tuple[str, ...] = ("name", "email")

    @property
    def is_empty(self) -> bool:
        return not self.term

    def matches(self, record: Mapping[str, Any]) -> bool:
        if self.is_empty:
            return True
        needle = self.term.casefold()  # type: ignore[union-attr]
        for name in self.fields:
            value = record.get(name)
            if value is not None and needle in str(value).casefold():
                return True
        return False


@dataclass(frozen=True)
class ListQuery:
    """Validated pagination, search and sort parameters."""

    page_number: int = 1
    page_size: int = 10
    search: SearchPredicate = field(default_factory=SearchPredicate)
    sort: SortSpec = field(default_factory=SortSpec)

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError("page_number must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def search_term(self) -> str | None:
        return self.search.term

    @property
    def skip(self) -> int:
        return (self.page_number - 1) * self.page_size


class PageResult(BaseModel):
    """One page of a list result plus pagination metadata."""

    page_number: int = Field(..., ge=1, description="1-based page index that was requested.")
    page_size: int = Field(..., ge=1, description="Maximum number of items per page.")
    total_count: int = Field(
        ...,
        ge=0,
        alias="count",
        description="Number of records matching the search, independent of paging.",
    )
    total_pages: int = Field(..., ge=0, description="ceil(count / page_size).")
    has_previous_page: bool = Field(..., description="True when page_number > 1.")
    has_next_page: bool = Field(..., description="True when page_number < total_pages.")
    items: list[dict[str, Any]] = Field(
        default_factory=list,
        alias="data",
        description="Records on this page, in sort order.",
    )

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def build(
        cls,
        *,
        page_number: int,
        page_size: int,
        total_count: int,
        items: list[dict[str, Any]],
    ) -> "PageResult":
        total_pages = math.ceil(total_count / page_size)
        return cls(
            page_number=page_number,
            page_size=page_size,
            total_count=total_count,
            total_pages=total_pages,
            has_previous_page=page_number > 1,
            has_next_page=page_number < total_pages,
            items=items,
        )
