"""Run a validated ``ListQuery`` against a record store.

The count and the page fetch share one predicate, so ``count`` reflects all
matches while ``data`` holds at most ``page_size`` of them. A page past the
end yields an empty ``data`` list, not an error.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from app.adapters.store.base import AbstractRecordStore, Record
from app.core.errors import AppError, InternalAppError
from app.schemas.listing import ListQuery, PageResult

logger = logging.getLogger(__name__)


def execute_list(
    store: AbstractRecordStore,
    list_query: ListQuery,
    *,
    project: Callable[[Record], dict[str, Any]] | None = None,
) -> PageResult:
    """Fetch one page plus metadata.

    Args:
        store: Collection to query.
        list_query: Validated pagination/search/sort parameters.
        project: Optional per-record transform (e.g. dropping secrets).

    Returns:
        PageResult for the requested page.

    Raises:
        InternalAppError: If the store fails; no partial page is returned.
    """
    try:
        total_count = store.count(list_query.search)
        # Past the last match; also keeps huge offsets away from the driver.
        if list_query.skip >= total_count:
            records: list[Record] = []
        else:
            records = store.find(
                list_query.search,
                list_query.sort,
                list_query.skip,
                list_query.page_size,
            )
    except AppError:
        raise
    except Exception as exc:
        logger.error(
            "list.store_failed",
            extra={
                "error_type": type(exc).__name__,
                "page_number": list_query.page_number,
                "page_size": list_query.page_size,
            },
        )
        raise InternalAppError(message="Failed to list records") from exc

    items = [project(r) for r in records] if project else records

    logger.debug(
        "list.executed",
        extra={
            "page_number": list_query.page_number,
            "page_size": list_query.page_size,
            "total_count": total_count,
            "returned": len(items),
            "has_search": not list_query.search.is_empty,
            "sort_field": list_query.sort.field,
            "sort_direction": list_query.sort.direction.value,
        },
    )

    return PageResult.build(
        page_number=list_query.page_number,
        page_size=list_query.page_size,
        total_count=total_count,
        items=items,
    )
