"""Turn raw list query parameters into a validated ``ListQuery``.

Accepted parameters (all optional):

- ``page_number``: positive integer, default 1
- ``page_size``: positive integer, default 10, capped by ``max_page_size``
- ``search``: substring matched case-insensitively against the search fields
- ``sort``: ``field`` or ``field:direction`` with direction ``asc``/``desc``

Missing values get defaults; explicit invalid values are rejected with
``INVALID_QUERY_PARAMETERS`` and every problem is listed in
``validation_errors``.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from app.core.errors import InvalidQueryAppError
from app.schemas.listing import (
    ListQuery,
    SearchPredicate,
    SortDirection,
    SortSpec,
)

DEFAULT_PAGE_NUMBER = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_SEARCH_FIELDS: tuple[str, ...] = ("name", "email")
DEFAULT_SORT = SortSpec(field="name", direction=SortDirection.ASC)

# ASCII digits only; int() alone also accepts "1_0" and non-ASCII digits.
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _parse_positive_int(
    name: str,
    value: Any,
    default: int,
    errors: list[dict[str, Any]],
    *,
    maximum: int | None = None,
) -> int:
    if _is_missing(value):
        return default

    text = str(value).strip()
    if not _INTEGER_RE.fullmatch(text):
        errors.append({"field": name, "value": value, "message": f"{name} must be an integer"})
        return default

    parsed = int(text)

    if parsed < 1:
        errors.append({"field": name, "value": value, "message": f"{name} must be >= 1"})
        return default
    if maximum is not None and parsed > maximum:
        errors.append(
            {"field": name, "value": value, "message": f"{name} must be <= {maximum}"}
        )
        return default
    return parsed


def parse_sort(
    raw: Any,
    errors: list[dict[str, Any]],
    *,
    sortable_fields: Iterable[str] | None = None,
    default: SortSpec = DEFAULT_SORT,
) -> SortSpec:
    """Parse ``field[:direction]``.

    A field without a direction sorts ascending.
    """
    if _is_missing(raw):
        return default

    field_name, _, direction_raw = str(raw).strip().partition(":")
    field_name = field_name.strip()
    direction_raw = direction_raw.strip().lower()

    if not field_name:
        errors.append({"field": "sort", "value": raw, "message": "sort field is required"})
        return default

    allowed = set(sortable_fields) if sortable_fields is not None else None
    if allowed is not None and field_name not in allowed:
        errors.append(
            {
                "field": "sort",
                "value": raw,
                "message": f"cannot sort by {field_name!r}; allowed: {', '.join(sorted(allowed))}",
            }
        )
        return default

    if not direction_raw:
        return SortSpec(field=field_name, direction=SortDirection.ASC)

    try:
        direction = SortDirection(direction_raw)
    except ValueError:
        errors.append(
            {"field": "sort", "value": raw, "message": "sort direction must be asc or desc"}
        )
        return default

    return SortSpec(field=field_name, direction=direction)


def build_list_query(
    raw_params: Mapping[str, Any],
    *,
    search_fields: Iterable[str] = DEFAULT_SEARCH_FIELDS,
    sortable_fields: Iterable[str] | None = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int | None = None,
) -> ListQuery:
    """Validate and normalize raw list parameters.

    Args:
        raw_params: Query parameters as received (strings or already-typed values).
        search_fields: Record fields the search term is matched against.
        sortable_fields: Fields clients may sort by; ``None`` accepts any field.
        default_page_size: Page size applied when ``page_size`` is missing.
        max_page_size: Upper bound on ``page_size``; ``None`` for unbounded.

    Returns:
        The validated ``ListQuery``.

    Raises:
        InvalidQueryAppError: If any parameter is present but invalid.
    """
    errors: list[dict[str, Any]] = []

    page_number = _parse_positive_int(
        "page_number", raw_params.get("page_number"), DEFAULT_PAGE_NUMBER, errors
    )
    page_size = _parse_positive_int(
        "page_size",
        raw_params.get("page_size"),
        default_page_size,
        errors,
        maximum=max_page_size,
    )
    sort = parse_sort(raw_params.get("sort"), errors, sortable_fields=sortable_fields)

    search_raw = raw_params.get("search")
    term = None if _is_missing(search_raw) else str(search_raw).strip()

    if errors:
        raise InvalidQueryAppError(details={"validation_errors": errors})

    return ListQuery(
        page_number=page_number,
        page_size=page_size,
        search=SearchPredicate(term=term, fields=tuple(search_fields)),
        sort=sort,
    )
