"""Tests for executing list queries against a record store."""

import math
from unittest.mock import MagicMock

import pytest

from app.adapters.store.in_memory import InMemoryRecordStore
from app.core.errors import ErrorCode, InternalAppError, NotFoundAppError
from app.schemas.listing import ListQuery, PageResult, SearchPredicate
from app.services.list_service import execute_list
from app.services.query_builder import build_list_query


@pytest.fixture
def store() -> InMemoryRecordStore:
    """25 records named u01..u25."""
    store = InMemoryRecordStore(name="users", unique_fields=("email",))
    for i in range(1, 26):
        store.insert({"name": f"u{i:02d}", "email": f"user{i:02d}@example.com"})
    return store


def _run(store, **params) -> PageResult:
    return execute_list(store, build_list_query({k: str(v) for k, v in params.items()}))


def test_second_page_descending_by_name(store: InMemoryRecordStore) -> None:
    page = _run(store, page_number=2, page_size=10, sort="name:desc")

    assert [r["name"] for r in page.items] == [f"u{i:02d}" for i in range(15, 5, -1)]
    assert page.total_count == 25
    assert page.total_pages == 3
    assert page.has_previous_page is True
    assert page.has_next_page is True


def test_default_sort_is_name_ascending(store: InMemoryRecordStore) -> None:
    page = _run(store)

    assert [r["name"] for r in page.items] == [f"u{i:02d}" for i in range(1, 11)]
    assert page.has_previous_page is False


def test_last_page_is_partial(store: InMemoryRecordStore) -> None:
    page = _run(store, page_number=3, page_size=10)

    assert len(page.items) == 5
    assert page.has_next_page is False


def test_page_beyond_range_is_empty(store: InMemoryRecordStore) -> None:
    small = InMemoryRecordStore()
    for name in ("a", "b", "c"):
        small.insert({"name": name, "email": f"{name}@example.com"})

    page = _run(small, page_number=1000)

    assert page.items == []
    assert page.total_count == 3
    assert page.total_pages == 1
    assert page.has_next_page is False
    assert page.has_previous_page is True


def test_empty_collection() -> None:
    page = _run(InMemoryRecordStore())

    assert page.items == []
    assert page.total_count == 0
    assert page.total_pages == 0
    assert page.has_next_page is False


@pytest.mark.parametrize("page_size", [1, 3, 7, 10, 25, 40])
def test_metadata_invariants(store: InMemoryRecordStore, page_size: int) -> None:
    for page_number in (1, 2, 5):
        page = _run(store, page_number=page_number, page_size=page_size)

        assert len(page.items) <= page_size
        assert page.total_pages == math.ceil(page.total_count / page_size)
        assert page.has_next_page == (page_number < page.total_pages)
        assert page.has_previous_page == (page_number > 1)


def test_search_filters_count_and_items(store: InMemoryRecordStore) -> None:
    page = _run(store, search="U1", page_size=100)

    assert page.total_count == 10  # u10..u19
    assert all(r["name"].startswith("u1") for r in page.items)


def test_search_matches_email(store: InMemoryRecordStore) -> None:
    page = _run(store, search="USER07@")

    assert [r["name"] for r in page.items] == ["u07"]


def test_empty_search_counts_everything(store: InMemoryRecordStore) -> None:
    with_empty = execute_list(store, ListQuery(search=SearchPredicate(term="")))
    without = execute_list(store, ListQuery())

    assert with_empty.total_count == without.total_count == 25


def test_projection_is_applied(store: InMemoryRecordStore) -> None:
    page = execute_list(store, ListQuery(page_size=2), project=lambda r: {"name": r["name"]})

    assert page.items == [{"name": "u01"}, {"name": "u02"}]


def test_wire_names_use_count_and_data(store: InMemoryRecordStore) -> None:
    body = _run(store, page_size=2).model_dump(by_alias=True)

    assert set(body) == {
        "page_number",
        "page_size",
        "count",
        "total_pages",
        "has_previous_page",
        "has_next_page",
        "data",
    }
    assert body["count"] == 25


def test_store_failure_becomes_internal_error() -> None:
    broken = MagicMock()
    broken.count.return_value = 3
    broken.find.side_effect = RuntimeError("connection reset")

    with pytest.raises(InternalAppError) as exc_info:
        execute_list(broken, ListQuery())

    assert exc_info.value.code == ErrorCode.INTERNAL_ERROR


def test_app_errors_from_store_propagate_unchanged() -> None:
    broken = MagicMock()
    broken.count.side_effect = NotFoundAppError("gone")

    with pytest.raises(NotFoundAppError):
        execute_list(broken, ListQuery())


def test_list_query_rejects_non_positive_values() -> None:
    with pytest.raises(ValueError):
        ListQuery(page_number=0)
    with pytest.raises(ValueError):
        ListQuery(page_size=0)


def test_out_of_range_page_does_not_query_the_store() -> None:
    backend = MagicMock()
    backend.count.return_value = 3
    query = build_list_query({"page_number": str(10**18), "page_size": "10"})

    page = execute_list(backend, query)

    backend.find.assert_not_called()
    assert page.items == []
    assert page.total_count == 3
    assert page.page_number == 10**18
    assert page.has_next_page is False


def test_empty_match_set_does_not_query_the_store() -> None:
    backend = MagicMock()
    backend.count.return_value = 0

    page = execute_list(backend, ListQuery())

    backend.find.assert_not_called()
    assert page.total_pages == 0


def test_unpadded_names_sort_lexically() -> None:
    store = InMemoryRecordStore(name="users")
    for i in range(1, 26):
        store.insert({"name": f"u{i}", "email": f"u{i}@example.com"})

    page = _run(store, page_number=2, page_size=10, sort="name:desc")

    # Descending string order: u9 u8 u7 u6 u5 u4 u3 u25 u24 u23 | u22 ... u13 | ...
    assert [r["name"] for r in page.items] == [
        "u22", "u21", "u20", "u2", "u19", "u18", "u17", "u16", "u15", "u14",
    ]
    assert page.total_pages == 3
