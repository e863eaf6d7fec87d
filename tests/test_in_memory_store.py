"""Tests for the in-memory record store."""

import threading

import pytest

from app.adapters.store.in_memory import InMemoryRecordStore
from app.core.errors import DuplicateKeyAppError, ErrorCode
from app.schemas.listing import SearchPredicate, SortDirection, SortSpec


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore(name="toko", unique_fields=("email",))


def test_insert_assigns_id_and_returns_copy(store: InMemoryRecordStore) -> None:
    record = store.insert({"name": "Alice", "email": "alice@example.com"})

    assert record["id"]
    record["name"] = "mutated"
    assert store.find_by_id(record["id"])["name"] == "Alice"


def test_insert_ignores_client_supplied_id(store: InMemoryRecordStore) -> None:
    record = store.insert({"id": "chosen", "name": "A", "email": "a@example.com"})

    assert record["id"] != "chosen"


def test_unique_field_is_enforced(store: InMemoryRecordStore) -> None:
    store.insert({"name": "A", "email": "dup@example.com"})

    with pytest.raises(DuplicateKeyAppError) as exc_info:
        store.insert({"name": "B", "email": "dup@example.com"})

    assert exc_info.value.code == ErrorCode.DUPLICATE_KEY
    assert len(store) == 1


def test_update_checks_uniqueness_against_other_records(store: InMemoryRecordStore) -> None:
    a = store.insert({"name": "A", "email": "a@example.com"})
    store.insert({"name": "B", "email": "b@example.com"})

    assert store.update_by_id(a["id"], {"email": "a@example.com", "name": "A2"}) is True
    with pytest.raises(DuplicateKeyAppError):
        store.update_by_id(a["id"], {"email": "b@example.com"})


def test_update_and_delete_missing_record(store: InMemoryRecordStore) -> None:
    assert store.update_by_id("nope", {"name": "x"}) is False
    assert store.delete_by_id("nope") is False


def test_delete(store: InMemoryRecordStore) -> None:
    record = store.insert({"name": "A", "email": "a@example.com"})

    assert store.delete_by_id(record["id"]) is True
    assert store.find_by_id(record["id"]) is None


def test_find_by_field(store: InMemoryRecordStore) -> None:
    store.insert({"name": "A", "email": "a@example.com"})

    assert store.find_by_field("email", "a@example.com")["name"] == "A"
    assert store.find_by_field("email", "A@example.com") is None


def test_find_sorts_skips_and_limits(store: InMemoryRecordStore) -> None:
    for name in ("delta", "alpha", "charlie", "bravo"):
        store.insert({"name": name, "email": f"{name}@example.com"})

    page = store.find(SearchPredicate(), SortSpec("name", SortDirection.DESC), skip=1, limit=2)

    assert [r["name"] for r in page] == ["charlie", "bravo"]


def test_ties_are_ordered_by_id(store: InMemoryRecordStore) -> None:
    ids = [store.insert({"name": "same", "email": f"{i}@example.com"})["id"] for i in range(5)]

    asc = store.find(SearchPredicate(), SortSpec("name", SortDirection.ASC), 0, 10)
    desc = store.find(SearchPredicate(), SortSpec("name", SortDirection.DESC), 0, 10)

    assert [r["id"] for r in asc] == sorted(ids)
    assert [r["id"] for r in desc] == sorted(ids)


def test_missing_sort_field_sorts_first(store: InMemoryRecordStore) -> None:
    store.insert({"name": "b", "email": "b@example.com"})
    store.insert({"email": "nameless@example.com"})

    page = store.find(SearchPredicate(), SortSpec("name"), 0, 10)

    assert page[0]["email"] == "nameless@example.com"


def test_count_uses_predicate(store: InMemoryRecordStore) -> None:
    store.insert({"name": "Alice Smith", "email": "a@example.com"})
    store.insert({"name": "Bob", "email": "bob@example.com"})

    assert store.count(SearchPredicate(term="SMITH")) == 1
    assert store.count(SearchPredicate()) == 2


def test_concurrent_inserts_keep_email_unique(store: InMemoryRecordStore) -> None:
    barrier = threading.Barrier(20)
    outcomes: list[str] = []

    def insert() -> None:
        barrier.wait()
        try:
            store.insert({"name": "racer", "email": "race@example.com"})
            outcomes.append("ok")
        except DuplicateKeyAppError:
            outcomes.append("dup")

    threads = [threading.Thread(target=insert) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert len(store) == 1
