"""
Tests for in-memory store
"""

import copy
import threading
from unittest.mock import patch

import pytest

from cartstore.core.exceptions import StoreError
from cartstore.data_storage import Container, Element, EntityKind, MemoryStore


@pytest.fixture
def store(memory_store):
    return memory_store


class TestMemoryUnitOfWork:
    """Unit of work lifecycle."""

    def test_save_assigns_sequential_ids(self, store):
        uow = store.open()
        try:
            first = uow.save(Element("Item 1"))
            second = uow.save(Element("Item 2"))
            cart = uow.save(Container("Cart 1"))
            uow.commit()
        finally:
            uow.close()

        assert (first.id, second.id) == (1, 2)
        assert cart.id == 1

    def test_commit_publishes_copy(self, store):
        uow = store.open()
        item = uow.save(Element("Item 1"))
        uow.commit()
        uow.close()

        item.rename("changed outside")

        uow = store.open()
        try:
            loaded = uow.get(EntityKind.ELEMENT, item.id)
            assert loaded is not item
            assert loaded.name == "Item 1"
        finally:
            uow.close()

    def test_rollback_discards_changes(self, store):
        uow = store.open()
        uow.save(Element("Item 1"))
        uow.rollback()
        uow.close()

        assert store.count(EntityKind.ELEMENT) == 0

    def test_close_without_commit_discards_changes(self, store):
        uow = store.open()
        uow.save(Container("Cart"))
        uow.close()

        assert store.count(EntityKind.CONTAINER) == 0

    def test_get_missing_returns_none(self, store):
        uow = store.open()
        try:
            assert uow.get(EntityKind.CONTAINER, 42) is None
        finally:
            uow.close()

    def test_query_with_predicate(self, store):
        uow = store.open()
        try:
            for name in ("apple", "banana", "avocado"):
                uow.save(Element(name))
            names = [e.name for e in uow.query(EntityKind.ELEMENT, lambda e: e.name.startswith("a"))]
            assert names == ["apple", "avocado"]
            assert len(uow.query(EntityKind.ELEMENT)) == 3
        finally:
            uow.close()

    def test_save_unknown_persisted_entity_fails(self, store):
        uow = store.open()
        try:
            with pytest.raises(StoreError):
                uow.save(Element("ghost", id=99))
        finally:
            uow.close()

    def test_remove_missing_entity_fails(self, store):
        uow = store.open()
        try:
            with pytest.raises(StoreError):
                uow.remove(Element("ghost", id=99))
        finally:
            uow.close()

    def test_operations_after_commit_fail(self, store):
        uow = store.open()
        uow.commit()
        try:
            assert uow.is_active is False
            with pytest.raises(StoreError):
                uow.get(EntityKind.ELEMENT, 1)
        finally:
            uow.close()

    def test_uncommitted_edit_of_stored_row_is_discarded(self, store):
        uow = store.open()
        item = uow.save(Element("Item 1"))
        uow.commit()
        uow.close()

        uow = store.open()
        uow.get(EntityKind.ELEMENT, item.id).rename("draft")
        uow.close()

        uow = store.open()
        try:
            assert uow.get(EntityKind.ELEMENT, item.id).name == "Item 1"
        finally:
            uow.close()

    def test_only_touched_rows_are_copied(self, store):
        uow = store.open()
        for n in range(50):
            uow.save(Element(f"Item {n}"))
        uow.commit()
        uow.close()

        with patch(
            "cartstore.data_storage.adapters.memory_adapter.copy.deepcopy",
            wraps=copy.deepcopy
        ) as deepcopy:
            uow = store.open()
            try:
                item = uow.get(EntityKind.ELEMENT, 7)
                item.rename("renamed")
                uow.save(item)
                uow.commit()
            finally:
                uow.close()

        copied = [
            call.args[0].id for call in deepcopy.call_args_list
            if isinstance(call.args[0], Element)
        ]
        assert copied == [7, 7]
        assert store.count(EntityKind.ELEMENT) == 50

    def test_remove_then_query_hides_row(self, store):
        uow = store.open()
        for name in ("apple", "banana"):
            uow.save(Element(name))
        uow.commit()
        uow.close()

        uow = store.open()
        try:
            uow.remove(uow.get(EntityKind.ELEMENT, 1))
            assert [e.name for e in uow.query(EntityKind.ELEMENT)] == ["banana"]
            uow.commit()
        finally:
            uow.close()

        assert store.count(EntityKind.ELEMENT) == 1

    def test_close_is_idempotent(self, store):
        uow = store.open()
        uow.close()
        uow.close()

        store.open().close()


class TestMemoryStore:
    """Store-level behavior."""

    def test_nested_open_rejected(self, store):
        uow = store.open()
        try:
            with pytest.raises(StoreError):
                store.open()
        finally:
            uow.close()

    def test_open_after_close_fails(self):
        store = MemoryStore()
        store.close()

        assert store.is_closed
        with pytest.raises(StoreError):
            store.open()

    def test_other_thread_times_out(self):
        store = MemoryStore(lock_timeout=0.05)
        uow = store.open()
        errors = []

        def worker():
            try:
                store.open()
            except StoreError as e:
                errors.append(e)

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()
        uow.close()

        assert len(errors) == 1
