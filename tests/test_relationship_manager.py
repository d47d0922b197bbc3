"""
Tests for relationship reconciliation
"""

import pytest

from cartstore.core.exceptions import ConstraintViolation, NotFoundError
from cartstore.data_storage import Container, Element, EntityKind, RelationshipManager


@pytest.fixture
def manager():
    return RelationshipManager()


@pytest.fixture
def uow(store):
    """Open unit of work with two carts and three items"""
    uow = store.open()
    for label in ("Cart 1", "Cart 2"):
        uow.save(Container(label))
    for n in range(1, 4):
        uow.save(Element(f"Item {n}"))
    yield uow
    uow.close()


def cart(uow, cart_id):
    return uow.get(EntityKind.CONTAINER, cart_id)


def item(uow, item_id):
    return uow.get(EntityKind.ELEMENT, item_id)


class TestAttachDetach:
    """Single-element operations."""

    def test_attach_links_both_sides(self, manager, uow):
        assert manager.attach(uow, cart(uow, 1), 1) is True

        assert cart(uow, 1).elements == {1}
        assert item(uow, 1).container_id == 1

    def test_attach_is_idempotent(self, manager, uow):
        manager.attach(uow, cart(uow, 1), 1)

        assert manager.attach(uow, cart(uow, 1), item(uow, 1)) is False
        assert cart(uow, 1).elements == {1}

    def test_attach_moves_from_previous_container(self, manager, uow):
        manager.attach(uow, cart(uow, 1), 1)
        manager.attach(uow, cart(uow, 2), 1)

        assert cart(uow, 1).elements == set()
        assert cart(uow, 2).elements == {1}
        assert item(uow, 1).container_id == 2

    def test_attach_uses_managed_instance(self, manager, uow):
        """A stale caller copy only identifies the element."""
        stale = Element("stale copy", id=2, container_id=2)

        manager.attach(uow, cart(uow, 1), stale)

        assert item(uow, 2).container_id == 1
        assert item(uow, 2).name == "Item 2"
        assert stale.container_id == 2

    def test_detach(self, manager, uow):
        manager.attach(uow, cart(uow, 1), 1)

        assert manager.detach(uow, cart(uow, 1), 1) is True
        assert cart(uow, 1).elements == set()
        assert item(uow, 1).container_id is None

    def test_detach_absent_is_noop(self, manager, uow):
        manager.attach(uow, cart(uow, 2), 1)

        assert manager.detach(uow, cart(uow, 1), 1) is False
        assert item(uow, 1).container_id == 2
        assert cart(uow, 2).elements == {1}


class TestReconcile:
    """Target-set reconciliation."""

    def test_none_leaves_membership_untouched(self, manager, uow):
        manager.reconcile(uow, cart(uow, 1), [1, 2])

        change = manager.reconcile(uow, cart(uow, 1), None)

        assert not change.changed
        assert cart(uow, 1).elements == {1, 2}

    def test_empty_set_clears_membership(self, manager, uow):
        manager.reconcile(uow, cart(uow, 1), [1, 2])

        change = manager.reconcile(uow, cart(uow, 1), set())

        assert sorted(change.detached) == [1, 2]
        assert cart(uow, 1).elements == set()
        assert item(uow, 1).container_id is None
        assert item(uow, 2).container_id is None

    def test_applies_only_the_difference(self, manager, uow):
        manager.reconcile(uow, cart(uow, 1), [1, 2])

        change = manager.reconcile(uow, cart(uow, 1), [2, 3])

        assert change.attached == [3]
        assert change.detached == [1]
        assert cart(uow, 1).elements == {2, 3}
        assert item(uow, 1).container_id is None

    def test_duplicates_collapse(self, manager, uow):
        change = manager.reconcile(uow, cart(uow, 1), [1, item(uow, 1), Element("copy", id=1)])

        assert change.attached == [1]
        assert cart(uow, 1).elements == {1}

    def test_moves_element_between_containers(self, manager, uow):
        manager.reconcile(uow, cart(uow, 1), [1, 2])

        manager.reconcile(uow, cart(uow, 2), [1])

        assert cart(uow, 1).elements == {2}
        assert cart(uow, 2).elements == {1}
        assert item(uow, 1).container_id == 2

    def test_missing_element_fails_before_any_change(self, manager, uow):
        manager.reconcile(uow, cart(uow, 1), [1])

        with pytest.raises(NotFoundError):
            manager.reconcile(uow, cart(uow, 1), [2, 99])

        assert cart(uow, 1).elements == {1}
        assert item(uow, 2).container_id is None

    @pytest.mark.parametrize("bad", ["1", 1.5, True, 0, -3])
    def test_rejects_invalid_references(self, manager, uow, bad):
        with pytest.raises(ConstraintViolation):
            manager.reconcile(uow, cart(uow, 1), [bad])

    def test_rejects_transient_element(self, manager, uow):
        with pytest.raises(ConstraintViolation):
            manager.reconcile(uow, cart(uow, 1), [Element("new")])

    def test_rejects_non_container(self, manager, uow):
        with pytest.raises(ConstraintViolation):
            manager.attach(uow, item(uow, 1), 2)

    def test_rejects_transient_container(self, manager, uow):
        with pytest.raises(ConstraintViolation):
            manager.attach(uow, Container("new"), 1)
