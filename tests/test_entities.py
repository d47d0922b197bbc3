"""
Tests for entity model
"""

import pytest

from cartstore.data_storage.entities import (
    Container,
    Element,
    EntityKind,
    format_collection,
)


class TestIdentity:
    """Identity and equality rules."""

    def test_new_entities_are_transient(self):
        assert Container("Cart").is_transient
        assert Element("Item").is_transient
        assert Element("Item").container_id is None

    def test_transient_instances_never_equal(self):
        """Two transient elements with identical fields are distinct."""
        a = Element("Item")
        b = Element("Item")

        assert a != b
        assert a == a
        assert len({a, b}) == 2

    def test_persisted_equal_by_id(self):
        a = Element("Item", id=5)
        b = Element("Other name", id=5)

        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_persisted_not_equal_to_transient(self):
        assert Element("Item", id=5) != Element("Item")

    def test_different_kinds_never_equal(self):
        assert Container("x", id=1) != Element("x", id=1)


class TestEntityKind:
    """Tagged entity variants."""

    def test_of(self):
        assert EntityKind.of(Container()) is EntityKind.CONTAINER
        assert EntityKind.of(Element()) is EntityKind.ELEMENT

    def test_of_rejects_other_types(self):
        with pytest.raises(TypeError):
            EntityKind.of("not an entity")

    def test_entity_class(self):
        assert EntityKind.CONTAINER.entity_class is Container
        assert EntityKind.ELEMENT.entity_class is Element


class TestContainer:
    """Container mutators and rendering."""

    def test_add_member_is_set_like(self):
        cart = Container("Cart", id=1)

        assert cart.add_member(3) is True
        assert cart.add_member(3) is False
        assert cart.elements == {3}

    def test_discard_member(self):
        cart = Container("Cart", id=1, elements={3})

        assert cart.discard_member(3) is True
        assert cart.discard_member(3) is False
        assert cart.elements == set()

    def test_materialize_returns_detached_copy(self):
        cart = Container("Cart", id=1, elements={2})
        item = Element("Item 2", id=2, container_id=1)

        copy = cart.materialize([item])
        item.rename("changed")

        assert copy is not cart
        assert copy.is_materialized
        assert copy.element_records()[0].name == "Item 2"
        assert cart.loaded == {}

    def test_str_with_loaded_elements(self):
        cart = Container("Cart 1", id=1, elements={1, 2})
        copy = cart.materialize([Element("Item 1", id=1), Element("Item 2", id=2)])

        assert str(copy) == "1: Cart 1, Items: [1: Item 1 | 2: Item 2]"

    def test_str_without_loaded_elements(self):
        assert str(Container("Cart 1", id=1, elements={2, 1})) == "1: Cart 1, Items: [1, 2]"

    def test_to_dict_from_dict(self):
        cart = Container("Cart 1", id=4, elements={3, 1})

        data = cart.to_dict()
        assert data == {"id": 4, "label": "Cart 1", "elements": [1, 3]}

        restored = Container.from_dict(data)
        assert restored == cart
        assert restored.elements == {1, 3}


def test_format_collection():
    items = [Element("Item 1", id=1), Element("Item 2", id=2)]

    assert format_collection(items) == "1: Item 1\n2: Item 2"
    assert format_collection([]) == ""
