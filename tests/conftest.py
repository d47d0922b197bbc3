"""Pytest configuration and fixtures"""
import fakeredis
import pytest

from cartstore.core.config import Settings
from cartstore.data_storage import (
    CartRepository,
    EntityKind,
    MemoryStore,
    RedisStore,
    TransactionRunner,
)


@pytest.fixture
def settings():
    """Settings isolated from any .env file"""
    return Settings(_env_file=None, environment="testing", log_level="DEBUG")


@pytest.fixture
def memory_store():
    """In-memory store"""
    store = MemoryStore(lock_timeout=1.0)
    yield store
    store.close()


@pytest.fixture(params=["memory", "redis"])
def store(request):
    """Every store backend: in-memory, and Redis on an isolated fakeredis server"""
    if request.param == "memory":
        store = MemoryStore(lock_timeout=1.0)
    else:
        client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
        store = RedisStore(client, key_prefix="test")
    yield store
    store.close()


@pytest.fixture
def runner(store):
    return TransactionRunner(store)


@pytest.fixture
def repository(runner):
    return CartRepository(runner)


@pytest.fixture
def cart_with_items(repository):
    """Cart 1 plus three unassigned items"""
    cart = repository.create_container("Cart 1")
    items = [repository.create_element(f"Item {n}") for n in range(1, 4)]
    return cart, items


@pytest.fixture
def check_symmetry():
    """Assert that both sides of every relation agree"""
    def _check(repository):
        containers = {c.id: c for c in repository.list_collection(EntityKind.CONTAINER)}
        elements = {e.id: e for e in repository.list_collection(EntityKind.ELEMENT)}

        for container in containers.values():
            for element_id in container.elements:
                assert element_id in elements
                assert elements[element_id].container_id == container.id

        for element in elements.values():
            if element.container_id is not None:
                assert element.container_id in containers
                assert element.id in containers[element.container_id].elements

    return _check
