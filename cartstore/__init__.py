"""
CartStore

容器（购物车）与元素（商品）之间一对多关系的事务化管理。
"""

from .core import (
    Settings,
    setup_logging,
    get_logger,
    CartStoreException,
    NotFoundError,
    ConstraintViolation,
    StoreError,
    TransactionError,
)
from .data_storage import (
    EntityKind,
    Container,
    Element,
    DeletePolicy,
    MemoryStore,
    RedisStore,
    RelationshipManager,
    TransactionRunner,
    CartRepository,
    create_repository,
    format_collection,
)

__version__ = "1.0.0"
__all__ = [
    "Settings",
    "setup_logging",
    "get_logger",
    "CartStoreException",
    "NotFoundError",
    "ConstraintViolation",
    "StoreError",
    "TransactionError",
    "EntityKind",
    "Container",
    "Element",
    "DeletePolicy",
    "MemoryStore",
    "RedisStore",
    "RelationshipManager",
    "TransactionRunner",
    "CartRepository",
    "create_repository",
    "format_collection",
]
