"""
CartStore 数据存储层

容器与元素的一对多关系管理，支持：
- 双向关系的一致性维护
- 工作单元事务（提交或回滚）
- 内存与Redis两种存储后端
"""

from .entities import (
    TRANSIENT_ID,
    EntityKind,
    Container,
    Element,
    Entity,
    format_collection,
)

from .interfaces import (
    Predicate,
    DeletePolicy,
    IUnitOfWork,
    IStore,
)

from .adapters import (
    MemoryStore,
    RedisStore,
)

from .managers import (
    RelationshipManager,
    MembershipChange,
    TransactionRunner,
)

from .repositories import (
    CartRepository,
)

from .factory import (
    StorageFactory,
    RepositoryFactory,
    create_repository,
)

__all__ = [
    # 实体
    "TRANSIENT_ID",
    "EntityKind",
    "Container",
    "Element",
    "Entity",
    "format_collection",

    # 接口
    "Predicate",
    "DeletePolicy",
    "IUnitOfWork",
    "IStore",

    # 适配器
    "MemoryStore",
    "RedisStore",

    # 管理器
    "RelationshipManager",
    "MembershipChange",
    "TransactionRunner",

    # 仓库
    "CartRepository",

    # 工厂
    "StorageFactory",
    "RepositoryFactory",
    "create_repository",
]
