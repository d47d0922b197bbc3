"""
数据存储层核心接口定义

存储（Store）是外部协作者：核心只编排对这些接口的调用，不实现存储本身。
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional

from .entities import Entity, EntityKind

Predicate = Callable[[Entity], bool]


class DeletePolicy(Enum):
    """删除容器时对成员元素的处理策略"""
    DETACH = "detach"    # 清除元素的反向引用，元素保留为孤立记录
    CASCADE = "cascade"  # 连同成员元素一起删除


# ==================== 存储接口 ====================

class IUnitOfWork(ABC):
    """工作单元接口"""

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """事务是否仍处于活动状态（未提交、未回滚）"""
        pass

    @abstractmethod
    def get(self, kind: EntityKind, entity_id: int) -> Optional[Entity]:
        """根据ID获取受管实体，不存在时返回None"""
        pass

    @abstractmethod
    def save(self, entity: Entity) -> Entity:
        """瞬态实体插入，已持久化实体更新"""
        pass

    @abstractmethod
    def remove(self, entity: Entity) -> None:
        """删除实体"""
        pass

    @abstractmethod
    def query(self, kind: EntityKind, predicate: Optional[Predicate] = None) -> List[Entity]:
        """按条件查询实体"""
        pass

    @abstractmethod
    def commit(self) -> None:
        """提交"""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """回滚"""
        pass

    @abstractmethod
    def close(self) -> None:
        """释放工作单元"""
        pass


class IStore(ABC):
    """存储接口"""

    @abstractmethod
    def open(self) -> IUnitOfWork:
        """打开工作单元"""
        pass

    @abstractmethod
    def close(self) -> None:
        """关闭存储"""
        pass


__all__ = [
    "Predicate",
    "DeletePolicy",
    "IUnitOfWork",
    "IStore",
]
