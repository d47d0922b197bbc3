"""
内存存储适配器实现

以 (实体类型, id) 为键的内存表。工作单元按写时复制工作：
首次读取某行时才深拷贝该行，未触及的行不复制。提交时只把改动过的行
和删除记录写回已提交的表，回滚时直接丢弃。工作单元之间用锁串行化。
"""

import copy
import logging
import threading
from typing import Dict, List, Optional, Set, Tuple

from ...core.exceptions import StoreError
from ..entities import Entity, EntityKind
from ..interfaces import IStore, IUnitOfWork, Predicate

Tables = Dict[EntityKind, Dict[int, Entity]]
EntityKey = Tuple[EntityKind, int]


class MemoryUnitOfWork(IUnitOfWork):
    """内存工作单元"""

    def __init__(self, store: "MemoryStore", tables: Tables, sequences: Dict[EntityKind, int]):
        self._store = store
        # 持锁期间已提交的表不会变化，只读引用即可
        self._committed = tables
        self._working: Tables = {kind: {} for kind in EntityKind}
        self._removed: Set[EntityKey] = set()
        self._sequences = dict(sequences)
        self._active = True
        self._closed = False
        self.logger = logging.getLogger(__name__)

    @property
    def is_active(self) -> bool:
        return self._active and not self._closed

    def _ensure_active(self, operation: str) -> None:
        if not self.is_active:
            raise StoreError("工作单元已结束", operation=operation)

    def _contains(self, kind: EntityKind, entity_id: int) -> bool:
        if (kind, entity_id) in self._removed:
            return False
        return entity_id in self._working[kind] or entity_id in self._committed[kind]

    def get(self, kind: EntityKind, entity_id: int) -> Optional[Entity]:
        self._ensure_active("get")
        if (kind, entity_id) in self._removed:
            return None
        working = self._working[kind]
        if entity_id not in working:
            committed = self._committed[kind].get(entity_id)
            if committed is None:
                return None
            working[entity_id] = copy.deepcopy(committed)
        return working[entity_id]

    def save(self, entity: Entity) -> Entity:
        self._ensure_active("save")
        try:
            kind = EntityKind.of(entity)
        except TypeError as e:
            raise StoreError(str(e), operation="save") from e

        if entity.is_transient:
            self._sequences[kind] += 1
            entity.id = self._sequences[kind]
            self.logger.debug(f"插入实体: {kind.value}#{entity.id}")
        elif self._contains(kind, entity.id):
            self.logger.debug(f"更新实体: {kind.value}#{entity.id}")
        else:
            raise StoreError(f"实体不存在: {kind.value}#{entity.id}", operation="save")
        self._working[kind][entity.id] = entity
        return entity

    def remove(self, entity: Entity) -> None:
        self._ensure_active("remove")
        try:
            kind = EntityKind.of(entity)
        except TypeError as e:
            raise StoreError(str(e), operation="remove") from e
        if not self._contains(kind, entity.id):
            raise StoreError(f"实体不存在: {kind.value}#{entity.id}", operation="remove")
        self._working[kind].pop(entity.id, None)
        self._removed.add((kind, entity.id))
        self.logger.debug(f"删除实体: {kind.value}#{entity.id}")

    def query(self, kind: EntityKind, predicate: Optional[Predicate] = None) -> List[Entity]:
        self._ensure_active("query")
        ids = set(self._committed[kind]) | set(self._working[kind])
        ids.difference_update(entity_id for (k, entity_id) in self._removed if k is kind)
        result = []
        for entity_id in sorted(ids):
            entity = self.get(kind, entity_id)
            if predicate is None or predicate(entity):
                result.append(entity)
        return result

    def commit(self) -> None:
        self._ensure_active("commit")
        self._store._publish(self._working, self._removed, self._sequences)
        self._active = False

    def rollback(self) -> None:
        self._ensure_active("rollback")
        self._active = False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._active = False
        self._working = {}
        self._removed = set()
        self._store._release()


class MemoryStore(IStore):
    """内存存储"""

    def __init__(self, lock_timeout: float = 30.0):
        """
        初始化内存存储

        Args:
            lock_timeout: 等待其他工作单元结束的最长时间（秒）
        """
        self._tables: Tables = {kind: {} for kind in EntityKind}
        self._sequences: Dict[EntityKind, int] = {kind: 0 for kind in EntityKind}
        self._lock_timeout = lock_timeout
        self._uow_lock = threading.Lock()
        self._owner: Optional[int] = None
        self._closed = False
        self.logger = logging.getLogger(__name__)

        self.logger.info("内存存储初始化完成")

    @property
    def is_closed(self) -> bool:
        return self._closed

    def open(self) -> MemoryUnitOfWork:
        if self._closed:
            raise StoreError("存储已关闭", operation="open")
        if self._owner == threading.get_ident():
            raise StoreError("不支持嵌套工作单元", operation="open")
        if not self._uow_lock.acquire(timeout=self._lock_timeout):
            raise StoreError("等待工作单元超时", operation="open")
        self._owner = threading.get_ident()
        return MemoryUnitOfWork(self, self._tables, self._sequences)

    def _publish(self, changed: Tables, removed: Set[EntityKey], sequences: Dict[EntityKind, int]) -> None:
        for kind, rows in changed.items():
            table = self._tables[kind]
            for entity_id, entity in rows.items():
                table[entity_id] = copy.deepcopy(entity)
        for kind, entity_id in removed:
            self._tables[kind].pop(entity_id, None)
        self._sequences = dict(sequences)

    def _release(self) -> None:
        self._owner = None
        self._uow_lock.release()

    def close(self) -> None:
        self._closed = True
        self.logger.info("内存存储已关闭")

    def count(self, kind: EntityKind) -> int:
        """已提交的实体数量"""
        return len(self._tables[kind])


__all__ = ["MemoryStore", "MemoryUnitOfWork"]
