"""
Redis存储适配器实现

键布局：
- <prefix>:<kind>:<id>   实体JSON
- <prefix>:<kind>:ids    id索引集合
- <prefix>:<kind>:seq    id序列（INCR）

工作单元维护身份映射和待写入/待删除集合。读取实体前先 WATCH 其键，
提交时在同一连接上以 MULTI/EXEC 一次性写出；期间被其他工作单元修改过的
键会使提交失败（WatchError → StoreError），不会覆盖对方的写入。
回滚只丢弃待处理的变更。
"""

import json
import logging
from typing import Dict, List, Optional, Set, Tuple

import redis

from ...core.exceptions import StoreError
from ..entities import Entity, EntityKind
from ..interfaces import IStore, IUnitOfWork, Predicate

EntityKey = Tuple[EntityKind, int]


class RedisUnitOfWork(IUnitOfWork):
    """Redis工作单元"""

    def __init__(self, store: "RedisStore"):
        self._store = store
        self._client = store.client
        # WATCH 与 MULTI/EXEC 必须在同一连接上，管道固定住一条连接
        self._pipe = self._client.pipeline(transaction=True)
        self._watched: Set[str] = set()
        self._identity: Dict[EntityKey, Entity] = {}
        self._dirty: Dict[EntityKey, Entity] = {}
        self._removed: Set[EntityKey] = set()
        self._active = True
        self._closed = False
        self.logger = logging.getLogger(__name__)

    @property
    def is_active(self) -> bool:
        return self._active and not self._closed

    def _ensure_active(self, operation: str) -> None:
        if not self.is_active:
            raise StoreError("工作单元已结束", operation=operation)

    def _watch(self, kind: EntityKind, entity_id: int) -> str:
        key = self._store.entity_key(kind, entity_id)
        if key not in self._watched:
            self._pipe.watch(key)
            self._watched.add(key)
        return key

    def _exists(self, kind: EntityKind, entity_id: int) -> bool:
        key = (kind, entity_id)
        if key in self._removed:
            return False
        if key in self._identity:
            return True
        return bool(self._client.exists(self._watch(kind, entity_id)))

    def get(self, kind: EntityKind, entity_id: int) -> Optional[Entity]:
        self._ensure_active("get")
        key = (kind, entity_id)
        if key in self._removed:
            return None
        if key in self._identity:
            return self._identity[key]

        try:
            raw = self._client.get(self._watch(kind, entity_id))
        except redis.RedisError as e:
            raise StoreError(f"读取实体失败: {e}", operation="get") from e
        if raw is None:
            return None

        entity = kind.entity_class.from_dict(json.loads(raw))
        self._identity[key] = entity
        return entity

    def save(self, entity: Entity) -> Entity:
        self._ensure_active("save")
        try:
            kind = EntityKind.of(entity)
        except TypeError as e:
            raise StoreError(str(e), operation="save") from e

        try:
            if entity.is_transient:
                entity.id = int(self._client.incr(self._store.sequence_key(kind)))
            elif not self._exists(kind, entity.id):
                raise StoreError(f"实体不存在: {kind.value}#{entity.id}", operation="save")
        except redis.RedisError as e:
            raise StoreError(f"保存实体失败: {e}", operation="save") from e

        key = (kind, entity.id)
        self._identity[key] = entity
        self._dirty[key] = entity
        return entity

    def remove(self, entity: Entity) -> None:
        self._ensure_active("remove")
        try:
            kind = EntityKind.of(entity)
        except TypeError as e:
            raise StoreError(str(e), operation="remove") from e

        try:
            exists = self._exists(kind, entity.id)
        except redis.RedisError as e:
            raise StoreError(f"删除实体失败: {e}", operation="remove") from e
        if not exists:
            raise StoreError(f"实体不存在: {kind.value}#{entity.id}", operation="remove")

        key = (kind, entity.id)
        self._identity.pop(key, None)
        self._dirty.pop(key, None)
        self._removed.add(key)

    def query(self, kind: EntityKind, predicate: Optional[Predicate] = None) -> List[Entity]:
        self._ensure_active("query")
        try:
            ids = {int(i) for i in self._client.smembers(self._store.index_key(kind))}
        except redis.RedisError as e:
            raise StoreError(f"查询实体失败: {e}", operation="query") from e
        ids.update(entity_id for (k, entity_id) in self._identity if k is kind)

        result = []
        for entity_id in sorted(ids):
            entity = self.get(kind, entity_id)
            if entity is not None and (predicate is None or predicate(entity)):
                result.append(entity)
        return result

    def commit(self) -> None:
        self._ensure_active("commit")
        if not self._dirty and not self._removed:
            self._reset_pipeline()
            self._active = False
            return

        pipe = self._pipe
        try:
            pipe.multi()
            for (kind, entity_id), entity in self._dirty.items():
                pipe.set(
                    self._store.entity_key(kind, entity_id),
                    json.dumps(entity.to_dict(), ensure_ascii=False)
                )
                pipe.sadd(self._store.index_key(kind), entity_id)
            for kind, entity_id in self._removed:
                pipe.delete(self._store.entity_key(kind, entity_id))
                pipe.srem(self._store.index_key(kind), entity_id)
            pipe.execute()
        except redis.WatchError as e:
            self.logger.warning(f"提交冲突，已读取的实体被其他工作单元修改: {sorted(self._watched)}")
            raise StoreError("提交冲突: 实体已被其他工作单元修改", operation="commit") from e
        except redis.RedisError as e:
            raise StoreError(f"提交失败: {e}", operation="commit") from e

        self.logger.debug(
            f"提交完成: 写入{len(self._dirty)}个实体, 删除{len(self._removed)}个实体"
        )
        self._watched.clear()
        self._active = False

    def rollback(self) -> None:
        self._ensure_active("rollback")
        self._dirty.clear()
        self._removed.clear()
        self._reset_pipeline()
        self._active = False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._active = False
        self._identity.clear()
        self._dirty.clear()
        self._removed.clear()
        self._reset_pipeline()

    def _reset_pipeline(self) -> None:
        # UNWATCH 并归还连接
        self._watched.clear()
        self._pipe.reset()


class RedisStore(IStore):
    """Redis存储"""

    def __init__(self, client: redis.Redis, key_prefix: str = "cartstore"):
        """
        初始化Redis存储

        Args:
            client: Redis客户端
            key_prefix: 键前缀
        """
        self.client = client
        self.key_prefix = key_prefix
        self._closed = False
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_url(
        cls,
        url: str,
        password: Optional[str] = None,
        key_prefix: str = "cartstore"
    ) -> "RedisStore":
        """根据连接URL创建存储"""
        redis_kwargs = {
            'decode_responses': True,  # 自动解码响应
            'socket_connect_timeout': 5,
            'socket_timeout': 5,
            'retry_on_timeout': True,
            'health_check_interval': 30,
        }
        if password:
            redis_kwargs['password'] = password

        return cls(redis.from_url(url, **redis_kwargs), key_prefix=key_prefix)

    def entity_key(self, kind: EntityKind, entity_id: int) -> str:
        return f"{self.key_prefix}:{kind.value}:{entity_id}"

    def index_key(self, kind: EntityKind) -> str:
        return f"{self.key_prefix}:{kind.value}:ids"

    def sequence_key(self, kind: EntityKind) -> str:
        return f"{self.key_prefix}:{kind.value}:seq"

    def open(self) -> RedisUnitOfWork:
        if self._closed:
            raise StoreError("存储已关闭", operation="open")
        return RedisUnitOfWork(self)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.client.close()
            self.logger.info("已断开Redis连接")
        except redis.RedisError as e:
            self.logger.error(f"断开Redis连接时发生错误: {e}")

    def count(self, kind: EntityKind) -> int:
        """已提交的实体数量"""
        return int(self.client.scard(self.index_key(kind)))


__all__ = ["RedisStore", "RedisUnitOfWork"]
