"""
存储工厂实现

根据配置创建存储实例。
"""

import logging
from typing import Callable, Dict

from ...core.config import Settings
from ...core.exceptions import StoreError
from ..adapters.memory_adapter import MemoryStore
from ..adapters.redis_adapter import RedisStore
from ..interfaces import IStore

logger = logging.getLogger(__name__)


def _build_memory_store(settings: Settings) -> IStore:
    return MemoryStore(lock_timeout=settings.lock_timeout)


def _build_redis_store(settings: Settings) -> IStore:
    return RedisStore.from_url(
        settings.redis_url,
        password=settings.redis_password,
        key_prefix=settings.redis_key_prefix,
    )


class StorageFactory:
    """存储工厂"""

    def __init__(self):
        """初始化存储工厂"""
        self._store_registry: Dict[str, Callable[[Settings], IStore]] = {
            'memory': _build_memory_store,
            'redis': _build_redis_store,
        }

    def register(self, backend: str, builder: Callable[[Settings], IStore]) -> None:
        """注册自定义存储后端"""
        self._store_registry[backend.lower()] = builder

    def create_store(self, settings: Settings) -> IStore:
        """
        创建存储

        Args:
            settings: 配置对象

        Returns:
            存储实例

        Raises:
            StoreError: 后端类型不支持或创建失败
        """
        backend = settings.store_backend.lower()
        if backend not in self._store_registry:
            raise StoreError(f"不支持的存储后端类型: {backend}", operation="create_store")

        try:
            store = self._store_registry[backend](settings)
        except Exception as e:
            logger.error(f"创建存储失败: {e}")
            raise StoreError(f"创建存储失败: {e}", operation="create_store") from e

        logger.info(f"创建存储成功: {backend}")
        return store


__all__ = ["StorageFactory"]
