"""
仓库工厂实现

把配置、存储、事务执行器与关系管理器装配成仓库实例。
"""

import logging
from typing import Optional

from ...core.config import Settings
from ..interfaces import DeletePolicy, IStore
from ..managers.relationship_manager import RelationshipManager
from ..managers.transaction_runner import TransactionRunner
from ..repositories.cart_repository import CartRepository
from .storage_factory import StorageFactory

logger = logging.getLogger(__name__)


class RepositoryFactory:
    """仓库工厂"""

    def __init__(self, storage_factory: Optional[StorageFactory] = None):
        self._storage_factory = storage_factory or StorageFactory()

    def create_cart_repository(
        self,
        settings: Settings,
        store: Optional[IStore] = None
    ) -> CartRepository:
        """
        创建购物车仓库

        Args:
            settings: 配置对象
            store: 已有的存储实例，不传时按配置创建

        Returns:
            购物车仓库实例
        """
        if store is None:
            store = self._storage_factory.create_store(settings)

        repository = CartRepository(
            TransactionRunner(store),
            RelationshipManager(),
            delete_policy=DeletePolicy(settings.container_delete_policy),
        )
        logger.info("创建购物车仓库成功")
        return repository


def create_repository(
    settings: Optional[Settings] = None,
    store: Optional[IStore] = None
) -> CartRepository:
    """便捷函数：按配置创建仓库"""
    return RepositoryFactory().create_cart_repository(settings or Settings(), store)


__all__ = ["RepositoryFactory", "create_repository"]
