"""
数据存储层工厂实现

提供组件创建和依赖注入功能。
"""

from .storage_factory import StorageFactory
from .repository_factory import RepositoryFactory, create_repository

__all__ = [
    "StorageFactory",
    "RepositoryFactory",
    "create_repository",
]
