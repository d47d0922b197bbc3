"""
存储适配器

提供内存与Redis两种存储实现。
"""

from .memory_adapter import MemoryStore, MemoryUnitOfWork
from .redis_adapter import RedisStore, RedisUnitOfWork

__all__ = [
    "MemoryStore",
    "MemoryUnitOfWork",
    "RedisStore",
    "RedisUnitOfWork",
]
