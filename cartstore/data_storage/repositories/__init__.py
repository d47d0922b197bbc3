"""
数据存储层仓库实现

提供统一的数据访问接口，实现仓库模式。
"""

from .cart_repository import CartRepository

__all__ = [
    "CartRepository",
]
