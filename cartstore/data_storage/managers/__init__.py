"""
数据存储层管理器实现

提供关系维护与事务执行功能。
"""

from .relationship_manager import RelationshipManager, MembershipChange
from .transaction_runner import TransactionRunner

__all__ = [
    "RelationshipManager",
    "MembershipChange",
    "TransactionRunner",
]
