"""
核心功能模块

包含配置管理、日志配置、异常定义等基础设施组件。
"""

from .config import Settings
from .logging import setup_logging, get_logger, LoggerMixin
from .exceptions import (
    CartStoreException,
    NotFoundError,
    ConstraintViolation,
    StoreError,
    TransactionError,
)

__all__ = [
    "Settings",
    "setup_logging",
    "get_logger",
    "LoggerMixin",
    "CartStoreException",
    "NotFoundError",
    "ConstraintViolation",
    "StoreError",
    "TransactionError",
]
