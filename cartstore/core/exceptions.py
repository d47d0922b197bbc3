"""
自定义异常类

提供：
- 统一的异常基类
- 实体未找到、约束违反、存储失败、事务失败四类错误
- 事务错误携带原始异常
"""

from typing import Any, Dict, Optional


class CartStoreException(Exception):
    """
    CartStore基础异常类

    所有自定义异常的基类。
    """
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code,
                "details": self.details
            }
        }


class NotFoundError(CartStoreException):
    """实体未找到错误"""
    def __init__(
        self,
        message: str,
        entity_kind: Optional[str] = None,
        entity_id: Optional[int] = None
    ):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            details={"entity_kind": entity_kind, "entity_id": entity_id}
        )
        self.entity_kind = entity_kind
        self.entity_id = entity_id


class ConstraintViolation(CartStoreException):
    """约束违反错误（关系不变量将被破坏）"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="CONSTRAINT_VIOLATION",
            details=details
        )


class StoreError(CartStoreException):
    """存储层操作错误"""
    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="STORE_ERROR",
            details={"operation": operation} if operation else {}
        )
        self.operation = operation


class TransactionError(CartStoreException):
    """
    事务错误

    包装工作单元内发生的任何失败，cause 保存原始异常。
    """
    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        operation: Optional[str] = None
    ):
        details: Dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if cause is not None:
            details["cause_type"] = type(cause).__name__
            details["cause_message"] = str(cause)
        super().__init__(
            message=message,
            error_code="TRANSACTION_ERROR",
            details=details
        )
        self.cause = cause
        self.operation = operation


__all__ = [
    "CartStoreException",
    "NotFoundError",
    "ConstraintViolation",
    "StoreError",
    "TransactionError",
]
