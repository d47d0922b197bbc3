"""
事务执行器实现

在一个工作单元内执行调用方的逻辑：成功则提交；逻辑或提交失败则回滚
（仅当事务仍处于活动状态）并以 TransactionError 重新抛出。
无论成功与否，工作单元都会被释放。
"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from ...core.exceptions import TransactionError
from ...core.logging import LoggerMixin
from ..interfaces import IStore, IUnitOfWork

T = TypeVar("T")


class TransactionRunner(LoggerMixin):
    """事务执行器"""

    def __init__(self, store: IStore):
        """
        初始化事务执行器

        Args:
            store: 存储实例，由调用方构造后传入
        """
        self._store = store

    @property
    def store(self) -> IStore:
        return self._store

    @contextmanager
    def unit_of_work(self, operation: str = "unit_of_work") -> Iterator[IUnitOfWork]:
        """
        工作单元上下文管理器

        使用示例:
            with runner.unit_of_work("rename") as uow:
                element = uow.get(EntityKind.ELEMENT, 1)
                element.rename("新名称")
                uow.save(element)

        不支持嵌套：with 块内不得再打开同一存储的工作单元。
        """
        try:
            uow = self._store.open()
        except Exception as e:
            self.logger.error("打开工作单元失败", operation=operation, error=str(e))
            raise TransactionError(f"打开工作单元失败: {operation}", cause=e, operation=operation) from e

        self.logger.debug("开始事务", operation=operation)
        try:
            yield uow
            uow.commit()
            self.logger.debug("事务已提交", operation=operation)
        except TransactionError:
            self._rollback_quietly(uow, operation)
            raise
        except Exception as e:
            self._rollback_quietly(uow, operation)
            self.logger.warning(
                "事务已回滚",
                operation=operation,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise TransactionError(f"事务执行失败: {operation}", cause=e, operation=operation) from e
        except BaseException as e:
            # KeyboardInterrupt / SystemExit 等：回滚后原样抛出，不包装
            self._rollback_quietly(uow, operation)
            self.logger.warning("事务被中断，已回滚", operation=operation, error_type=type(e).__name__)
            raise
        finally:
            self._close_quietly(uow, operation)

    def run(self, action: Callable[[IUnitOfWork], None], operation: Optional[str] = None) -> None:
        """在工作单元中执行无返回值的逻辑"""
        self.run_with_result(action, operation)

    def run_with_result(
        self,
        action: Callable[[IUnitOfWork], T],
        operation: Optional[str] = None
    ) -> T:
        """
        在工作单元中执行逻辑并返回其结果

        Args:
            action: 接收工作单元的可调用对象
            operation: 用于日志与错误信息的操作名

        Returns:
            action 的返回值

        Raises:
            TransactionError: action 或提交失败，cause 为原始异常
        """
        name = operation or getattr(action, "__name__", "action")
        with self.unit_of_work(name) as uow:
            return action(uow)

    def _rollback_quietly(self, uow: IUnitOfWork, operation: str) -> None:
        # 清理路径：回滚失败只记录，向上传播的是原始错误
        try:
            if uow.is_active:
                uow.rollback()
        except Exception as e:
            self.logger.error("回滚失败", operation=operation, error=str(e))

    def _close_quietly(self, uow: IUnitOfWork, operation: str) -> None:
        # 清理路径：关闭失败只记录
        try:
            uow.close()
        except Exception as e:
            self.logger.error("关闭工作单元失败", operation=operation, error=str(e))


__all__ = ["TransactionRunner"]
