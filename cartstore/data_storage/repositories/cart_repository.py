"""
购物车仓库实现

对外提供容器与元素的 CRUD 操作。每个操作都在独立的工作单元中执行，
失败时回滚并抛出 TransactionError（cause 为原始异常）。
"""

import logging
from typing import Iterable, List, Optional

from ...core.exceptions import NotFoundError, TransactionError
from ..entities import Container, Element, Entity, EntityKind
from ..interfaces import DeletePolicy, IUnitOfWork, Predicate
from ..managers.relationship_manager import ElementRef, RelationshipManager
from ..managers.transaction_runner import TransactionRunner

logger = logging.getLogger(__name__)


class CartRepository:
    """购物车仓库"""

    def __init__(
        self,
        runner: TransactionRunner,
        relationships: Optional[RelationshipManager] = None,
        delete_policy: DeletePolicy = DeletePolicy.DETACH
    ):
        """
        初始化仓库

        Args:
            runner: 事务执行器
            relationships: 关系管理器
            delete_policy: 删除容器时对成员元素的处理策略
        """
        self._runner = runner
        self._relationships = relationships or RelationshipManager()
        self._delete_policy = delete_policy

        logger.info(f"购物车仓库初始化完成, 删除策略: {delete_policy.value}")

    @property
    def delete_policy(self) -> DeletePolicy:
        return self._delete_policy

    def close(self) -> None:
        """关闭底层存储"""
        self._runner.store.close()

    # ==================== 创建 ====================

    def create_container(self, label: Optional[str]) -> Container:
        """持久化一个新容器并返回带id的实例"""
        def action(uow: IUnitOfWork) -> Container:
            return uow.save(Container(label=label))

        container = self._runner.run_with_result(action, "create_container")
        logger.info(f"创建容器成功: {container.id}")
        return container

    def create_element(self, name: Optional[str]) -> Element:
        """持久化一个新元素并返回带id的实例"""
        def action(uow: IUnitOfWork) -> Element:
            return uow.save(Element(name=name))

        element = self._runner.run_with_result(action, "create_element")
        logger.info(f"创建元素成功: {element.id}")
        return element

    # ==================== 更新 ====================

    def rename_element(self, element_id: int, new_name: Optional[str]) -> Element:
        """
        修改元素名称

        Raises:
            TransactionError: 元素不存在时 cause 为 NotFoundError
        """
        def action(uow: IUnitOfWork) -> Element:
            element = self._require(uow, EntityKind.ELEMENT, element_id)
            element.rename(new_name)
            return uow.save(element)

        return self._runner.run_with_result(action, "rename_element")

    def update_container(
        self,
        container_id: int,
        new_label: Optional[str],
        target_elements: Optional[Iterable[ElementRef]] = None
    ) -> Container:
        """
        更新容器标签并调整成员

        Args:
            container_id: 容器id
            new_label: 新标签
            target_elements: 目标成员（元素实例或id）。None 表示不修改成员，
                空集合表示清空成员

        Returns:
            更新后的容器

        Raises:
            TransactionError: 容器或目标元素不存在（NotFoundError），
                目标含非法条目（ConstraintViolation）
        """
        targets = None if target_elements is None else list(target_elements)

        def action(uow: IUnitOfWork) -> Container:
            container = self._require(uow, EntityKind.CONTAINER, container_id)
            container.relabel(new_label)
            self._relationships.reconcile(uow, container, targets)
            return uow.save(container)

        return self._runner.run_with_result(action, "update_container")

    def attach_element(self, container_id: int, element_id: int) -> bool:
        """将单个元素挂到容器上，返回是否发生变化"""
        def action(uow: IUnitOfWork) -> bool:
            container = self._require(uow, EntityKind.CONTAINER, container_id)
            return self._relationships.attach(uow, container, element_id)

        return self._runner.run_with_result(action, "attach_element")

    def detach_element(self, container_id: int, element_id: int) -> bool:
        """将单个元素从容器上摘除，返回是否发生变化"""
        def action(uow: IUnitOfWork) -> bool:
            container = self._require(uow, EntityKind.CONTAINER, container_id)
            return self._relationships.detach(uow, container, element_id)

        return self._runner.run_with_result(action, "detach_element")

    # ==================== 查询 ====================

    def fetch_container_with_elements(self, container_id: int) -> Optional[Container]:
        """
        获取容器并在工作单元结束前加载全部成员元素

        返回的容器在事务外仍可通过 element_records() 读取成员。
        """
        def action(uow: IUnitOfWork) -> Optional[Container]:
            container = uow.get(EntityKind.CONTAINER, container_id)
            if container is None:
                return None
            return container.materialize(self._members(uow, container))

        return self._runner.run_with_result(action, "fetch_container_with_elements")

    def get_by_id(self, kind: EntityKind, entity_id: int) -> Optional[Entity]:
        """根据id获取实体，不存在时返回None"""
        def action(uow: IUnitOfWork) -> Optional[Entity]:
            return uow.get(kind, entity_id)

        return self._runner.run_with_result(action, "get_by_id")

    def list_collection(self, kind: EntityKind, predicate: Optional[Predicate] = None) -> List[Entity]:
        """列出某类型的全部实体，可按条件过滤"""
        def action(uow: IUnitOfWork) -> List[Entity]:
            return uow.query(kind, predicate)

        return self._runner.run_with_result(action, "list_collection")

    def elements_of(self, container_id: int) -> List[Element]:
        """
        获取容器当前拥有的元素，按id排序

        Raises:
            TransactionError: 容器不存在时 cause 为 NotFoundError
        """
        def action(uow: IUnitOfWork) -> List[Element]:
            container = self._require(uow, EntityKind.CONTAINER, container_id)
            return self._members(uow, container)

        return self._runner.run_with_result(action, "elements_of")

    # ==================== 删除 ====================

    def delete(self, kind: EntityKind, entity_id: int) -> bool:
        """
        删除实体，实体不存在时不做任何事

        删除元素前先从其所属容器中移除；删除容器时按删除策略处理成员元素。

        Returns:
            是否实际删除了实体
        """
        def action(uow: IUnitOfWork) -> bool:
            entity = uow.get(kind, entity_id)
            if entity is None:
                return False
            if kind is EntityKind.CONTAINER:
                self._delete_container(uow, entity)
            else:
                self._delete_element(uow, entity)
            return True

        deleted = self._runner.run_with_result(action, "delete")
        if deleted:
            logger.info(f"删除{kind.value}成功: {entity_id}")
        return deleted

    def delete_many(self, kind: EntityKind, entity_ids: Iterable[int]) -> int:
        """
        尽力删除一批实体

        每个删除在独立的工作单元中执行，单个失败只记录日志，不影响其余删除。

        Returns:
            实际删除的数量
        """
        removed = 0
        for entity_id in entity_ids:
            try:
                if self.delete(kind, entity_id):
                    removed += 1
            except TransactionError as e:
                # 清理路径：记录后继续
                logger.warning(f"删除{kind.value} {entity_id}失败，已跳过: {e}")
        return removed

    def _delete_container(self, uow: IUnitOfWork, container: Container) -> None:
        for element in self._members(uow, container):
            if self._delete_policy is DeletePolicy.CASCADE:
                uow.remove(element)
            elif element.container_id == container.id:
                element.release()
                uow.save(element)
        container.elements.clear()
        uow.remove(container)

    def _delete_element(self, uow: IUnitOfWork, element: Element) -> None:
        if element.container_id is not None:
            owner = uow.get(EntityKind.CONTAINER, element.container_id)
            if owner is not None:
                self._relationships.detach(uow, owner, element)
        uow.remove(element)

    # ==================== 内部方法 ====================

    @staticmethod
    def _require(uow: IUnitOfWork, kind: EntityKind, entity_id: int) -> Entity:
        entity = uow.get(kind, entity_id)
        if entity is None:
            raise NotFoundError(
                f"{kind.value}不存在: {entity_id}",
                entity_kind=kind.value,
                entity_id=entity_id
            )
        return entity

    @staticmethod
    def _members(uow: IUnitOfWork, container: Container) -> List[Element]:
        members = []
        for element_id in sorted(container.elements):
            element = uow.get(EntityKind.ELEMENT, element_id)
            if element is None:
                logger.warning(f"容器{container.id}引用了不存在的元素{element_id}")
                continue
            members.append(element)
        return members


__all__ = ["CartRepository"]
