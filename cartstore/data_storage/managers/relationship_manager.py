"""
关系管理器实现

维护容器与元素之间一对多关系的双向一致性：
- 对称性：element.container_id == c.id 当且仅当 element.id in c.elements
- 排他性：元素同一时刻至多属于一个容器

所有元素在修改前都会重新解析为当前工作单元中的受管实例，
调用方传入的实例只用于确定身份。
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from ...core.exceptions import ConstraintViolation, NotFoundError
from ..entities import Container, Element, EntityKind
from ..interfaces import IUnitOfWork

logger = logging.getLogger(__name__)

ElementRef = Union[Element, int]


@dataclass
class MembershipChange:
    """一次关系调整的结果"""
    attached: List[int] = field(default_factory=list)
    detached: List[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.attached or self.detached)


class RelationshipManager:
    """关系管理器"""

    def attach(self, uow: IUnitOfWork, container: Container, element: ElementRef) -> bool:
        """
        将元素挂到容器上

        元素若属于其他容器，先从原容器摘除。已挂在同一容器上时不做任何事。

        Args:
            uow: 当前工作单元
            container: 受管容器
            element: 元素或元素id

        Returns:
            是否发生变化
        """
        self._check_container(container)
        managed = self._resolve(uow, element)
        return self._link(uow, container, managed)

    def detach(self, uow: IUnitOfWork, container: Container, element: ElementRef) -> bool:
        """
        将元素从容器上摘除，元素不在容器中时不做任何事

        Returns:
            是否发生变化
        """
        self._check_container(container)
        managed = self._resolve(uow, element)
        return self._unlink(uow, container, managed)

    def reconcile(
        self,
        uow: IUnitOfWork,
        container: Container,
        target_elements: Optional[Iterable[ElementRef]]
    ) -> MembershipChange:
        """
        将容器的成员调整为目标集合

        target_elements 为 None 时保持成员不变；为空集合时清空成员。
        先摘除多余成员再挂上新成员，元素在两个容器间移动时不会同时属于两者。

        Args:
            uow: 当前工作单元
            container: 受管容器
            target_elements: 目标元素（实例或id），重复的身份只计一次

        Returns:
            MembershipChange: 实际挂上和摘除的元素id
        """
        change = MembershipChange()
        if target_elements is None:
            return change

        self._check_container(container)

        target_ids: List[int] = []
        for ref in target_elements:
            element_id = self._identity(ref)
            if element_id not in target_ids:
                target_ids.append(element_id)

        # 先全部解析，缺失的元素在修改任何状态之前就报错
        resolved = {element_id: self._resolve(uow, element_id) for element_id in target_ids}

        current = set(container.elements)
        wanted = set(target_ids)

        for element_id in sorted(current - wanted):
            element = uow.get(EntityKind.ELEMENT, element_id)
            if element is None:
                logger.warning(f"容器{container.id}引用了不存在的元素{element_id}，已清除")
                container.discard_member(element_id)
                uow.save(container)
            else:
                self._unlink(uow, container, element)
            change.detached.append(element_id)

        for element_id in target_ids:
            if element_id not in current:
                self._link(uow, container, resolved[element_id])
                change.attached.append(element_id)

        if change.changed:
            logger.debug(
                f"容器{container.id}成员调整: 挂上{change.attached}, 摘除{change.detached}"
            )
        return change

    def _link(self, uow: IUnitOfWork, container: Container, element: Element) -> bool:
        if container.has_member(element.id) and element.container_id == container.id:
            return False

        if element.container_id is not None and element.container_id != container.id:
            previous = uow.get(EntityKind.CONTAINER, element.container_id)
            if previous is None:
                logger.warning(f"元素{element.id}指向不存在的容器{element.container_id}")
            elif previous.discard_member(element.id):
                uow.save(previous)

        container.add_member(element.id)
        element.assign_to(container.id)
        uow.save(element)
        uow.save(container)
        return True

    def _unlink(self, uow: IUnitOfWork, container: Container, element: Element) -> bool:
        changed = False
        if container.discard_member(element.id):
            uow.save(container)
            changed = True
        # 单侧残留的反向引用同样清除
        if element.container_id == container.id:
            element.release()
            uow.save(element)
            changed = True
        return changed

    @staticmethod
    def _check_container(container: Container) -> None:
        if not isinstance(container, Container):
            raise ConstraintViolation(
                f"只能向容器挂载元素: {type(container).__name__}",
                details={"type": type(container).__name__}
            )
        if container.is_transient:
            raise ConstraintViolation("容器尚未持久化")

    @staticmethod
    def _identity(ref: ElementRef) -> int:
        if isinstance(ref, Element):
            if ref.is_transient:
                raise ConstraintViolation("元素尚未持久化", details={"name": ref.name})
            return ref.id
        if isinstance(ref, int) and not isinstance(ref, bool):
            if ref <= 0:
                raise ConstraintViolation(f"无效的元素id: {ref}", details={"id": ref})
            return ref
        raise ConstraintViolation(
            f"不是元素: {type(ref).__name__}",
            details={"type": type(ref).__name__}
        )

    def _resolve(self, uow: IUnitOfWork, ref: ElementRef) -> Element:
        element_id = self._identity(ref)
        element = uow.get(EntityKind.ELEMENT, element_id)
        if element is None:
            raise NotFoundError(
                f"元素不存在: {element_id}",
                entity_kind=EntityKind.ELEMENT.value,
                entity_id=element_id
            )
        return element


__all__ = ["RelationshipManager", "MembershipChange", "ElementRef"]
