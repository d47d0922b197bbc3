"""
实体模型

定义容器（Container）与元素（Element）两种记录及其身份规则：
- id 为 0 表示瞬态实体（尚未持久化）
- 两个已持久化实体在类型与 id 相同时相等
- 瞬态实体只与自身相等

容器与元素之间的关联只保存 id，由存储按需解析，不形成对象引用环。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Type, Union

TRANSIENT_ID = 0


class EntityKind(Enum):
    """实体类型"""
    CONTAINER = "Container"
    ELEMENT = "Element"

    @property
    def entity_class(self) -> Type["BaseEntity"]:
        return Container if self is EntityKind.CONTAINER else Element

    @classmethod
    def of(cls, entity: "BaseEntity") -> "EntityKind":
        """根据实体实例获取其类型"""
        if isinstance(entity, Container):
            return cls.CONTAINER
        if isinstance(entity, Element):
            return cls.ELEMENT
        raise TypeError(f"不是受管理的实体类型: {type(entity).__name__}")


class BaseEntity:
    """实体基类，提供身份判定"""

    id: int

    @property
    def is_transient(self) -> bool:
        """是否为瞬态实体"""
        return not self.id

    @property
    def is_persisted(self) -> bool:
        return not self.is_transient

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if type(self) is not type(other):
            return NotImplemented
        if self.is_transient or other.is_transient:
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        # 持久化前后哈希值不同，瞬态实体不应放入集合后再保存
        if self.is_transient:
            return object.__hash__(self)
        return hash((type(self).__name__, self.id))


@dataclass(eq=False)
class Element(BaseEntity):
    """元素（多的一方，例如购物车中的商品）"""
    name: Optional[str] = None
    id: int = TRANSIENT_ID
    container_id: Optional[int] = None

    def rename(self, name: Optional[str]) -> None:
        self.name = name

    def assign_to(self, container_id: int) -> None:
        """设置所属容器（仅由关系管理器调用）"""
        self.container_id = container_id

    def release(self) -> None:
        """清除所属容器"""
        self.container_id = None

    def belongs_to(self, container: "Container") -> bool:
        return (
            container is not None
            and container.is_persisted
            and self.container_id == container.id
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "container_id": self.container_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Element":
        return cls(
            name=data.get("name"),
            id=int(data.get("id") or TRANSIENT_ID),
            container_id=data.get("container_id"),
        )

    def __str__(self) -> str:
        return f"{self.id}: {self.name}"


@dataclass(eq=False)
class Container(BaseEntity):
    """
    容器（一的一方，例如购物车）

    elements 保存成员元素的 id 集合。loaded 只在
    fetch_container_with_elements 返回的结果上填充，保存已加载的元素记录，
    不参与持久化。
    """
    label: Optional[str] = None
    id: int = TRANSIENT_ID
    elements: Set[int] = field(default_factory=set)
    loaded: Dict[int, Element] = field(default_factory=dict, repr=False)

    def relabel(self, label: Optional[str]) -> None:
        self.label = label

    def has_member(self, element_id: int) -> bool:
        return element_id in self.elements

    def add_member(self, element_id: int) -> bool:
        """添加成员 id，返回是否发生变化"""
        if element_id in self.elements:
            return False
        self.elements.add(element_id)
        return True

    def discard_member(self, element_id: int) -> bool:
        """移除成员 id，返回是否发生变化"""
        if element_id not in self.elements:
            return False
        self.elements.discard(element_id)
        self.loaded.pop(element_id, None)
        return True

    @property
    def is_materialized(self) -> bool:
        """成员元素是否已全部加载"""
        return set(self.loaded) == self.elements

    def element_records(self) -> List[Element]:
        """已加载的成员元素，按 id 排序"""
        return [self.loaded[i] for i in sorted(self.loaded)]

    def materialize(self, elements: Iterable[Element]) -> "Container":
        """
        生成带已加载元素的分离副本

        Args:
            elements: 当前工作单元中的成员元素

        Returns:
            新的 Container 实例，不与工作单元共享状态
        """
        copy = Container(label=self.label, id=self.id, elements=set(self.elements))
        for element in elements:
            copy.loaded[element.id] = Element(
                name=element.name, id=element.id, container_id=element.container_id
            )
        return copy

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "elements": sorted(self.elements)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Container":
        return cls(
            label=data.get("label"),
            id=int(data.get("id") or TRANSIENT_ID),
            elements={int(i) for i in data.get("elements", [])},
        )

    def __str__(self) -> str:
        if self.elements and self.is_materialized:
            items = " | ".join(str(e) for e in self.element_records())
        else:
            items = ", ".join(str(i) for i in sorted(self.elements))
        return f"{self.id}: {self.label}, Items: [{items}]"


Entity = Union[Container, Element]


def format_collection(entities: Iterable[BaseEntity]) -> str:
    """每行一个实体的文本表示"""
    return "\n".join(str(entity) for entity in entities)


__all__ = [
    "TRANSIENT_ID",
    "EntityKind",
    "BaseEntity",
    "Container",
    "Element",
    "Entity",
    "format_collection",
]
