"""
CartStore 演示脚本

依次演示创建、关系分配、重新分配、字段更新、删除与预加载读取。

运行:
    python -m cartstore.demo
"""

from .core import Settings, setup_logging
from .data_storage import CartRepository, EntityKind, create_repository, format_collection


def print_state(repository: CartRepository, title: str) -> None:
    """打印当前所有容器和元素"""
    print(f"\n[{title}]")
    print("CARTS:")
    carts = [
        repository.fetch_container_with_elements(cart.id)
        for cart in repository.list_collection(EntityKind.CONTAINER)
    ]
    print(format_collection(carts))
    print("ITEMS:")
    print(format_collection(repository.list_collection(EntityKind.ELEMENT)))
    print("------------------------------\n")


def run_demo(settings: Settings) -> None:
    repository = create_repository(settings)

    try:
        print("--- 1. 创建 ---")
        cart1 = repository.create_container("Cart 1")
        cart2 = repository.create_container("Cart 2")
        cart3 = repository.create_container("Cart 3")

        items = [repository.create_element(f"Item {n}") for n in range(1, 7)]
        item1, item2, item3, item4, item5, item6 = items

        print_state(repository, "初始创建之后")

        print("--- 2. 分配元素 ---")
        repository.update_container(cart1.id, cart1.label, {item1, item2, item3})
        repository.update_container(cart2.id, cart2.label, {item4, item5})

        # 新集合不含 Item 3，它会自动从 Cart 1 摘除
        repository.update_container(cart1.id, cart1.label, {item1, item2})

        print_state(repository, "更新关系之后")

        print("--- 3. 更新字段 ---")
        # 传 None 表示只更新标签，不修改成员
        repository.update_container(cart1.id, "Cart 1 UPDATED", None)
        repository.rename_element(item1.id, "Item 1 UPDATED")

        print_state(repository, "更新名称之后")

        print("--- 4. 删除 ---")
        repository.delete(EntityKind.CONTAINER, cart3.id)
        repository.delete(EntityKind.ELEMENT, item6.id)

        print_state(repository, "删除之后")

        print("--- 5. 预加载读取 ---")
        cart = repository.fetch_container_with_elements(cart1.id)
        if cart is not None:
            print(f"购物车 '{cart.label}' 的商品:")
            for element in cart.element_records():
                print(f"- {element.name}")
    finally:
        repository.close()


def main() -> None:
    settings = Settings()
    setup_logging(settings)
    run_demo(settings)


if __name__ == "__main__":
    main()
