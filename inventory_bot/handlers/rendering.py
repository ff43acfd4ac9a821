"""Текстовое представление товаров для ответов бота."""

from collections.abc import Sequence

from inventory_bot.db.models import Category, Product
from inventory_bot.inventory.pipeline import (
    ProductPage,
    SortDirection,
    StockStatus,
    low_stock_items,
    process_products,
)
from inventory_bot.inventory.view_state import InventoryViewState
from inventory_bot.services.product_service import InventorySnapshot

STOCK_STATUS_LABELS = {
    StockStatus.ALL: "все",
    StockStatus.IN_STOCK: "в наличии",
    StockStatus.LOW_STOCK: "мало",
    StockStatus.OUT_OF_STOCK: "нет в наличии",
}

SORT_LABELS = {
    "name": "названию",
    "quantity": "количеству",
    "created_at": "дате добавления",
}


def render_product_line(product: Product) -> str:
    line = f"{product.id}. {product.name}: {product.quantity} шт."
    if product.is_out_of_stock:
        line += " (нет в наличии)"
    elif product.is_low_stock:
        line += " (мало)"
    details = [d for d in (product.category_name, product.product_id) if d]
    if details:
        line += f" [{', '.join(details)}]"
    return line


def render_product_details(product: Product) -> str:
    return "\n".join(
        [
            f"Товар #{product.id}: {product.name}",
            f"Описание: {product.description or '-'}",
            f"Количество: {product.quantity} шт.",
            f"Порог низкого остатка: {product.low_stock_threshold}",
            f"Категория: {product.category_name or 'без категории'}",
            f"ID товара: {product.product_id or '-'}",
        ]
    )


def render_low_stock_alert(products: Sequence[Product]) -> str | None:
    """Баннер о товарах ниже порога. None, если таких товаров нет."""
    items = low_stock_items(products)
    if not items:
        return None
    lines = [f"⚠️ Низкий остаток: {len(items)} поз. ниже порога заказа:"]
    for item in items:
        lines.append(
            f"- {item.name} (остаток: {item.quantity} / порог: "
            f"{item.low_stock_threshold}), изменить: /edit {item.id}"
        )
    return "\n".join(lines)


def render_categories(categories: Sequence[Category]) -> str:
    if not categories:
        return "Категорий пока нет. Создайте новую при добавлении товара."
    lines = ["Категории:"]
    lines.extend(f"{category.id}. {category.name}" for category in categories)
    return "\n".join(lines)


def _render_view_summary(view: InventoryViewState, categories: Sequence[Category]) -> str:
    filters = view.filters
    parts = []
    if filters.stock_status is not StockStatus.ALL:
        parts.append(f"остаток: {STOCK_STATUS_LABELS[filters.stock_status]}")
    if filters.category_id is not None:
        names = {c.id: c.name for c in categories}
        parts.append(f"категория: {names.get(filters.category_id, filters.category_id)}")
    if filters.date_added.days is not None:
        parts.append(f"добавлены за {filters.date_added.days} дн.")
    if filters.min_quantity or filters.max_quantity:
        low = filters.min_quantity or "..."
        high = filters.max_quantity or "..."
        parts.append(f"количество: {low}-{high}")
    if filters.search:
        parts.append(f"поиск: \"{filters.search}\"")

    arrow = "↑" if view.sort.direction is SortDirection.ASC else "↓"
    summary = f"Сортировка по {SORT_LABELS[view.sort.key]} {arrow}"
    if parts:
        summary += "; фильтры: " + ", ".join(parts)
    return summary


def render_page(page: ProductPage) -> str:
    if not page.total_items:
        return "Ничего не найдено. Измените фильтры или сбросьте их командой /clear."
    lines = [
        f"Страница {page.page} из {page.total_pages} (всего товаров: {page.total_items}):"
    ]
    if not page.items:
        lines.append("На этой странице товаров нет.")
    lines.extend(render_product_line(item) for item in page.items)  # type: ignore[arg-type]
    return "\n".join(lines)


def render_inventory(snapshot: InventorySnapshot, view: InventoryViewState) -> str:
    """
    Собирает полный ответ на /list: баннер, сводку и текущую страницу.

    Args:
        snapshot: Свежие данные склада.
        view: Состояние просмотра пользователя.

    Returns:
        Готовый текст сообщения.
    """
    if not snapshot.products:
        return "Склад пуст. Добавьте первый товар командой /add."

    page = process_products(
        snapshot.products,
        view.filters,
        view.sort,
        page=view.page,
        page_size=view.page_size,
    )
    blocks = []
    alert = render_low_stock_alert(snapshot.products)
    if alert:
        blocks.append(alert)
    blocks.append(_render_view_summary(view, snapshot.categories))
    blocks.append(render_page(page))
    return "\n\n".join(blocks)
