"""Фильтрация, сортировка и постраничный вывод списка товаров."""

import datetime
import enum
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel

PAGE_SIZES = (10, 25, 50)
DEFAULT_PAGE_SIZE = PAGE_SIZES[0]


class StockStatus(enum.StrEnum):
    ALL = "all"
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class DateAdded(enum.StrEnum):
    ALL = "all"
    LAST_7_DAYS = "7days"
    LAST_30_DAYS = "30days"

    @property
    def days(self) -> int | None:
        return {DateAdded.LAST_7_DAYS: 7, DateAdded.LAST_30_DAYS: 30}.get(self)


class SortKey(enum.StrEnum):
    NAME = "name"
    QUANTITY = "quantity"
    CREATED_AT = "created_at"


class SortDirection(enum.StrEnum):
    ASC = "asc"
    DESC = "desc"


class ListItem(Protocol):
    """Поля товара, с которыми работает конвейер."""

    id: int | None
    name: str
    description: str | None
    quantity: int
    product_id: str | None
    low_stock_threshold: int
    category_id: int | None
    created_at: datetime.datetime


class ListFilters(BaseModel):
    """
    Фильтры списка товаров. Все фильтры применяются одновременно (И).

    Атрибуты:
        stock_status: Фильтр по остатку.
        category_id: ID категории или None для всех категорий.
        date_added: Фильтр по дате добавления.
        min_quantity: Нижняя граница количества в виде введенной строки.
        max_quantity: Верхняя граница количества в виде введенной строки.
        search: Строка поиска по названию, описанию и ID товара.
    """

    stock_status: StockStatus = StockStatus.ALL
    category_id: int | None = None
    date_added: DateAdded = DateAdded.ALL
    min_quantity: str = ""
    max_quantity: str = ""
    search: str = ""


class SortConfig(BaseModel):
    key: SortKey = SortKey.CREATED_AT
    direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class ProductPage:
    """Видимая часть отфильтрованного и отсортированного списка."""

    items: list[ListItem]
    page: int
    page_size: int
    total_items: int
    total_pages: int


def _parse_bound(raw: str) -> int | None:
    """Граница диапазона: нечисловое значение означает отсутствие границы."""
    try:
        return int(raw.strip())
    except ValueError:
        return None


def matches_stock_status(item: ListItem, status: StockStatus) -> bool:
    if status is StockStatus.IN_STOCK:
        return item.quantity >= item.low_stock_threshold
    if status is StockStatus.LOW_STOCK:
        return 0 < item.quantity < item.low_stock_threshold
    if status is StockStatus.OUT_OF_STOCK:
        return item.quantity == 0
    return True


def matches_search(item: ListItem, term: str) -> bool:
    needle = term.casefold()
    return any(
        value is not None and needle in value.casefold()
        for value in (item.name, item.description, item.product_id)
    )


def filter_products(
    products: Iterable[ListItem],
    filters: ListFilters,
    now: datetime.datetime | None = None,
) -> list[ListItem]:
    """
    Отбирает товары, подходящие под все фильтры.

    Args:
        products: Исходный список товаров.
        filters: Активные фильтры.
        now: Текущее время для фильтра по дате (UTC без tzinfo).

    Returns:
        Новый список в исходном порядке.
    """
    items = list(products)

    if filters.stock_status is not StockStatus.ALL:
        items = [p for p in items if matches_stock_status(p, filters.stock_status)]

    if filters.category_id is not None:
        items = [p for p in items if p.category_id == filters.category_id]

    days = filters.date_added.days
    if days is not None:
        if now is None:
            now = datetime.datetime.now(datetime.UTC).replace(tzinfo=None)
        since = now - datetime.timedelta(days=days)
        items = [p for p in items if p.created_at >= since]

    low = _parse_bound(filters.min_quantity)
    high = _parse_bound(filters.max_quantity)
    if low is not None:
        items = [p for p in items if p.quantity >= low]
    if high is not None:
        items = [p for p in items if p.quantity <= high]

    term = filters.search.strip()
    if term:
        items = [p for p in items if matches_search(p, term)]

    return items


def sort_products(items: Iterable[ListItem], sort: SortConfig) -> list[ListItem]:
    """
    Устойчивая сортировка по одному полю.

    Значения None оказываются в конце при сортировке по возрастанию и в
    начале при сортировке по убыванию. Равные элементы сохраняют исходный
    порядок в обоих направлениях.
    """
    present = []
    missing = []
    for item in items:
        (missing if getattr(item, sort.key) is None else present).append(item)

    descending = sort.direction is SortDirection.DESC
    # sorted(reverse=True) тоже устойчива: равные элементы не меняются местами.
    present = sorted(present, key=lambda p: getattr(p, sort.key), reverse=descending)
    return missing + present if descending else present + missing


def paginate(items: Sequence[ListItem], page: int, page_size: int) -> ProductPage:
    """
    Вырезает страницу из списка. Страница за пределами диапазона пуста.

    Raises:
        ValueError: Если размер страницы не из PAGE_SIZES.
    """
    if page_size not in PAGE_SIZES:
        raise ValueError(f"Unsupported page size: {page_size}")
    start = max(page - 1, 0) * page_size
    return ProductPage(
        items=list(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=math.ceil(len(items) / page_size),
    )


def process_products(
    products: Iterable[ListItem],
    filters: ListFilters,
    sort: SortConfig,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    now: datetime.datetime | None = None,
) -> ProductPage:
    """
    Полный конвейер: фильтры, сортировка, страница.

    Чистая функция: исходный список не меняется, скрытого состояния нет.
    """
    filtered = filter_products(products, filters, now=now)
    return paginate(sort_products(filtered, sort), page, page_size)


def low_stock_items(products: Iterable[ListItem]) -> list[ListItem]:
    """Товары с остатком ниже порога, включая закончившиеся."""
    return [p for p in products if p.quantity < p.low_stock_threshold]
