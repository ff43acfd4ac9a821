"""Состояние просмотра списка товаров: фильтры, сортировка, страница."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from inventory_bot.inventory.pipeline import (
    DEFAULT_PAGE_SIZE,
    PAGE_SIZES,
    ListFilters,
    SortConfig,
    SortDirection,
    SortKey,
)


class InventoryViewState(BaseModel):
    """
    Неизменяемое состояние списка, которое хранится в данных FSM.

    Любое изменение фильтров, поиска, сортировки или размера страницы
    возвращает состояние с page == 1, иначе пользователь мог бы оказаться на
    несуществующей странице.
    """

    model_config = {"frozen": True}

    filters: ListFilters = Field(default_factory=ListFilters)
    sort: SortConfig = Field(default_factory=SortConfig)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @field_validator("page_size")
    @classmethod
    def check_page_size(cls, v: int) -> int:
        if v not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}")
        return v

    @classmethod
    def from_storage(cls, raw: dict[str, Any] | None) -> "InventoryViewState":
        """Восстанавливает состояние из данных FSM (или создает новое)."""
        if not raw:
            return cls()
        return cls.model_validate(raw)

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def with_filters(self, **changes: Any) -> "InventoryViewState":
        filters = self.filters.model_copy(update=changes)
        return self.model_copy(update={"filters": filters, "page": 1})

    def with_search(self, term: str) -> "InventoryViewState":
        return self.with_filters(search=term)

    def clear_filters(self) -> "InventoryViewState":
        return self.model_copy(update={"filters": ListFilters(), "page": 1})

    def toggle_sort(self, key: SortKey) -> "InventoryViewState":
        """Повторный выбор того же поля меняет направление, новое поле - по возрастанию."""
        if self.sort.key is key and self.sort.direction is SortDirection.ASC:
            direction = SortDirection.DESC
        else:
            direction = SortDirection.ASC
        sort = SortConfig(key=key, direction=direction)
        return self.model_copy(update={"sort": sort, "page": 1})

    def with_page_size(self, page_size: int) -> "InventoryViewState":
        return InventoryViewState(
            filters=self.filters, sort=self.sort, page=1, page_size=page_size
        )

    def go_to_page(self, page: int) -> "InventoryViewState":
        return self.model_copy(update={"page": max(page, 1)})
