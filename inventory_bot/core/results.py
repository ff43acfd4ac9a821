"""Единый тип результата для операций изменения данных."""

import enum
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

T = TypeVar("T")


class ErrorKind(enum.StrEnum):
    """Категории ошибок, которые операция может вернуть вызывающему коду."""

    # Некорректный ввод, до хранилища запрос не доходит
    VALIDATION = "validation"
    # Дубликат названия товара или категории
    CONFLICT = "conflict"
    # Хранилище отклонило чтение или запись
    STORAGE = "storage"
    # После записи не найдена строка, которую она должна была затронуть
    CONSISTENCY = "consistency"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Успешный результат операции."""

    value: T
    message: str = ""

    @property
    def success(self) -> Literal[True]:
        return True


@dataclass(frozen=True)
class Err:
    """Неуспешный результат операции с понятным пользователю сообщением."""

    error: ErrorKind
    message: str

    @property
    def success(self) -> Literal[False]:
        return False


OperationResult = Ok[T] | Err
