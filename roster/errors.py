"""Ошибки движка составов и тегированный результат операций.

Внутри движка ошибки поднимаются как исключения, а на границе операции
превращаются в :class:`Failure`, поэтому вызывающий код никогда не получает
необработанное исключение.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Generic, TypeVar, Union

T = TypeVar("T")

INTERNAL_ERROR_MESSAGE = "Internal system error. Please try again later or contact the bot administrator."


class RosterError(Exception):
    """Базовая ошибка движка составов."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RosterError):
    """Некорректные входные данные (формат поля, длина и т.д.)."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(RosterError):
    """Не найдено событие, шаблон, слот или сообщение события."""


class ConflictReason(str, enum.Enum):
    SLOT_TAKEN = "slot_taken"
    ALREADY_ASSIGNED = "already_assigned"
    NOT_IN_EVENT = "not_in_event"
    LOCKED = "locked"
    DUPLICATE = "duplicate"


class ConflictError(RosterError):
    """Операция противоречит текущему состоянию состава."""

    def __init__(self, message: str, reason: ConflictReason):
        super().__init__(message)
        self.reason = reason


class AuthorizationError(RosterError):
    """Операция доступна только организатору или администратору."""


class InternalError(RosterError):
    """Сбой хранилища или Discord. Подробности только в логах."""

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE):
        super().__init__(message)


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    ok: ClassVar[bool] = True

    @property
    def message(self) -> str:
        return getattr(self.value, "message", str(self.value))


@dataclass(frozen=True)
class Failure:
    error: RosterError

    ok: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return self.error.message


Result = Union[Success[T], Failure]
