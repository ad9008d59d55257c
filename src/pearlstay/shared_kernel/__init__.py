"""
Общее ядро (Shared Kernel) платформы бронирования отелей.

Содержит общие типы данных и утилиты, используемые в различных ограниченных контекстах.
"""

from .domain import (
    HOLDING_STATUSES,
    BookingStatus,
    Conflict,
    DateRange,
    DomainEvent,
    # Исключения
    DomainException,
    # Базовые типы
    EntityId,
    Forbidden,
    HotelStatus,
    InvalidTransition,
    # Основные классы
    Money,
    NotFound,
    # Перечисления
    Role,
    Unauthorized,
    ValidationError,
    generate_id,
    # Утилиты
    now,
    parse_request,
    round_money,
    today,
)
from .infrastructure import ContextLogger, KeyedLocks
from .interfaces import ILogger

__all__ = [
    # Базовые типы
    "EntityId",
    "generate_id",
    # Основные классы
    "Money",
    "DateRange",
    "DomainEvent",
    # Перечисления
    "Role",
    "BookingStatus",
    "HotelStatus",
    "HOLDING_STATUSES",
    # Исключения
    "DomainException",
    "ValidationError",
    "Conflict",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "InvalidTransition",
    # Утилиты
    "now",
    "today",
    "round_money",
    "parse_request",
    # Логирование
    "ILogger",
    "ContextLogger",
    "KeyedLocks",
]
