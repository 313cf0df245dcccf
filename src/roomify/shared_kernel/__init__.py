"""
Общее ядро (Shared Kernel) системы бронирования аудиторий.

Содержит общие типы данных и утилиты, используемые в разных контекстах.
"""

from .domain import (
    AuthorizationError,
    BlockOutWindow,
    BookingStatus,
    BookingType,
    DomainEvent,
    # Исключения
    DomainException,
    # Базовые типы
    EntityId,
    InvalidTransitionError,
    NotFoundError,
    NotificationType,
    RoomStatus,
    # Перечисления
    RoomType,
    RoomUnavailableError,
    # Основные классы
    TimeRange,
    UserRole,
    ValidationError,
    generate_id,
    # Утилиты
    now,
)
from .log import ILogger, StructuredLogger, configure_logging, get_logger

__all__ = [
    # Базовые типы
    "EntityId",
    "generate_id",
    # Основные классы
    "TimeRange",
    "BlockOutWindow",
    "DomainEvent",
    # Перечисления
    "RoomType",
    "RoomStatus",
    "BookingStatus",
    "BookingType",
    "UserRole",
    "NotificationType",
    # Исключения
    "DomainException",
    "ValidationError",
    "RoomUnavailableError",
    "NotFoundError",
    "InvalidTransitionError",
    "AuthorizationError",
    # Утилиты
    "now",
    # Логирование
    "ILogger",
    "StructuredLogger",
    "get_logger",
    "configure_logging",
]
