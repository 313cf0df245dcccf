"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import datetime, time, timedelta
from enum import Enum
from typing import Set
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Идентификаторы сущностей - строки ("room-1", "fac1", uuid4 для новых записей)
EntityId = str


def generate_id() -> EntityId:
    """Генерирует новый уникальный идентификатор."""
    return str(uuid4())


class TimeRange(BaseModel):
    """Полуоткрытый интервал времени [start, end)."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def end_after_start(self) -> "TimeRange":
        if self.end <= self.start:
            raise ValueError("Время окончания должно быть позже времени начала")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def hours(self) -> float:
        """Длительность интервала в часах."""
        return self.duration.total_seconds() / 3600

    def overlaps(self, other: "TimeRange") -> bool:
        """Пересекаются ли интервалы. Соприкасающиеся интервалы не пересекаются."""
        return self.start < other.end and self.end > other.start

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


class BlockOutWindow(BaseModel):
    """Еженедельное окно, в которое аудитория закрыта для бронирования."""

    model_config = ConfigDict(frozen=True)

    start: time
    end: time
    # Дни недели в нотации datetime.weekday(): понедельник = 0
    days: Set[int] = Field(default_factory=lambda: set(range(7)))

    @field_validator("days")
    @classmethod
    def days_are_weekdays(cls, v: Set[int]) -> Set[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Дни недели задаются числами от 0 до 6")
        return v

    @model_validator(mode="after")
    def end_after_start(self) -> "BlockOutWindow":
        if self.end <= self.start:
            raise ValueError("Окно блокировки должно заканчиваться позже начала")
        return self

    def intersects(self, period: TimeRange) -> bool:
        """Пересекает ли интервал бронирования это окно в один из дней."""
        day = period.start.date()
        while day <= period.end.date():
            if day.weekday() in self.days:
                window = TimeRange(
                    start=datetime.combine(day, self.start),
                    end=datetime.combine(day, self.end),
                )
                if window.overlaps(period):
                    return True
            day += timedelta(days=1)
        return False


class DomainEvent(BaseModel):
    """Базовый класс для всех доменных событий."""

    event_id: EntityId = Field(default_factory=generate_id)
    occurred_on: datetime = Field(default_factory=lambda: now())
    event_type: str = ""

    @model_validator(mode="after")
    def default_event_type(self) -> "DomainEvent":
        if not self.event_type:
            self.event_type = type(self).__name__
        return self


# Общие перечисления
class RoomType(str, Enum):
    """Типы аудиторий."""

    CLASSROOM = "classroom"
    CONFERENCE = "conference"
    MEETING = "meeting"
    LAB = "lab"


class RoomStatus(str, Enum):
    """Статусы аудиторий."""

    AVAILABLE = "available"
    BOOKED = "booked"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    """Статусы бронирования."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.REJECTED, BookingStatus.CANCELLED)


class BookingType(str, Enum):
    """Назначение бронирования."""

    REGULAR = "regular"
    CLUB = "club"
    CLASS = "class"


class UserRole(str, Enum):
    """Роли пользователей."""

    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"
    HOD = "hod"


class NotificationType(str, Enum):
    """Типы уведомлений."""

    BOOKING_CREATED = "booking_created"
    BOOKING_REQUEST = "booking_request"
    BOOKING_APPROVED = "booking_approved"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_CHECKED_IN = "booking_checked_in"
    BOOKING_CHECKED_OUT = "booking_checked_out"
    BOOKING_REMINDER = "booking_reminder"
    CLUB_EVENT = "club_event"


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class ValidationError(DomainException):
    """Некорректные входные данные: интервал, обязательное поле."""

    pass


class RoomUnavailableError(ValidationError):
    """Аудитория занята, закрыта или на обслуживании в запрошенный интервал."""

    pass


class NotFoundError(DomainException):
    """Сущность с указанным идентификатором не найдена."""

    def __init__(self, entity: str, entity_id: EntityId):
        super().__init__(f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(DomainException):
    """Переход недопустим из текущего состояния бронирования."""

    pass


class AuthorizationError(DomainException):
    """У роли пользователя нет права на запрошенное действие."""

    pass


# Общие утилиты
def now() -> datetime:
    """Возвращает текущие локальные дату и время."""
    return datetime.now()
