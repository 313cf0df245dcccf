"""
Доменная модель контекста бронирования.

Содержит сущности (аудитория, пользователь), агрегат бронирования
с его жизненным циклом, доменные события и политики доступа.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..shared_kernel import (
    AuthorizationError,
    BlockOutWindow,
    BookingStatus,
    BookingType,
    DomainEvent,
    EntityId,
    InvalidTransitionError,
    RoomStatus,
    RoomType,
    RoomUnavailableError,
    TimeRange,
    UserRole,
    generate_id,
    now,
)

if TYPE_CHECKING:
    from .interfaces import IBookingRepository


class User(BaseModel):
    """Пользователь системы."""

    id: EntityId = Field(default_factory=generate_id)
    name: str = ""
    email: str = ""
    role: UserRole
    department: str


class Room(BaseModel):
    """Аудитория."""

    id: EntityId = Field(default_factory=generate_id)
    name: str
    type: RoomType
    capacity: int = Field(..., gt=0)
    equipment: Set[str] = Field(default_factory=set)
    department: str
    floor: Optional[int] = None
    building: Optional[str] = None
    status: RoomStatus = RoomStatus.AVAILABLE
    block_out_hours: List[BlockOutWindow] = Field(default_factory=list)

    @property
    def under_maintenance(self) -> bool:
        return self.status == RoomStatus.MAINTENANCE


class CheckRecord(BaseModel):
    """Отметка о фактическом приходе или уходе."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    verified_by: EntityId


class BookingEvent(DomainEvent):
    """Общие поля событий жизненного цикла бронирования."""

    booking_id: EntityId
    room_id: EntityId
    requester_id: EntityId
    title: str


class BookingCreated(BookingEvent):
    """Событие создания заявки на бронирование."""

    period: TimeRange


class BookingApproved(BookingEvent):
    """Событие одобрения бронирования."""

    approved_by: EntityId


class BookingRejected(BookingEvent):
    """Событие отклонения бронирования."""

    rejected_by: EntityId


class BookingCancelled(BookingEvent):
    """Событие отмены бронирования."""

    cancelled_by: Optional[EntityId] = None


class BookingCheckedIn(BookingEvent):
    verified_by: EntityId


class BookingCheckedOut(BookingEvent):
    verified_by: EntityId


class BookingReminderDue(BookingEvent):
    """Бронирование скоро начнется."""

    starts_at: datetime


class Booking(BaseModel):
    """Бронирование аудитории."""

    id: EntityId = Field(default_factory=generate_id)
    room_id: EntityId
    requester_id: EntityId
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    booking_type: BookingType = BookingType.REGULAR
    period: TimeRange
    status: BookingStatus = BookingStatus.PENDING
    approved_by: Optional[EntityId] = None
    approved_at: Optional[datetime] = None
    check_in: Optional[CheckRecord] = None
    check_out: Optional[CheckRecord] = None
    reminder_sent_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    _domain_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    @property
    def domain_events(self) -> List[DomainEvent]:
        """Возвращает список доменных событий."""
        return list(self._domain_events)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Извлекает события и очищает список."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    def _event_fields(self) -> dict:
        return {
            "booking_id": self.id,
            "room_id": self.room_id,
            "requester_id": self.requester_id,
            "title": self.title,
        }

    def _touch(self, at: datetime) -> None:
        self.updated_at = at

    @property
    def is_checked_in(self) -> bool:
        return self.check_in is not None

    @property
    def is_checked_out(self) -> bool:
        return self.check_out is not None

    def _ensure_pending(self, action: str) -> None:
        if self.status != BookingStatus.PENDING:
            raise InvalidTransitionError(
                f"Невозможно {action} бронирование в статусе {self.status.value}"
            )

    def approve(self, approver_id: EntityId, at: Optional[datetime] = None) -> None:
        """Одобряет заявку."""
        self._ensure_pending("одобрить")
        at = at or now()

        self.status = BookingStatus.APPROVED
        self.approved_by = approver_id
        self.approved_at = at
        self._touch(at)
        self._domain_events.append(
            BookingApproved(approved_by=approver_id, **self._event_fields())
        )

    def reject(self, approver_id: EntityId, at: Optional[datetime] = None) -> None:
        """Отклоняет заявку. Рецензент сохраняется в approved_by."""
        self._ensure_pending("отклонить")
        at = at or now()

        self.status = BookingStatus.REJECTED
        self.approved_by = approver_id
        self.approved_at = at
        self._touch(at)
        self._domain_events.append(
            BookingRejected(rejected_by=approver_id, **self._event_fields())
        )

    def cancel(
        self, cancelled_by: Optional[EntityId] = None, at: Optional[datetime] = None
    ) -> None:
        """Отменяет бронирование."""
        if self.status.is_terminal:
            raise InvalidTransitionError(
                f"Невозможно отменить бронирование в статусе {self.status.value}"
            )
        if self.is_checked_out:
            raise InvalidTransitionError(
                "Невозможно отменить бронирование после отметки об уходе"
            )

        self.status = BookingStatus.CANCELLED
        self._touch(at or now())
        self._domain_events.append(
            BookingCancelled(cancelled_by=cancelled_by, **self._event_fields())
        )

    def record_check_in(self, verifier_id: EntityId, at: Optional[datetime] = None) -> None:
        """Отмечает приход по одобренному бронированию."""
        if self.status != BookingStatus.APPROVED:
            raise InvalidTransitionError(
                f"Отметка о приходе возможна только для одобренного бронирования, "
                f"текущий статус {self.status.value}"
            )
        if self.is_checked_in:
            raise InvalidTransitionError("Отметка о приходе уже сделана")
        at = at or now()

        self.check_in = CheckRecord(time=at, verified_by=verifier_id)
        self._touch(at)
        self._domain_events.append(
            BookingCheckedIn(verified_by=verifier_id, **self._event_fields())
        )

    def record_check_out(self, verifier_id: EntityId, at: Optional[datetime] = None) -> None:
        """Отмечает уход. Требует предварительной отметки о приходе."""
        if self.status != BookingStatus.APPROVED:
            raise InvalidTransitionError(
                f"Отметка об уходе возможна только для одобренного бронирования, "
                f"текущий статус {self.status.value}"
            )
        if not self.is_checked_in:
            raise InvalidTransitionError("Нельзя отметить уход без отметки о приходе")
        if self.is_checked_out:
            raise InvalidTransitionError("Отметка об уходе уже сделана")
        at = at or now()

        self.check_out = CheckRecord(time=at, verified_by=verifier_id)
        self._touch(at)
        self._domain_events.append(
            BookingCheckedOut(verified_by=verifier_id, **self._event_fields())
        )

    def mark_reminded(self, at: Optional[datetime] = None) -> None:
        """Фиксирует отправку напоминания о скором начале."""
        at = at or now()
        self.reminder_sent_at = at
        self._domain_events.append(
            BookingReminderDue(starts_at=self.period.start, **self._event_fields())
        )

    def is_active(self, at: Optional[datetime] = None) -> bool:
        """Занимает ли бронирование аудиторию в момент at.

        После отметки об уходе аудитория считается освободившейся.
        """
        return (
            self.status == BookingStatus.APPROVED
            and not self.is_checked_out
            and self.period.contains(at or now())
        )

    @classmethod
    def create(
        cls,
        room: Room,
        requester: User,
        title: str,
        period: TimeRange,
        description: Optional[str] = None,
        booking_type: BookingType = BookingType.REGULAR,
        at: Optional[datetime] = None,
    ) -> "Booking":
        """Создает новую заявку в статусе pending."""
        if room.under_maintenance:
            raise RoomUnavailableError(f"Аудитория {room.name} на обслуживании")
        BookingPolicy.ensure_outside_block_out(room, period)

        at = at or now()
        booking = cls(
            room_id=room.id,
            requester_id=requester.id,
            title=title,
            description=description,
            booking_type=booking_type,
            period=period,
            created_at=at,
            updated_at=at,
        )

        booking._domain_events.append(
            BookingCreated(period=period, **booking._event_fields())
        )

        return booking


class BookingPolicy:
    """Политики и бизнес-правила для бронирований."""

    REVIEWER_ROLES = frozenset({UserRole.FACULTY, UserRole.ADMIN, UserRole.HOD})

    @classmethod
    def can_review(cls, user: User) -> bool:
        return user.role in cls.REVIEWER_ROLES

    @classmethod
    def ensure_can_review(cls, user: User) -> None:
        """Одобрять и отклонять заявки могут faculty, admin и hod."""
        if not cls.can_review(user):
            raise AuthorizationError(
                f"Пользователь {user.id} с ролью {user.role.value} "
                f"не может рассматривать заявки"
            )

    @classmethod
    def ensure_can_verify(cls, user: User) -> None:
        """Отмечать приход и уход могут те же роли, что и рассматривать заявки."""
        if not cls.can_review(user):
            raise AuthorizationError(
                f"Пользователь {user.id} с ролью {user.role.value} "
                f"не может подтверждать посещение"
            )

    @classmethod
    def ensure_can_cancel(cls, user: User, booking: Booking) -> None:
        """Отменить бронирование может автор заявки или рецензент."""
        if user.id != booking.requester_id and not cls.can_review(user):
            raise AuthorizationError(
                f"Пользователь {user.id} не может отменить чужое бронирование"
            )

    @classmethod
    def ensure_outside_block_out(cls, room: Room, period: TimeRange) -> None:
        for window in room.block_out_hours:
            if window.intersects(period):
                raise RoomUnavailableError(
                    f"Аудитория {room.name} закрыта для бронирования "
                    f"с {window.start:%H:%M} до {window.end:%H:%M}"
                )


class AvailabilityService:
    """Доменный сервис проверки доступности аудиторий."""

    # Блокируют аудиторию только подтвержденные человеком бронирования
    BLOCKING_STATUSES = frozenset({BookingStatus.APPROVED})

    def __init__(self, booking_repository: "IBookingRepository"):
        self.booking_repository = booking_repository

    def conflicting_bookings(
        self,
        room_id: EntityId,
        period: TimeRange,
        exclude_booking_id: Optional[EntityId] = None,
    ) -> List[Booking]:
        overlapping = self.booking_repository.find_overlapping_bookings(
            room_id=room_id,
            period=period,
            exclude_booking_id=exclude_booking_id,
        )
        return [b for b in overlapping if b.status in self.BLOCKING_STATUSES]

    def is_room_available(
        self,
        room_id: EntityId,
        period: TimeRange,
        exclude_booking_id: Optional[EntityId] = None,
    ) -> bool:
        """Проверяет, свободна ли аудитория в интервале."""
        return not self.conflicting_bookings(room_id, period, exclude_booking_id)

    def status_at(self, room: Room, at: datetime) -> RoomStatus:
        """Текущее состояние аудитории с учетом активных бронирований."""
        if room.under_maintenance:
            return RoomStatus.MAINTENANCE
        active = any(
            booking.is_active(at)
            for booking in self.booking_repository.find_by_room(room.id)
        )
        return RoomStatus.BOOKED if active else RoomStatus.AVAILABLE
