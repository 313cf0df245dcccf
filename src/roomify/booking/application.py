"""
Прикладной слой контекста бронирования.

Содержит сервисы приложения, которые координируют
взаимодействие между слоем представления и доменной моделью.
Все изменения выполняются внутри единицы работы: переход
применяется полностью вместе с уведомлением или не применяется вовсе.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..shared_kernel import (
    AuthorizationError,
    BookingStatus,
    BookingType,
    EntityId,
    ILogger,
    NotFoundError,
    RoomStatus,
    RoomType,
    RoomUnavailableError,
    TimeRange,
    UserRole,
    ValidationError,
    get_logger,
    now,
)
from . import interfaces as ports
from .domain import AvailabilityService, Booking, BookingPolicy, Room, User

# DTO (Data Transfer Objects) для входящих данных


class CreateBookingRequest(BaseModel):
    """Запрос на создание бронирования."""

    room_id: EntityId
    requester_id: EntityId
    title: str = Field(..., min_length=1)
    start: datetime
    end: datetime
    description: Optional[str] = None
    booking_type: BookingType = BookingType.REGULAR


# DTO для исходящих данных


class BookingDTO(BaseModel):
    """DTO для представления бронирования."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    room_id: EntityId
    requester_id: EntityId
    title: str
    description: Optional[str]
    booking_type: BookingType
    start: datetime
    end: datetime
    status: BookingStatus
    approved_by: Optional[EntityId]
    approved_at: Optional[datetime]
    checked_in_at: Optional[datetime]
    checked_in_by: Optional[EntityId]
    checked_out_at: Optional[datetime]
    checked_out_by: Optional[EntityId]
    reminder_sent_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=booking.id,
            room_id=booking.room_id,
            requester_id=booking.requester_id,
            title=booking.title,
            description=booking.description,
            booking_type=booking.booking_type,
            start=booking.period.start,
            end=booking.period.end,
            status=booking.status,
            approved_by=booking.approved_by,
            approved_at=booking.approved_at,
            checked_in_at=booking.check_in.time if booking.check_in else None,
            checked_in_by=booking.check_in.verified_by if booking.check_in else None,
            checked_out_at=booking.check_out.time if booking.check_out else None,
            checked_out_by=booking.check_out.verified_by if booking.check_out else None,
            reminder_sent_at=booking.reminder_sent_at,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class RoomDTO(BaseModel):
    """DTO для представления аудитории."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    name: str
    type: RoomType
    capacity: int
    equipment: Tuple[str, ...]
    department: str
    floor: Optional[int]
    building: Optional[str]
    status: RoomStatus

    @classmethod
    def from_domain(cls, room: Room) -> "RoomDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=room.id,
            name=room.name,
            type=room.type,
            capacity=room.capacity,
            equipment=tuple(sorted(room.equipment)),
            department=room.department,
            floor=room.floor,
            building=room.building,
            status=room.status,
        )


class UserDTO(BaseModel):
    """DTO для представления пользователя."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    name: str
    email: str
    role: UserRole
    department: str

    @classmethod
    def from_domain(cls, user: User) -> "UserDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            department=user.department,
        )


def make_period(start: datetime, end: datetime) -> TimeRange:
    """Строит интервал, переводя ошибку pydantic в доменную ValidationError."""
    try:
        return TimeRange(start=start, end=end)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Некорректный интервал: {start} - {end}. "
            f"Время окончания должно быть позже времени начала"
        ) from e


def _load_user(uow: ports.IRoomifyUnitOfWork, user_id: EntityId) -> User:
    user = uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def _load_room(uow: ports.IRoomifyUnitOfWork, room_id: EntityId) -> Room:
    room = uow.rooms.get_by_id(room_id)
    if room is None:
        raise NotFoundError("Room", room_id)
    return room


# Сервисы приложения


class BookingApplicationService:
    """Сервис приложения для работы с бронированиями (жизненный цикл)."""

    def __init__(
        self,
        uow: ports.IRoomifyUnitOfWork,
        clock: Callable[[], datetime] = now,
        logger: Optional[ILogger] = None,
        reminder_lead_time: timedelta = timedelta(minutes=30),
        recent_limit: int = 5,
    ):
        """Инициализирует сервис."""
        self._uow = uow
        self._clock = clock
        self._logger = logger or get_logger(__name__)
        self._availability = AvailabilityService(self._uow.bookings)
        self._reminder_lead_time = reminder_lead_time
        self._recent_limit = recent_limit

    def _get_booking(self, booking_id: EntityId) -> Booking:
        booking = self._uow.bookings.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    def _save(self, booking: Booking) -> None:
        self._uow.bookings.update(booking)
        self._uow.collect(booking)

    @staticmethod
    def _parse_request(
        request: Union[CreateBookingRequest, Mapping[str, Any]]
    ) -> CreateBookingRequest:
        if isinstance(request, CreateBookingRequest):
            return request
        try:
            return CreateBookingRequest.model_validate(dict(request))
        except PydanticValidationError as e:
            raise ValidationError(f"Некорректный запрос на бронирование: {e}") from e

    def create_booking(
        self, request: Union[CreateBookingRequest, Mapping[str, Any]]
    ) -> BookingDTO:
        """Создает заявку на бронирование.

        Проверка доступности и вставка выполняются в одной
        критической секции единицы работы.
        """
        request = self._parse_request(request)
        period = make_period(request.start, request.end)

        with self._uow:
            room = _load_room(self._uow, request.room_id)
            requester = _load_user(self._uow, request.requester_id)

            conflicts = self._availability.conflicting_bookings(room.id, period)
            if conflicts:
                raise RoomUnavailableError(
                    f"Аудитория {room.name} уже забронирована на выбранное время"
                )

            booking = Booking.create(
                room=room,
                requester=requester,
                title=request.title,
                period=period,
                description=request.description,
                booking_type=request.booking_type,
                at=self._clock(),
            )
            self._uow.bookings.add(booking)
            self._uow.collect(booking)

        self._logger.info(
            "Booking created",
            booking_id=booking.id,
            room_id=room.id,
            requester_id=requester.id,
        )
        return BookingDTO.from_domain(booking)

    def approve_booking(self, booking_id: EntityId, approver_id: EntityId) -> BookingDTO:
        """Одобряет заявку."""
        with self._uow:
            booking = self._get_booking(booking_id)
            approver = _load_user(self._uow, approver_id)
            BookingPolicy.ensure_can_review(approver)

            conflicts = self._availability.conflicting_bookings(
                booking.room_id, booking.period, exclude_booking_id=booking.id
            )
            if conflicts:
                raise RoomUnavailableError(
                    f"Аудитория {booking.room_id} уже забронирована на выбранное время"
                )

            booking.approve(approver.id, at=self._clock())
            self._save(booking)

        self._logger.info("Booking approved", booking_id=booking_id, approver_id=approver_id)
        return BookingDTO.from_domain(booking)

    def reject_booking(self, booking_id: EntityId, approver_id: EntityId) -> BookingDTO:
        """Отклоняет заявку."""
        with self._uow:
            booking = self._get_booking(booking_id)
            approver = _load_user(self._uow, approver_id)
            BookingPolicy.ensure_can_review(approver)

            booking.reject(approver.id, at=self._clock())
            self._save(booking)

        self._logger.info("Booking rejected", booking_id=booking_id, approver_id=approver_id)
        return BookingDTO.from_domain(booking)

    def cancel_booking(
        self, booking_id: EntityId, actor_id: Optional[EntityId] = None
    ) -> BookingDTO:
        """Отменяет бронирование.

        Если actor_id передан, отменить может только автор заявки
        или пользователь с ролью рецензента.
        """
        with self._uow:
            booking = self._get_booking(booking_id)
            if actor_id is not None:
                actor = _load_user(self._uow, actor_id)
                BookingPolicy.ensure_can_cancel(actor, booking)

            booking.cancel(cancelled_by=actor_id, at=self._clock())
            self._save(booking)

        self._logger.info("Booking cancelled", booking_id=booking_id, actor_id=actor_id)
        return BookingDTO.from_domain(booking)

    def check_in(self, booking_id: EntityId, verifier_id: EntityId) -> BookingDTO:
        """Отмечает приход."""
        with self._uow:
            booking = self._get_booking(booking_id)
            verifier = _load_user(self._uow, verifier_id)
            BookingPolicy.ensure_can_verify(verifier)

            booking.record_check_in(verifier.id, at=self._clock())
            self._save(booking)

        self._logger.info("Booking checked in", booking_id=booking_id, verifier_id=verifier_id)
        return BookingDTO.from_domain(booking)

    def check_out(self, booking_id: EntityId, verifier_id: EntityId) -> BookingDTO:
        """Отмечает уход."""
        with self._uow:
            booking = self._get_booking(booking_id)
            verifier = _load_user(self._uow, verifier_id)
            BookingPolicy.ensure_can_verify(verifier)

            booking.record_check_out(verifier.id, at=self._clock())
            self._save(booking)

        self._logger.info("Booking checked out", booking_id=booking_id, verifier_id=verifier_id)
        return BookingDTO.from_domain(booking)

    def send_reminders(self, lead_time: Optional[timedelta] = None) -> List[BookingDTO]:
        """Напоминает о скором начале одобренных бронирований.

        Напоминание уходит один раз на бронирование, если до начала
        осталось не больше lead_time.
        """
        lead_time = self._reminder_lead_time if lead_time is None else lead_time
        current = self._clock()
        reminded: List[Booking] = []

        with self._uow:
            for booking in self._uow.bookings.find_by_status(BookingStatus.APPROVED):
                if booking.reminder_sent_at is not None:
                    continue
                if not current <= booking.period.start <= current + lead_time:
                    continue
                booking.mark_reminded(at=current)
                self._save(booking)
                reminded.append(booking)

        if reminded:
            self._logger.info("Booking reminders sent", count=len(reminded))
        return [BookingDTO.from_domain(b) for b in reminded]

    # Чтение

    def get_booking(self, booking_id: EntityId) -> BookingDTO:
        """Возвращает информацию о бронировании."""
        return BookingDTO.from_domain(self._get_booking(booking_id))

    def list_bookings(
        self,
        requester_id: Optional[EntityId] = None,
        room_id: Optional[EntityId] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[BookingDTO]:
        """Возвращает список бронирований с фильтрацией."""
        bookings = self._uow.bookings.list_all()
        return [
            BookingDTO.from_domain(booking)
            for booking in bookings
            if (requester_id is None or booking.requester_id == requester_id)
            and (room_id is None or booking.room_id == room_id)
            and (status is None or booking.status == status)
        ]

    def list_pending_approvals(self) -> List[BookingDTO]:
        """Заявки, ожидающие рассмотрения, в порядке начала."""
        pending = self._uow.bookings.find_by_status(BookingStatus.PENDING)
        return [
            BookingDTO.from_domain(b)
            for b in sorted(pending, key=lambda b: b.period.start)
        ]

    def list_upcoming(self, limit: Optional[int] = None) -> List[BookingDTO]:
        """Бронирования, которые еще не начались, ближайшие первыми."""
        current = self._clock()
        upcoming = sorted(
            (b for b in self._uow.bookings.list_all() if b.period.start > current),
            key=lambda b: b.period.start,
        )
        if limit is not None:
            upcoming = upcoming[:limit]
        return [BookingDTO.from_domain(b) for b in upcoming]

    def list_recent(self, limit: Optional[int] = None) -> List[BookingDTO]:
        """Последние бронирования по времени начала, самые поздние первыми."""
        limit = self._recent_limit if limit is None else limit
        recent = sorted(
            self._uow.bookings.list_all(), key=lambda b: b.period.start, reverse=True
        )
        return [BookingDTO.from_domain(b) for b in recent[:limit]]


class RoomApplicationService:
    """Сервис приложения для работы с аудиториями и их доступностью."""

    MANAGER_ROLES = frozenset({UserRole.ADMIN, UserRole.HOD})

    def __init__(
        self,
        uow: ports.IRoomifyUnitOfWork,
        clock: Callable[[], datetime] = now,
        logger: Optional[ILogger] = None,
    ):
        """Инициализирует сервис."""
        self._uow = uow
        self._clock = clock
        self._logger = logger or get_logger(__name__)
        self._availability = AvailabilityService(self._uow.bookings)

    def is_room_available(self, room_id: EntityId, start: datetime, end: datetime) -> bool:
        """Свободна ли аудитория в интервале [start, end).

        Для неизвестной аудитории возвращает True: занять ее нечем,
        а создание бронирования все равно завершится NotFoundError.
        """
        period = make_period(start, end)
        return self._availability.is_room_available(room_id, period)

    def list_rooms(
        self,
        room_type: Optional[RoomType] = None,
        min_capacity: Optional[int] = None,
        equipment: Optional[Iterable[str]] = None,
        department: Optional[str] = None,
    ) -> List[RoomDTO]:
        """Возвращает каталог аудиторий с фильтрацией."""
        required: Set[str] = set(equipment or ())
        return [
            RoomDTO.from_domain(room)
            for room in self._uow.rooms.list_all()
            if (room_type is None or room.type == room_type)
            and (min_capacity is None or room.capacity >= min_capacity)
            and required <= room.equipment
            and (department is None or room.department == department)
        ]

    def list_available_rooms(
        self,
        start: datetime,
        end: datetime,
        room_type: Optional[RoomType] = None,
        min_capacity: Optional[int] = None,
        equipment: Optional[Iterable[str]] = None,
    ) -> List[RoomDTO]:
        """Возвращает аудитории, свободные в интервале и не на обслуживании."""
        period = make_period(start, end)
        candidates = self.list_rooms(
            room_type=room_type, min_capacity=min_capacity, equipment=equipment
        )
        return [
            room
            for room in candidates
            if room.status != RoomStatus.MAINTENANCE
            and self._availability.is_room_available(room.id, period)
        ]

    def get_room(self, room_id: EntityId) -> RoomDTO:
        """Возвращает информацию об аудитории."""
        return RoomDTO.from_domain(_load_room(self._uow, room_id))

    def room_status_at(self, room_id: EntityId, at: Optional[datetime] = None) -> RoomStatus:
        """Состояние аудитории в момент at (по умолчанию - сейчас)."""
        room = _load_room(self._uow, room_id)
        return self._availability.status_at(room, at or self._clock())

    def set_room_status(
        self, room_id: EntityId, status: RoomStatus, actor_id: EntityId
    ) -> RoomDTO:
        """Переводит аудиторию на обслуживание или возвращает в работу."""
        if status == RoomStatus.BOOKED:
            raise ValidationError("Статус booked вычисляется по бронированиям")

        with self._uow:
            room = _load_room(self._uow, room_id)
            actor = _load_user(self._uow, actor_id)
            if actor.role not in self.MANAGER_ROLES:
                raise AuthorizationError(
                    f"Пользователь {actor.id} с ролью {actor.role.value} "
                    f"не может менять статус аудитории"
                )
            room.status = status

        self._logger.info("Room status changed", room_id=room_id, status=status.value)
        return RoomDTO.from_domain(room)


class UserApplicationService:
    """Сервис приложения для работы с пользователями."""

    def __init__(self, uow: ports.IRoomifyUnitOfWork, logger: Optional[ILogger] = None):
        """Инициализирует сервис."""
        self._uow = uow
        self._logger = logger or get_logger(__name__)

    def register_user(
        self, name: str, email: str, role: UserRole, department: str
    ) -> UserDTO:
        """Регистрирует нового пользователя."""
        with self._uow:
            normalized = email.lower()
            if any(u.email.lower() == normalized for u in self._uow.users.list_all()):
                raise ValidationError(f"Пользователь с email {email} уже зарегистрирован")

            user = User(name=name, email=email, role=role, department=department)
            self._uow.users.add(user)

        self._logger.info("User registered", user_id=user.id, role=role.value)
        return UserDTO.from_domain(user)

    def get_user(self, user_id: EntityId) -> UserDTO:
        """Возвращает информацию о пользователе."""
        return UserDTO.from_domain(_load_user(self._uow, user_id))

    def list_users(self, role: Optional[UserRole] = None) -> List[UserDTO]:
        return [
            UserDTO.from_domain(user)
            for user in self._uow.users.list_all()
            if role is None or user.role == role
        ]
