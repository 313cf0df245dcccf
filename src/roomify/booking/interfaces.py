"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, Type, TypeVar

from ..notifications.domain import Notification
from ..shared_kernel import BookingStatus, DomainEvent, EntityId, TimeRange
from .domain import Booking, Room, User

T_Event = TypeVar("T_Event", bound=DomainEvent)


class IEventBus(Protocol):
    """Интерфейс для шины событий."""

    def publish(self, event: DomainEvent) -> None: ...
    def subscribe(
        self, event_type: Type[T_Event], handler: Callable[[T_Event], None]
    ) -> None: ...


class IBookingRepository(Protocol):
    """Интерфейс репозитория для бронирований."""

    def add(self, booking: Booking) -> None: ...
    def get_by_id(self, booking_id: EntityId) -> Optional[Booking]: ...
    def update(self, booking: Booking) -> None: ...
    def list_all(self) -> List[Booking]: ...
    def find_by_requester(self, requester_id: EntityId) -> List[Booking]: ...
    def find_by_room(self, room_id: EntityId) -> List[Booking]: ...
    def find_by_status(self, status: BookingStatus) -> List[Booking]: ...
    def find_overlapping_bookings(
        self,
        room_id: EntityId,
        period: TimeRange,
        exclude_booking_id: Optional[EntityId] = None,
    ) -> List[Booking]: ...


class IRoomRepository(Protocol):
    """Интерфейс репозитория для аудиторий."""

    def add(self, room: Room) -> None: ...
    def get_by_id(self, room_id: EntityId) -> Optional[Room]: ...
    def list_all(self) -> List[Room]: ...


class IUserRepository(Protocol):
    """Интерфейс репозитория для пользователей."""

    def add(self, user: User) -> None: ...
    def get_by_id(self, user_id: EntityId) -> Optional[User]: ...
    def list_all(self) -> List[User]: ...


class INotificationRepository(Protocol):
    """Интерфейс хранилища уведомлений (только добавление)."""

    def append(self, notification: Notification) -> None: ...
    def get_by_id(self, notification_id: EntityId) -> Optional[Notification]: ...
    def list_all(self) -> List[Notification]: ...


class IRoomifyUnitOfWork(Protocol):
    """Интерфейс Unit of Work, владеющего всеми коллекциями."""

    @property
    def bookings(self) -> IBookingRepository: ...
    @property
    def rooms(self) -> IRoomRepository: ...
    @property
    def users(self) -> IUserRepository: ...
    @property
    def notifications(self) -> INotificationRepository: ...
    @property
    def event_bus(self) -> IEventBus: ...

    def __enter__(self) -> IRoomifyUnitOfWork: ...
    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool: ...
    def collect(self, booking: Booking) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
