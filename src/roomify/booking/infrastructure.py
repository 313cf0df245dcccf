"""
Инфраструктурный слой контекста бронирования.

Содержит хранилища в памяти, шину событий и единицу работы,
которая владеет всеми коллекциями и делает операции атомарными.
"""

import threading
from datetime import time
from typing import Callable, Dict, Iterable, List, Optional, Type

from ..notifications.infrastructure import InMemoryNotificationRepository
from ..shared_kernel import (
    BlockOutWindow,
    BookingStatus,
    DomainEvent,
    EntityId,
    ILogger,
    RoomStatus,
    RoomType,
    TimeRange,
    UserRole,
    get_logger,
)
from . import interfaces as ports
from .domain import Booking, Room, User


class InMemoryBookingRepository(ports.IBookingRepository):
    """Реализация репозитория бронирований в памяти."""

    def __init__(self) -> None:
        self._bookings: Dict[EntityId, Booking] = {}

    def get_by_id(self, booking_id: EntityId) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    def add(self, booking: Booking) -> None:
        if booking.id in self._bookings:
            raise ValueError(f"Booking with id {booking.id} already exists")
        self._bookings[booking.id] = booking

    def update(self, booking: Booking) -> None:
        if booking.id not in self._bookings:
            raise KeyError(f"Booking with id {booking.id} not found")
        self._bookings[booking.id] = booking

    def list_all(self) -> List[Booking]:
        return list(self._bookings.values())

    def find_by_requester(self, requester_id: EntityId) -> List[Booking]:
        return [
            booking for booking in self._bookings.values()
            if booking.requester_id == requester_id
        ]

    def find_by_room(self, room_id: EntityId) -> List[Booking]:
        return [
            booking for booking in self._bookings.values()
            if booking.room_id == room_id
        ]

    def find_by_status(self, status: BookingStatus) -> List[Booking]:
        return [
            booking for booking in self._bookings.values()
            if booking.status == status
        ]

    def find_overlapping_bookings(
        self,
        room_id: EntityId,
        period: TimeRange,
        exclude_booking_id: Optional[EntityId] = None,
    ) -> List[Booking]:
        """Бронирования аудитории любого статуса, пересекающие интервал."""
        return [
            booking for booking in self._bookings.values()
            if booking.room_id == room_id
            and booking.id != exclude_booking_id
            and booking.period.overlaps(period)
        ]

    def snapshot(self) -> Dict[EntityId, Booking]:
        return {key: b.model_copy(deep=True) for key, b in self._bookings.items()}

    def restore(self, snapshot: Dict[EntityId, Booking]) -> None:
        self._bookings = dict(snapshot)


class InMemoryRoomRepository(ports.IRoomRepository):
    """Реализация репозитория аудиторий в памяти."""

    def __init__(self, rooms: Iterable[Room] = ()):
        self._rooms: Dict[EntityId, Room] = {}
        for room in rooms:
            self.add(room)

    def add(self, room: Room) -> None:
        if room.id in self._rooms:
            raise ValueError(f"Room with id {room.id} already exists")
        self._rooms[room.id] = room

    def get_by_id(self, room_id: EntityId) -> Optional[Room]:
        return self._rooms.get(room_id)

    def list_all(self) -> List[Room]:
        return list(self._rooms.values())

    def snapshot(self) -> Dict[EntityId, Room]:
        return {key: r.model_copy(deep=True) for key, r in self._rooms.items()}

    def restore(self, snapshot: Dict[EntityId, Room]) -> None:
        self._rooms = dict(snapshot)


class InMemoryUserRepository(ports.IUserRepository):
    """Реализация репозитория пользователей в памяти."""

    def __init__(self, users: Iterable[User] = ()):
        self._users: Dict[EntityId, User] = {}
        for user in users:
            self.add(user)

    def add(self, user: User) -> None:
        if user.id in self._users:
            raise ValueError(f"User with id {user.id} already exists")
        self._users[user.id] = user

    def get_by_id(self, user_id: EntityId) -> Optional[User]:
        return self._users.get(user_id)

    def list_all(self) -> List[User]:
        return list(self._users.values())

    def snapshot(self) -> Dict[EntityId, User]:
        return {key: u.model_copy(deep=True) for key, u in self._users.items()}

    def restore(self, snapshot: Dict[EntityId, User]) -> None:
        self._users = dict(snapshot)


def sample_rooms() -> List[Room]:
    """Тестовые аудитории."""
    return [
        Room(
            id="room-1",
            name="Conference Room A",
            type=RoomType.CONFERENCE,
            capacity=20,
            equipment={"Projector", "Whiteboard", "Video Conference"},
            department="Computer Science",
            floor=1,
            building="Main Building",
        ),
        Room(
            id="room-2",
            name="Lecture Hall 101",
            type=RoomType.CLASSROOM,
            capacity=60,
            equipment={"Projector", "Microphone"},
            department="Computer Science",
            floor=1,
            building="Main Building",
        ),
        Room(
            id="room-3",
            name="Meeting Room B",
            type=RoomType.MEETING,
            capacity=8,
            equipment={"Whiteboard", "TV Screen"},
            department="Mathematics",
            floor=2,
            building="Main Building",
        ),
        Room(
            id="room-4",
            name="Electronics Lab",
            type=RoomType.LAB,
            capacity=30,
            equipment={"Oscilloscopes", "Workbenches", "Projector"},
            department="Electrical Engineering",
            floor=3,
            building="Engineering Block",
            # Обслуживание оборудования по пятницам после обеда
            block_out_hours=[
                BlockOutWindow(start=time(14, 0), end=time(18, 0), days={4})
            ],
        ),
        Room(
            id="room-5",
            name="Seminar Room C",
            type=RoomType.CLASSROOM,
            capacity=25,
            equipment={"Whiteboard"},
            department="Mathematics",
            floor=2,
            building="Main Building",
            status=RoomStatus.MAINTENANCE,
        ),
    ]


def sample_users() -> List[User]:
    """Тестовые пользователи."""
    return [
        User(id="user1", name="Alice Student", email="alice@example.edu",
             role=UserRole.STUDENT, department="Computer Science"),
        User(id="user2", name="Bob Student", email="bob@example.edu",
             role=UserRole.STUDENT, department="Mathematics"),
        User(id="fac1", name="Dr. Carol Faculty", email="carol@example.edu",
             role=UserRole.FACULTY, department="Computer Science"),
        User(id="admin1", name="Dave Admin", email="dave@example.edu",
             role=UserRole.ADMIN, department="Administration"),
        User(id="hod1", name="Prof. Erin Head", email="erin@example.edu",
             role=UserRole.HOD, department="Computer Science"),
    ]


class InMemoryEventBus(ports.IEventBus):
    """Реализация шины событий в памяти.

    Ошибки обработчиков не подавляются: единица работы, в которой
    публикуется событие, откатывается целиком.
    """

    def __init__(self, logger: Optional[ILogger] = None):
        self._subscribers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._logger = logger or get_logger(__name__)

    def publish(self, event: DomainEvent) -> None:
        """Публикует событие."""
        event_type = type(event)
        if event_type not in self._subscribers:
            self._logger.debug(f"No subscribers for event type {event_type.__name__}")
            return

        self._logger.info(f"Publishing event: {event_type.__name__}", event_id=event.event_id)

        for handler in self._subscribers[event_type]:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    f"Error in event handler for {event_type.__name__}",
                    error=str(e),
                    event_id=event.event_id,
                )
                raise

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable) -> None:
        """Подписывает обработчик на события указанного типа."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)
        self._logger.debug(f"Subscribed handler to {event_type.__name__} events")


class RoomifyUnitOfWork(ports.IRoomifyUnitOfWork):
    """Единица работы: владеет всеми коллекциями и сериализует изменения.

    Вход в контекст захватывает реентерабельную блокировку и, на внешнем
    уровне вложенности, делает снимок коллекций. При выходе без ошибки
    публикуются события собранных агрегатов; любое исключение возвращает
    коллекции к снимку.
    """

    def __init__(
        self,
        bookings_repo: Optional[InMemoryBookingRepository] = None,
        rooms_repo: Optional[InMemoryRoomRepository] = None,
        users_repo: Optional[InMemoryUserRepository] = None,
        notifications_repo: Optional[InMemoryNotificationRepository] = None,
        event_bus: Optional[ports.IEventBus] = None,
        logger: Optional[ILogger] = None,
        seed_sample_data: bool = False,
    ):
        self._logger = logger or get_logger(__name__)
        self._bookings = bookings_repo or InMemoryBookingRepository()
        self._rooms = rooms_repo or InMemoryRoomRepository(
            sample_rooms() if seed_sample_data else ()
        )
        self._users = users_repo or InMemoryUserRepository(
            sample_users() if seed_sample_data else ()
        )
        self._notifications = notifications_repo or InMemoryNotificationRepository()
        self._event_bus = event_bus or InMemoryEventBus(self._logger)
        self._lock = threading.RLock()
        self._depth = 0
        self._snapshot: Optional[dict] = None
        self._collected: List[Booking] = []
        self._committed = False

    @property
    def bookings(self) -> InMemoryBookingRepository:
        return self._bookings

    @property
    def rooms(self) -> InMemoryRoomRepository:
        return self._rooms

    @property
    def users(self) -> InMemoryUserRepository:
        return self._users

    @property
    def notifications(self) -> InMemoryNotificationRepository:
        return self._notifications

    @property
    def event_bus(self) -> ports.IEventBus:
        return self._event_bus

    @property
    def committed(self) -> bool:
        return self._committed

    def collect(self, booking: Booking) -> None:
        """Регистрирует агрегат, события которого нужно опубликовать при фиксации."""
        self._collected.append(booking)

    def _take_snapshot(self) -> dict:
        return {
            "bookings": self._bookings.snapshot(),
            "rooms": self._rooms.snapshot(),
            "users": self._users.snapshot(),
            "notifications": self._notifications.snapshot(),
        }

    def _publish_collected(self) -> None:
        # Обработчики могут регистрировать новые агрегаты, поэтому цикл
        while self._collected:
            aggregate = self._collected.pop(0)
            for event in aggregate.pull_domain_events():
                self._event_bus.publish(event)

    def commit(self) -> None:
        """Фиксирует все изменения."""
        self._snapshot = None
        self._committed = True
        self._logger.debug("RoomifyUnitOfWork committed")

    def rollback(self) -> None:
        """Откатывает все изменения к снимку."""
        if self._snapshot is not None:
            self._bookings.restore(self._snapshot["bookings"])
            self._rooms.restore(self._snapshot["rooms"])
            self._users.restore(self._snapshot["users"])
            self._notifications.restore(self._snapshot["notifications"])
            self._snapshot = None
        self._collected.clear()
        self._committed = False
        self._logger.warning("RoomifyUnitOfWork rolled back")

    def __enter__(self) -> "RoomifyUnitOfWork":
        self._lock.acquire()
        if self._depth == 0:
            self._snapshot = self._take_snapshot()
            self._committed = False
        self._depth += 1
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            if self._depth == 1:
                if exc_type is None:
                    try:
                        self._publish_collected()
                    except Exception:
                        self.rollback()
                        raise
                    self.commit()
                else:
                    self.rollback()
        finally:
            self._depth -= 1
            self._lock.release()
        return False  # Пробрасываем исключение дальше, если оно было
