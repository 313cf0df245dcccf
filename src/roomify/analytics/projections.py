"""
Проекции для аналитики.

Чистые функции над списками аудиторий и бронирований. Результаты
ничего не кэшируют и каждый раз вычисляются из текущих данных.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from ..booking.domain import Booking, Room
from ..shared_kernel import BookingStatus, EntityId, RoomStatus, RoomType, TimeRange

# Спрос создают заявки, которые еще не отклонены и не отменены
DEMAND_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.APPROVED})


class BookingSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_rooms: int
    available_rooms: int
    total_capacity: int
    total_bookings: int
    approved_bookings: int
    pending_bookings: int
    rejected_bookings: int
    cancelled_bookings: int
    upcoming_bookings: int


class RoomUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    room_id: EntityId
    bookings: int
    hours: float
    utilization: float


class DepartmentUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    department: str
    bookings: int
    hours: float


class PeakHour(BaseModel):
    model_config = ConfigDict(frozen=True)

    hour: int
    bookings: int


class RoomTypeCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: RoomType
    count: int


class UserStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: EntityId
    bookings: int
    approved: int
    pending: int
    rejected: int
    cancelled: int
    hours: float


def _approved_hours(booking: Booking, window: Optional[TimeRange]) -> float:
    """Часы одобренного бронирования, при наличии окна - только внутри него."""
    if booking.status != BookingStatus.APPROVED:
        return 0.0
    if window is None:
        return booking.period.hours
    if not booking.period.overlaps(window):
        return 0.0
    start = max(booking.period.start, window.start)
    end = min(booking.period.end, window.end)
    return (end - start).total_seconds() / 3600


def _in_window(booking: Booking, window: Optional[TimeRange]) -> bool:
    return window is None or booking.period.overlaps(window)


def summarize(
    rooms: Iterable[Room],
    bookings: Iterable[Booking],
    at: datetime,
) -> BookingSummary:
    """Счетчики для главной панели."""
    rooms = list(rooms)
    bookings = list(bookings)
    statuses = Counter(b.status for b in bookings)
    occupied = {b.room_id for b in bookings if b.is_active(at)}

    return BookingSummary(
        total_rooms=len(rooms),
        available_rooms=sum(
            1 for r in rooms
            if r.status != RoomStatus.MAINTENANCE and r.id not in occupied
        ),
        total_capacity=sum(r.capacity for r in rooms),
        total_bookings=len(bookings),
        approved_bookings=statuses[BookingStatus.APPROVED],
        pending_bookings=statuses[BookingStatus.PENDING],
        rejected_bookings=statuses[BookingStatus.REJECTED],
        cancelled_bookings=statuses[BookingStatus.CANCELLED],
        upcoming_bookings=sum(1 for b in bookings if b.period.start > at),
    )


def room_usage(
    rooms: Iterable[Room],
    bookings: Iterable[Booking],
    window: Optional[TimeRange] = None,
    capacity_hours: float = 40.0,
) -> List[RoomUsage]:
    """Загрузка аудиторий.

    utilization - доля одобренных часов от длительности окна (или от
    capacity_hours, если окно не задано), не больше 1.0.
    """
    bookings = [b for b in bookings if _in_window(b, window)]
    available_hours = window.hours if window is not None else capacity_hours
    by_room: Dict[EntityId, List[Booking]] = defaultdict(list)
    for booking in bookings:
        by_room[booking.room_id].append(booking)

    usage = []
    for room in rooms:
        room_bookings = by_room.get(room.id, [])
        hours = sum(_approved_hours(b, window) for b in room_bookings)
        utilization = min(1.0, hours / available_hours) if available_hours > 0 else 0.0
        usage.append(
            RoomUsage(
                room_id=room.id,
                bookings=len(room_bookings),
                hours=round(hours, 2),
                utilization=round(utilization, 4),
            )
        )
    return usage


def department_usage(
    rooms: Iterable[Room],
    bookings: Iterable[Booking],
    window: Optional[TimeRange] = None,
) -> List[DepartmentUsage]:
    """Использование по кафедрам, к которым относятся аудитории."""
    department_of = {room.id: room.department for room in rooms}
    counts: Counter = Counter()
    hours: Dict[str, float] = defaultdict(float)

    for booking in bookings:
        department = department_of.get(booking.room_id)
        if department is None or not _in_window(booking, window):
            continue
        counts[department] += 1
        hours[department] += _approved_hours(booking, window)

    return [
        DepartmentUsage(department=dep, bookings=counts[dep], hours=round(hours[dep], 2))
        for dep in sorted(counts)
    ]


def _touched_hours(period: TimeRange) -> Iterable[int]:
    """Часы суток, которые задевает интервал [start, end)."""
    cursor = period.start.replace(minute=0, second=0, microsecond=0)
    while cursor < period.end:
        yield cursor.hour
        cursor += timedelta(hours=1)


def peak_hours(bookings: Iterable[Booking]) -> List[PeakHour]:
    """Распределение спроса по часам суток, 24 корзины."""
    buckets = [0] * 24
    for booking in bookings:
        if booking.status not in DEMAND_STATUSES:
            continue
        for hour in set(_touched_hours(booking.period)):
            buckets[hour] += 1
    return [PeakHour(hour=hour, bookings=count) for hour, count in enumerate(buckets)]


def busiest_hour(bookings: Iterable[Booking]) -> Optional[int]:
    """Час с наибольшим спросом; None, если спроса нет."""
    hours = peak_hours(bookings)
    top = max(hours, key=lambda h: h.bookings)
    return top.hour if top.bookings > 0 else None


def room_type_counts(rooms: Iterable[Room]) -> List[RoomTypeCount]:
    counts = Counter(room.type for room in rooms)
    return [RoomTypeCount(type=t, count=counts[t]) for t in RoomType]


def user_stats(bookings: Iterable[Booking]) -> List[UserStats]:
    """Статистика по авторам заявок."""
    by_user: Dict[EntityId, List[Booking]] = defaultdict(list)
    for booking in bookings:
        by_user[booking.requester_id].append(booking)

    stats = []
    for user_id in sorted(by_user):
        user_bookings = by_user[user_id]
        statuses = Counter(b.status for b in user_bookings)
        stats.append(
            UserStats(
                user_id=user_id,
                bookings=len(user_bookings),
                approved=statuses[BookingStatus.APPROVED],
                pending=statuses[BookingStatus.PENDING],
                rejected=statuses[BookingStatus.REJECTED],
                cancelled=statuses[BookingStatus.CANCELLED],
                hours=round(sum(_approved_hours(b, None) for b in user_bookings), 2),
            )
        )
    return stats
