"""
Прикладной сервис аналитики.

Все показатели вычисляются по запросу из текущих коллекций
единицы работы и нигде не сохраняются.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Callable, List, Optional

from ..booking.application import make_period
from ..shared_kernel import EntityId, TimeRange, ValidationError, now
from . import projections
from .projections import (
    BookingSummary,
    DepartmentUsage,
    PeakHour,
    RoomTypeCount,
    RoomUsage,
    UserStats,
)

if TYPE_CHECKING:
    from ..booking.interfaces import IRoomifyUnitOfWork


class AnalyticsApplicationService:
    """Сервис приложения для панели аналитики."""

    def __init__(
        self,
        uow: "IRoomifyUnitOfWork",
        clock: Callable[[], datetime] = now,
        capacity_hours: float = 40.0,
    ):
        self._uow = uow
        self._clock = clock
        self._capacity_hours = capacity_hours

    def _window(
        self, start: Optional[datetime], end: Optional[datetime]
    ) -> Optional[TimeRange]:
        if start is None and end is None:
            return None
        if start is None or end is None:
            raise ValidationError("Окно аналитики задается обеими границами")
        return make_period(start, end)

    def summary(self) -> BookingSummary:
        return projections.summarize(
            self._uow.rooms.list_all(), self._uow.bookings.list_all(), self._clock()
        )

    def room_usage(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[RoomUsage]:
        return projections.room_usage(
            self._uow.rooms.list_all(),
            self._uow.bookings.list_all(),
            window=self._window(start, end),
            capacity_hours=self._capacity_hours,
        )

    def get_room_analytics(self, room_id: EntityId) -> Optional[RoomUsage]:
        return next((u for u in self.room_usage() if u.room_id == room_id), None)

    def department_usage(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[DepartmentUsage]:
        return projections.department_usage(
            self._uow.rooms.list_all(),
            self._uow.bookings.list_all(),
            window=self._window(start, end),
        )

    def get_department_analytics(self, department: str) -> Optional[DepartmentUsage]:
        return next(
            (u for u in self.department_usage() if u.department == department), None
        )

    def peak_hours(self) -> List[PeakHour]:
        return projections.peak_hours(self._uow.bookings.list_all())

    def busiest_hour(self) -> Optional[int]:
        return projections.busiest_hour(self._uow.bookings.list_all())

    def room_type_counts(self) -> List[RoomTypeCount]:
        return projections.room_type_counts(self._uow.rooms.list_all())

    def user_stats(self) -> List[UserStats]:
        return projections.user_stats(self._uow.bookings.list_all())

    def get_user_analytics(self, user_id: EntityId) -> Optional[UserStats]:
        return next((s for s in self.user_stats() if s.user_id == user_id), None)
