from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .analytics.application import AnalyticsApplicationService
from .booking.application import (
    BookingApplicationService,
    RoomApplicationService,
    UserApplicationService,
)
from .booking.infrastructure import RoomifyUnitOfWork
from .booking.interfaces import IEventBus
from .config import RoomifySettings
from .notifications.application import NotificationApplicationService
from .notifications.event_handlers import register_notification_handlers
from .shared_kernel import configure_logging, get_logger, now


@dataclass
class RoomifyApp:
    """Набор связанных компонентов приложения.

    Наружу отдаются только сервисы и шина событий; хранилища
    остаются внутри единицы работы.
    """

    settings: RoomifySettings
    event_bus: IEventBus
    bookings: BookingApplicationService
    rooms: RoomApplicationService
    users: UserApplicationService
    notifications: NotificationApplicationService
    analytics: AnalyticsApplicationService


def bootstrap_app(
    settings: Optional[RoomifySettings] = None,
    clock: Callable[[], datetime] = now,
    uow: Optional[RoomifyUnitOfWork] = None,
) -> RoomifyApp:
    """Создает и настраивает все компоненты приложения."""
    settings = settings or RoomifySettings()
    configure_logging(settings.log_level)

    # 1. Создаем Unit of Work, владеющий всеми коллекциями
    uow = uow or RoomifyUnitOfWork(
        logger=get_logger("roomify.uow"),
        seed_sample_data=settings.seed_mock_data,
    )

    # 2. Создаем сервисы, передавая им зависимости
    notification_service = NotificationApplicationService(uow, clock=clock)
    booking_service = BookingApplicationService(
        uow,
        clock=clock,
        reminder_lead_time=settings.reminder_lead_time,
        recent_limit=settings.recent_bookings_limit,
    )

    # 3. Подписываем обработчики на события
    register_notification_handlers(uow, notification_service)

    return RoomifyApp(
        settings=settings,
        event_bus=uow.event_bus,
        bookings=booking_service,
        rooms=RoomApplicationService(uow, clock=clock),
        users=UserApplicationService(uow),
        notifications=notification_service,
        analytics=AnalyticsApplicationService(
            uow, clock=clock, capacity_hours=settings.utilization_window_hours
        ),
    )
