"""
Обработчики событий бронирования: каждое событие жизненного цикла
превращается ровно в одно уведомление автору заявки.
"""

from functools import partial
from typing import TYPE_CHECKING, Dict, Tuple, Type

from ..booking.domain import (
    BookingApproved,
    BookingCancelled,
    BookingCheckedIn,
    BookingCheckedOut,
    BookingCreated,
    BookingEvent,
    BookingRejected,
    BookingReminderDue,
)
from ..shared_kernel import NotificationType

if TYPE_CHECKING:
    from ..booking.interfaces import IRoomifyUnitOfWork
    from .application import NotificationApplicationService

# Тип события -> (тип уведомления, заголовок, шаблон текста)
NOTIFICATION_TEMPLATES: Dict[Type[BookingEvent], Tuple[NotificationType, str, str]] = {
    BookingCreated: (
        NotificationType.BOOKING_CREATED,
        "Booking Request Created",
        'Your booking request "{title}" for {room} has been created '
        "and is pending approval.",
    ),
    BookingApproved: (
        NotificationType.BOOKING_APPROVED,
        "Booking Approved",
        'Your booking request "{title}" for {room} has been approved.',
    ),
    BookingRejected: (
        NotificationType.BOOKING_REJECTED,
        "Booking Rejected",
        'Your booking request "{title}" for {room} has been rejected.',
    ),
    BookingCancelled: (
        NotificationType.BOOKING_CANCELLED,
        "Booking Cancelled",
        'Your booking "{title}" for {room} has been cancelled.',
    ),
    BookingCheckedIn: (
        NotificationType.BOOKING_CHECKED_IN,
        "Checked In",
        'Check-in recorded for "{title}" in {room}.',
    ),
    BookingCheckedOut: (
        NotificationType.BOOKING_CHECKED_OUT,
        "Checked Out",
        'Check-out recorded for "{title}" in {room}.',
    ),
    BookingReminderDue: (
        NotificationType.BOOKING_REMINDER,
        "Booking Reminder",
        'Your booking "{title}" in {room} starts at {start:%Y-%m-%d %H:%M}.',
    ),
}


def on_booking_event(
    event: BookingEvent,
    service: "NotificationApplicationService",
    uow: "IRoomifyUnitOfWork",
) -> None:
    """Обработчик событий бронирования."""
    notification_type, title, template = NOTIFICATION_TEMPLATES[type(event)]
    room = uow.rooms.get_by_id(event.room_id)
    room_name = room.name if room is not None else event.room_id
    booking = uow.bookings.get_by_id(event.booking_id)

    service.add_notification(
        user_id=event.requester_id,
        type=notification_type,
        title=title,
        message=template.format(
            title=event.title,
            room=room_name,
            start=booking.period.start if booking is not None else event.occurred_on,
        ),
        booking_id=event.booking_id,
    )


def register_notification_handlers(
    uow: "IRoomifyUnitOfWork", service: "NotificationApplicationService"
) -> None:
    """Подписывает обработчик уведомлений на все события бронирования."""
    handler = partial(on_booking_event, service=service, uow=uow)
    for event_type in NOTIFICATION_TEMPLATES:
        uow.event_bus.subscribe(event_type, handler)
