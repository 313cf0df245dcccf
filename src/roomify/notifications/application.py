"""
Прикладной слой уведомлений (Notification Sink).

Уведомления только добавляются; единственное изменение после
создания - перевод флага read в True.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Callable, List, Optional

from pydantic import BaseModel, ConfigDict

from ..shared_kernel import (
    EntityId,
    ILogger,
    NotFoundError,
    NotificationType,
    get_logger,
    now,
)
from .domain import Notification

if TYPE_CHECKING:
    from ..booking.interfaces import IRoomifyUnitOfWork


class NotificationDTO(BaseModel):
    """DTO для представления уведомления."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    user_id: EntityId
    type: NotificationType
    title: str
    message: str
    booking_id: Optional[EntityId]
    read: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            booking_id=notification.booking_id,
            read=notification.read,
            created_at=notification.created_at,
        )


class NotificationApplicationService:
    """Сервис приложения для работы с уведомлениями."""

    def __init__(
        self,
        uow: "IRoomifyUnitOfWork",
        clock: Callable[[], datetime] = now,
        logger: Optional[ILogger] = None,
    ):
        """Инициализирует сервис."""
        self._uow = uow
        self._clock = clock
        self._logger = logger or get_logger(__name__)

    def add_notification(
        self,
        user_id: EntityId,
        type: NotificationType,
        title: str,
        message: str,
        booking_id: Optional[EntityId] = None,
    ) -> NotificationDTO:
        """Добавляет уведомление в конец списка."""
        with self._uow:
            notification = Notification(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                booking_id=booking_id,
                created_at=self._clock(),
            )
            self._uow.notifications.append(notification)
            self._logger.debug(
                "Notification added",
                notification_id=notification.id,
                user_id=user_id,
                type=type.value,
            )
            return NotificationDTO.from_domain(notification)

    def mark_as_read(self, notification_id: EntityId) -> NotificationDTO:
        """Помечает уведомление прочитанным. Повторный вызов ничего не меняет."""
        with self._uow:
            notification = self._uow.notifications.get_by_id(notification_id)
            if notification is None:
                raise NotFoundError("Notification", notification_id)
            notification.mark_read()
            return NotificationDTO.from_domain(notification)

    def mark_all_as_read(self, user_id: EntityId) -> int:
        """Помечает прочитанными все уведомления пользователя."""
        with self._uow:
            changed = sum(
                1
                for notification in self._uow.notifications.list_all()
                if notification.user_id == user_id and notification.mark_read()
            )
            return changed

    def get_notification(self, notification_id: EntityId) -> NotificationDTO:
        notification = self._uow.notifications.get_by_id(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        return NotificationDTO.from_domain(notification)

    def list_notifications(
        self, user_id: Optional[EntityId] = None, unread_only: bool = False
    ) -> List[NotificationDTO]:
        """Возвращает уведомления в порядке добавления."""
        return [
            NotificationDTO.from_domain(n)
            for n in self._uow.notifications.list_all()
            if (user_id is None or n.user_id == user_id)
            and not (unread_only and n.read)
        ]

    def unread_count(self, user_id: Optional[EntityId] = None) -> int:
        """Число непрочитанных уведомлений, считается при каждом вызове."""
        return sum(
            1
            for n in self._uow.notifications.list_all()
            if not n.read and (user_id is None or n.user_id == user_id)
        )
