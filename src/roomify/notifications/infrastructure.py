"""
Хранилище уведомлений в памяти.
"""

from typing import Dict, List, Optional

from ..shared_kernel import EntityId
from .domain import Notification


class InMemoryNotificationRepository:
    """Список уведомлений в порядке добавления с индексом по id."""

    def __init__(self) -> None:
        self._notifications: List[Notification] = []
        self._index: Dict[EntityId, Notification] = {}

    def append(self, notification: Notification) -> None:
        if notification.id in self._index:
            raise ValueError(f"Notification with id {notification.id} already exists")
        self._notifications.append(notification)
        self._index[notification.id] = notification

    def get_by_id(self, notification_id: EntityId) -> Optional[Notification]:
        return self._index.get(notification_id)

    def list_all(self) -> List[Notification]:
        return list(self._notifications)

    def snapshot(self) -> List[Notification]:
        return [n.model_copy(deep=True) for n in self._notifications]

    def restore(self, snapshot: List[Notification]) -> None:
        self._notifications = list(snapshot)
        self._index = {n.id: n for n in self._notifications}
